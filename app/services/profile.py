"""Profile blob helpers: defensive parsing of the serialized JSON kept in User.profile.

Subscription and suspension facts are not columns; they are ad-hoc keys inside this
blob. A blob that does not parse never fails a request: business logic sees an
empty dict, debug output sees an error marker.
"""

import json
import logging
import re
from datetime import datetime
from typing import TYPE_CHECKING, Any

from app.core.clock import as_utc

if TYPE_CHECKING:
    from app.models import User

logger = logging.getLogger(__name__)

SUBSCRIPTION_KEY = "subscription"
SUSPENSION_KEY = "suspension"

# Trial spans longer than this many days are reported as a yearly legacy plan.
YEARLY_PLAN_MIN_DAYS = 300
LEGACY_MONTHLY_PRICE = 149
LEGACY_YEARLY_PRICE = 1490

DEFAULT_PLAN_LABEL = "STANDARD"
INDIVIDUAL_TENANT_NAME = "Bireysel Kullanıcı"
INDIVIDUAL_TENANT_SLUG = "bireysel-kullanici"

# Profile keys that may carry an organization name, in lookup order.
_TENANT_NAME_KEYS = ("tenantName", "organizationName", "companyName")

_TURKISH_ASCII = str.maketrans("çğıöşüÇĞİÖŞÜ", "cgiosuCGIOSU")


def parse_profile(raw: str | None) -> dict[str, Any]:
    """Parse a profile blob; empty, invalid or non-object JSON yields {}."""
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning("Failed to parse user profile JSON: %s", e)
        return {}
    if isinstance(parsed, dict):
        return parsed
    return {}


def parse_profile_for_debug(raw: str | None) -> dict[str, Any]:
    """Like parse_profile, but an unparseable blob is reported instead of hidden."""
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return {"error": "Could not parse profile JSON", "raw": raw}
    if isinstance(parsed, dict):
        return parsed
    return {"error": "Profile JSON is not an object", "raw": raw}


def dump_profile(profile: dict[str, Any]) -> str:
    return json.dumps(profile, ensure_ascii=False)


def get_subscription(profile: dict[str, Any]) -> dict[str, Any] | None:
    """Return profile["subscription"] when it is an object, else None."""
    subscription = profile.get(SUBSCRIPTION_KEY)
    if isinstance(subscription, dict):
        return subscription
    return None


def has_active_subscription(profile: dict[str, Any]) -> bool:
    """True iff the profile holds a subscription object with a truthy activatedAt."""
    subscription = get_subscription(profile)
    return bool(subscription and subscription.get("activatedAt"))


def is_demo_subscription(profile: dict[str, Any]) -> bool:
    subscription = get_subscription(profile)
    return bool(subscription and subscription.get("isDemoTrial"))


def has_paid_subscription(profile: dict[str, Any]) -> bool:
    """An activated subscription other than the demo marker set on approval."""
    return has_active_subscription(profile) and not is_demo_subscription(profile)


def standard_subscription(now: datetime) -> dict[str, Any]:
    """Subscription attached by the add_subscription maintenance script."""
    return {
        "planId": "standard",
        "planName": "STANDARD",
        "planDisplayName": "Standard",
        "price": 0,
        "duration": "monthly",
        "durationText": "Aylık",
        "activatedAt": now.isoformat(),
    }


def demo_trial_subscription(now: datetime, demo_days: int) -> dict[str, Any]:
    """Demo marker attached on approval. Tracks the demo only; it is not a paid plan."""
    return {
        "planId": "demo-trial",
        "planName": "DEMO_TRIAL",
        "planDisplayName": "Demo Deneme",
        "price": 0,
        "duration": "trial",
        "durationText": f"{demo_days} Günlük Demo",
        "activatedAt": now.isoformat(),
        "isDemoTrial": True,
    }


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def build_subscription_details(user: "User", profile: dict[str, Any]) -> dict[str, Any] | None:
    """
    Subscription details for admin views.

    Uses the profile's subscription (or subscriptionDetails) when present. Otherwise,
    if the user has trial dates, reports a legacy plan inferred from the trial span.
    Returns None when there is nothing to report.
    """
    details = profile.get(SUBSCRIPTION_KEY) or profile.get("subscriptionDetails")
    if isinstance(details, dict):
        return {
            **details,
            "trialEndDate": _iso(user.trial_end_date),
            "status": user.status,
        }

    if user.trial_start_date is None and user.trial_end_date is None:
        return None

    span_days: int | None = None
    if user.trial_start_date is not None and user.trial_end_date is not None:
        delta = as_utc(user.trial_end_date) - as_utc(user.trial_start_date)
        if delta.total_seconds() > 0:
            span_days = round(delta.total_seconds() / 86400)
    yearly = span_days is not None and span_days > YEARLY_PLAN_MIN_DAYS

    plan_name = "Yıllık Plan" if yearly else "Aylık Plan"
    duration_text = "365 gün" if yearly else "30 gün"
    return {
        "planId": "legacy_yearly_plan" if yearly else "legacy_monthly_plan",
        "planName": plan_name,
        "planDisplayName": f"{plan_name} ({duration_text})",
        "duration": "yearly" if yearly else "monthly",
        "durationText": duration_text,
        "price": LEGACY_YEARLY_PRICE if yearly else LEGACY_MONTHLY_PRICE,
        "activatedAt": _iso(user.trial_start_date),
        "trialEndDate": _iso(user.trial_end_date),
        "extraTrialDays": user.extra_trial_days or 0,
        "status": user.status,
    }


def extract_plan_label(details: dict[str, Any] | None) -> str:
    """planDisplayName, then planName, then the default label."""
    if details:
        for key in ("planDisplayName", "planName"):
            value = details.get(key)
            if isinstance(value, str) and value.strip():
                return value
    return DEFAULT_PLAN_LABEL


def tenant_name_from_profile(profile: dict[str, Any]) -> str | None:
    """Organization name recorded in the profile at registration, if any."""
    candidates: list[Any] = [profile.get(key) for key in _TENANT_NAME_KEYS]
    organization = profile.get("organization")
    if isinstance(organization, dict):
        candidates.extend([organization.get("name"), organization.get("organizationName")])
    subscription = get_subscription(profile)
    if subscription:
        candidates.extend(subscription.get(key) for key in _TENANT_NAME_KEYS)
    for value in candidates:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def slugify(value: str | None) -> str:
    """Lowercase ASCII slug; falls back to the individual-user slug."""
    if not value:
        return INDIVIDUAL_TENANT_SLUG
    normalized = value.translate(_TURKISH_ASCII).lower()
    normalized = re.sub(r"[^a-z0-9\s-]", "", normalized)
    normalized = re.sub(r"[\s_-]+", "-", normalized).strip("-")
    return normalized or INDIVIDUAL_TENANT_SLUG

"""
CLI entrypoint for the daily trial-expiry check. Run from cron, e.g.:

  python -m app.trial_expiry

Daily at 09:00: 0 9 * * * cd /path/to/medsas && .venv/bin/python -m app.trial_expiry

Fetches the expiry report, then triggers the sweep, against the running API
(BASE_URL). Exits 1 on any HTTP or network failure.
"""

import logging
import sys
from typing import TYPE_CHECKING, Any

import httpx

from app.api.v1.auth import CRON_SECRET_HEADER
from app.core.config import get_settings

if TYPE_CHECKING:
    from app.core.config import Settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


class TrialExpiryCheckError(Exception):
    """Raised when the API cannot be reached, answers with an error status, or returns a non-object body."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def _endpoint(settings: "Settings") -> str:
    return f"{settings.BASE_URL}{settings.API_V1_PREFIX}/admin/trial-expiry-check"


def _headers(settings: "Settings") -> dict[str, str]:
    if settings.CRON_SECRET is None:
        return {}
    return {CRON_SECRET_HEADER: settings.CRON_SECRET.get_secret_value()}


def _call(client: httpx.Client, method: str, url: str) -> dict[str, Any]:
    try:
        response = client.request(method, url)
    except httpx.HTTPError as e:
        raise TrialExpiryCheckError(f"{method} {url} failed: {e}") from e
    if response.status_code >= 400:
        raise TrialExpiryCheckError(
            f"{method} {url} returned HTTP {response.status_code}",
            status_code=response.status_code,
        )
    body = response.json()
    if not isinstance(body, dict):
        raise TrialExpiryCheckError(
            f"{method} {url} returned a JSON {type(body).__name__}, expected an object",
            status_code=response.status_code,
        )
    return body


def check_trial_expiry(settings: "Settings") -> dict[str, Any]:
    """Log the current report, run the sweep, and return the sweep payload."""
    url = _endpoint(settings)
    with httpx.Client(
        timeout=settings.CRON_REQUEST_TIMEOUT_SEC,
        headers=_headers(settings),
    ) as client:
        report = _call(client, "GET", url)
        logger.info(
            "Trial status: expired=%s expiring_soon=%s",
            report.get("expiredUsers", 0),
            report.get("expiringSoonUsers", 0),
        )
        sweep = _call(client, "POST", url)

    expired = sweep.get("expiredUsersCount", 0)
    logger.info(
        "Trial sweep done: expired_users=%s expired_tenants=%s results=%s",
        expired,
        sweep.get("expiredTenantsCount", 0),
        len(sweep.get("results") or []),
    )
    if expired > 0:
        logger.info("%s user(s) moved to TRIAL_EXPIRED", expired)
    else:
        logger.info("No trials to expire")
    return sweep


def main() -> int:
    """Run the trial-expiry check against the API."""
    settings = get_settings()
    logger.info("Trial expiry check starting against %s", settings.BASE_URL)
    try:
        check_trial_expiry(settings)
    except TrialExpiryCheckError as e:
        logger.error("Trial expiry check failed: %s", e.message)
        return 1
    except ValueError as e:
        logger.error("Trial expiry check got an unreadable response: %s", e)
        return 1
    logger.info("Trial expiry check completed")
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""API tests for login, logout, the auth dependencies and the signed-in user's account endpoints."""

import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from pydantic import SecretStr

from db_support import ApiTestCase, make_user, subscription

from app.core.config import get_settings
from app.core.security import create_access_token, decode_access_token, hash_password
from app.services.profile import demo_trial_subscription

PASSWORD = "Guvenli-Sifre-1"


def _password_hash() -> str:
    with patch("app.core.security.BCRYPT_ROUNDS", 4):
        return hash_password(PASSWORD)


class AuthTestCase(ApiTestCase):
    override_admin = False

    def sign_in_as(self, user) -> None:
        """Put a valid token for user in the client's cookie jar."""
        token = create_access_token(user.id, user.email, user.role, user.status)
        self.client.cookies.set(get_settings().ACCESS_TOKEN_COOKIE, token)


class TestLogin(AuthTestCase):
    def test_success_sets_http_only_cookie(self) -> None:
        user = make_user(self.db, email="doktor@klinik.com", password_hash=_password_hash())
        response = self.client.post(
            self.url("/auth/login"),
            json={"email": "Doktor@Klinik.com", "password": PASSWORD},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"]["id"], user.id)
        set_cookie = response.headers["set-cookie"]
        self.assertIn("access_token=", set_cookie)
        self.assertIn("HttpOnly", set_cookie)
        self.assertIn("SameSite=strict", set_cookie)

        claims = decode_access_token(response.cookies["access_token"])
        self.assertEqual(claims["sub"], user.id)
        self.assertEqual(claims["role"], "TENANT_USER")
        self.assertIsNotNone(self.reload(user.id).last_login_at)

        me = self.client.get(self.url("/auth/me"))
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()["email"], "doktor@klinik.com")

    def test_wrong_password_is_401(self) -> None:
        make_user(self.db, email="a@b.com", password_hash=_password_hash())
        response = self.client.post(
            self.url("/auth/login"), json={"email": "a@b.com", "password": "yanlis-sifre"}
        )
        self.assertEqual(response.status_code, 401)
        self.assertNotIn("set-cookie", response.headers)

    def test_unknown_email_is_401(self) -> None:
        response = self.client.post(
            self.url("/auth/login"), json={"email": "x@y.com", "password": PASSWORD}
        )
        self.assertEqual(response.status_code, 401)

    def test_short_password_is_400(self) -> None:
        response = self.client.post(
            self.url("/auth/login"), json={"email": "x@y.com", "password": "kisa"}
        )
        self.assertEqual(response.status_code, 400)

    def test_blocked_statuses_are_403_with_redirect(self) -> None:
        cases = {
            "SUSPENDED": "/suspended",
            "REJECTED": "/auth/rejected",
            "TRIAL_EXPIRED": "/subscription",
        }
        password_hash = _password_hash()
        for user_status, redirect in cases.items():
            with self.subTest(status=user_status):
                user = make_user(self.db, status=user_status, password_hash=password_hash)
                response = self.client.post(
                    self.url("/auth/login"), json={"email": user.email, "password": PASSWORD}
                )
                self.assertEqual(response.status_code, 403)
                self.assertEqual(response.json()["detail"]["redirectTo"], redirect)

    def test_expired_tenant_admin_without_subscription_is_blocked(self) -> None:
        user = make_user(
            self.db,
            role="TENANT_ADMIN",
            trial_end_date=datetime.now(timezone.utc) - timedelta(minutes=1),
            password_hash=_password_hash(),
        )
        response = self.client.post(
            self.url("/auth/login"), json={"email": user.email, "password": PASSWORD}
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["detail"]["redirectTo"], "/subscription")

    def test_expired_tenant_admin_with_subscription_logs_in(self) -> None:
        user = make_user(
            self.db,
            profile=subscription(),
            role="TENANT_ADMIN",
            trial_end_date=datetime.now(timezone.utc) - timedelta(days=3),
            password_hash=_password_hash(),
        )
        response = self.client.post(
            self.url("/auth/login"), json={"email": user.email, "password": PASSWORD}
        )
        self.assertEqual(response.status_code, 200)

    def test_remember_me_extends_cookie(self) -> None:
        user = make_user(self.db, password_hash=_password_hash())
        response = self.client.post(
            self.url("/auth/login"),
            json={"email": user.email, "password": PASSWORD, "rememberMe": True},
        )
        max_age = get_settings().JWT_REMEMBER_ME_DAYS * 86400
        self.assertIn(f"Max-Age={max_age}", response.headers["set-cookie"])


class TestLogout(AuthTestCase):
    def test_clears_cookie(self) -> None:
        response = self.client.post(self.url("/auth/logout"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Çıkış başarılı")
        set_cookie = response.headers["set-cookie"]
        self.assertTrue(set_cookie.startswith("access_token="))
        self.assertIn("Max-Age=0", set_cookie)
        self.assertIn("Path=/", set_cookie)

    def test_succeeds_when_signed_in(self) -> None:
        self.sign_in_as(make_user(self.db))
        response = self.client.post(self.url("/auth/logout"))
        self.assertEqual(response.status_code, 200)
        self.assertIn("Max-Age=0", response.headers["set-cookie"])


class TestAuthDependencies(AuthTestCase):
    def test_me_without_cookie_is_401(self) -> None:
        response = self.client.get(self.url("/auth/me"))
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["detail"], "Token bulunamadı")

    def test_garbage_token_is_401(self) -> None:
        self.client.cookies.set("access_token", "not-a-jwt")
        self.assertEqual(self.client.get(self.url("/auth/me")).status_code, 401)

    def test_deleted_user_token_is_401(self) -> None:
        user = make_user(self.db)
        self.sign_in_as(user)
        self.db.delete(user)
        self.db.commit()
        self.assertEqual(self.client.get(self.url("/auth/me")).status_code, 401)

    def test_non_admin_gets_403_on_admin_routes(self) -> None:
        self.sign_in_as(make_user(self.db, role="TENANT_ADMIN"))
        response = self.client.get(self.url("/admin/users"))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["detail"], "Yetkisiz erişim")

    def test_super_admin_cookie_passes(self) -> None:
        self.sign_in_as(make_user(self.db, role="SUPER_ADMIN"))
        self.assertEqual(self.client.get(self.url("/admin/users")).status_code, 200)
        self.assertEqual(self.client.get(self.url("/admin/trial-expiry-check")).status_code, 200)


class TestCronSecret(AuthTestCase):
    def setUp(self) -> None:
        super().setUp()
        settings = get_settings()
        patcher = patch.object(settings, "CRON_SECRET", SecretStr("cron-test-secret"))
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_valid_secret_runs_sweep(self) -> None:
        response = self.client.post(
            self.url("/admin/trial-expiry-check"), headers={"X-Cron-Secret": "cron-test-secret"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["expiredUsersCount"], 0)

    def test_wrong_secret_is_403(self) -> None:
        response = self.client.get(
            self.url("/admin/trial-expiry-check"), headers={"X-Cron-Secret": "wrong"}
        )
        self.assertEqual(response.status_code, 403)


class TestAccountEndpoints(AuthTestCase):
    def test_status_flags_expired_demo(self) -> None:
        now = datetime.now(timezone.utc)
        user = make_user(
            self.db,
            profile={"subscription": demo_trial_subscription(now - timedelta(days=31), 30)},
            trial_end_date=now - timedelta(days=1),
        )
        self.sign_in_as(user)
        body = self.client.get(self.url("/user/status")).json()
        self.assertTrue(body["trialExpired"])
        self.assertEqual(body["redirectTo"], "/subscription")

    def test_status_for_regular_user(self) -> None:
        self.sign_in_as(make_user(self.db))
        body = self.client.get(self.url("/user/status")).json()
        self.assertFalse(body["trialExpired"])
        self.assertIsNone(body["redirectTo"])

    def test_suspension_details(self) -> None:
        user = make_user(
            self.db,
            profile={"suspension": {"reason": "Ödeme", "canAppeal": True}},
            status="SUSPENDED",
        )
        self.sign_in_as(user)
        body = self.client.get(self.url("/user/suspension")).json()
        self.assertEqual(body["suspension"]["reason"], "Ödeme")

    def test_suspension_for_active_user_is_400(self) -> None:
        self.sign_in_as(make_user(self.db))
        self.assertEqual(self.client.get(self.url("/user/suspension")).status_code, 400)

    def test_suspension_without_record_is_404(self) -> None:
        self.sign_in_as(make_user(self.db, status="SUSPENDED"))
        self.assertEqual(self.client.get(self.url("/user/suspension")).status_code, 404)


if __name__ == "__main__":
    unittest.main()

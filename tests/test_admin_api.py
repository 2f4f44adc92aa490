"""API tests for the admin endpoints: user lifecycle, listings, tenants and the trial-expiry check."""

import json
import unittest
from datetime import datetime, timedelta, timezone

from db_support import ADMIN, ApiTestCase, make_tenant, make_user, subscription


class TestUpdateStatusEndpoint(ApiTestCase):
    def test_sets_status(self) -> None:
        user = make_user(self.db, status="PENDING_APPROVAL")
        response = self.client.post(
            self.url(f"/admin/users/{user.id}/status"), json={"status": "ACTIVE"}
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["user"]["status"], "ACTIVE")
        self.assertIn("aktif", body["message"])
        self.assertEqual(self.reload(user.id).status, "ACTIVE")

    def test_status_outside_allowed_set_is_400_and_not_written(self) -> None:
        user = make_user(self.db, status="ACTIVE")
        for value in ("REJECTED", "TRIAL_EXPIRED", "PENDING_APPROVAL", "GARBAGE"):
            with self.subTest(status=value):
                response = self.client.post(
                    self.url(f"/admin/users/{user.id}/status"), json={"status": value}
                )
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.json()["detail"], "Geçersiz durum bilgisi")
        self.assertEqual(self.reload(user.id).status, "ACTIVE")

    def test_missing_status_is_400(self) -> None:
        user = make_user(self.db)
        response = self.client.post(self.url(f"/admin/users/{user.id}/status"), json={})
        self.assertEqual(response.status_code, 400)

    def test_unknown_user_is_404(self) -> None:
        response = self.client.post(
            self.url("/admin/users/does-not-exist/status"), json={"status": "ACTIVE"}
        )
        self.assertEqual(response.status_code, 404)

    def test_camel_case_wire_format(self) -> None:
        user = make_user(self.db, trial_end_date=datetime.now(timezone.utc) + timedelta(days=3))
        body = self.client.post(
            self.url(f"/admin/users/{user.id}/status"), json={"status": "INACTIVE"}
        ).json()
        self.assertIn("trialEndDate", body["user"])
        self.assertIn("extraTrialDays", body["user"])
        self.assertNotIn("password_hash", body["user"])
        self.assertNotIn("passwordHash", body["user"])


class TestSuspendEndpoint(ApiTestCase):
    def test_suspends_by_composite_id(self) -> None:
        tenant = make_tenant(self.db)
        user = make_user(self.db, email="john_doe@example.com", tenant_id=tenant.id)
        response = self.client.post(
            self.url(f"/admin/users/{tenant.id}_john_doe@example.com/suspend"),
            json={
                "reason": "Ödeme alınamadı",
                "durationType": "temporary",
                "durationDays": 14,
                "canAppeal": True,
            },
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["data"]["user"]["status"], "SUSPENDED")
        self.assertEqual(body["data"]["suspension"]["durationDays"], 14)
        self.assertTrue(body["data"]["suspension"]["canAppeal"])
        self.assertIsNotNone(body["data"]["suspension"]["suspendedUntil"])

        stored = self.reload(user.id)
        self.assertEqual(stored.status, "SUSPENDED")
        self.assertEqual(json.loads(stored.profile)["suspension"]["reason"], "Ödeme alınamadı")

    def test_missing_reason_is_400(self) -> None:
        user = make_user(self.db)
        response = self.client.post(self.url(f"/admin/users/t_{user.email}/suspend"), json={})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.reload(user.id).status, "ACTIVE")

    def test_unknown_user_is_404(self) -> None:
        response = self.client.post(
            self.url("/admin/users/t_ghost@example.com/suspend"), json={"reason": "x"}
        )
        self.assertEqual(response.status_code, 404)

    def test_already_suspended_is_400(self) -> None:
        user = make_user(self.db, status="SUSPENDED")
        response = self.client.post(
            self.url(f"/admin/users/t_{user.email}/suspend"), json={"reason": "x"}
        )
        self.assertEqual(response.status_code, 400)

    def test_super_admin_cannot_be_suspended(self) -> None:
        root = make_user(self.db, role="SUPER_ADMIN")
        response = self.client.post(
            self.url(f"/admin/users/t_{root.email}/suspend"), json={"reason": "x"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.reload(root.id).status, "ACTIVE")

    def test_negative_duration_is_rejected(self) -> None:
        user = make_user(self.db)
        response = self.client.post(
            self.url(f"/admin/users/t_{user.email}/suspend"),
            json={"reason": "x", "durationDays": -1},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Geçersiz veri formatı")


class TestRejectApproveTrialDays(ApiTestCase):
    def test_reject_echoes_reason(self) -> None:
        user = make_user(self.db, status="PENDING_APPROVAL")
        response = self.client.post(
            self.url(f"/admin/users/{user.id}/reject"), json={"reason": "Eksik belge"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["reason"], "Eksik belge")
        self.assertEqual(self.reload(user.id).status, "REJECTED")

    def test_reject_unknown_is_404(self) -> None:
        response = self.client.post(self.url("/admin/users/nope/reject"), json={})
        self.assertEqual(response.status_code, 404)

    def test_approve(self) -> None:
        user = make_user(self.db, status="PENDING_APPROVAL")
        response = self.client.post(self.url(f"/admin/users/{user.id}/approve"))
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["user"]["status"], "ACTIVE")
        self.assertEqual(body["trialDaysLeft"], 30)

    def test_trial_days_add(self) -> None:
        now = datetime.now(timezone.utc)
        user = make_user(
            self.db,
            status="TRIAL_EXPIRED",
            trial_start_date=now - timedelta(days=20),
            trial_end_date=now - timedelta(days=5),
        )
        response = self.client.post(
            self.url(f"/admin/users/{user.id}/trial-days"), json={"days": 10, "action": "add"}
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["totalTrialDays"], 25)
        self.assertEqual(body["user"]["status"], "ACTIVE")
        self.assertEqual(body["message"], "Deneme süresi başarıyla uzatıldı")

    def test_trial_days_requires_trial(self) -> None:
        user = make_user(self.db)
        response = self.client.post(
            self.url(f"/admin/users/{user.id}/trial-days"), json={"days": 3, "action": "add"}
        )
        self.assertEqual(response.status_code, 400)

    def test_subscription_status(self) -> None:
        now = datetime.now(timezone.utc)
        user = make_user(self.db, trial_start_date=now, trial_end_date=now + timedelta(days=30))
        body = self.client.get(self.url(f"/admin/users/{user.id}/subscription-status")).json()
        self.assertTrue(body["hasSubscription"])
        self.assertEqual(body["subscriptionDetails"]["planId"], "legacy_monthly_plan")

        pending = make_user(self.db, status="PENDING_APPROVAL")
        body = self.client.get(self.url(f"/admin/users/{pending.id}/subscription-status")).json()
        self.assertFalse(body["hasSubscription"])
        self.assertEqual(body["userStatus"], "PENDING_APPROVAL")


class TestDeleteEndpoints(ApiTestCase):
    def test_delete(self) -> None:
        user = make_user(self.db, role="TENANT_ADMIN")
        response = self.client.delete(self.url(f"/admin/users/{user.id}"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["deletedUserId"], user.id)
        self.assertEqual(response.json()["userRole"], "TENANT_ADMIN")
        self.assertIsNone(self.reload(user.id))

    def test_delete_super_admin_is_400(self) -> None:
        root = make_user(self.db, role="SUPER_ADMIN")
        response = self.client.delete(self.url(f"/admin/users/{root.id}"))
        self.assertEqual(response.status_code, 400)
        self.assertIsNotNone(self.reload(root.id))

    def test_delete_unknown_is_404(self) -> None:
        self.assertEqual(self.client.delete(self.url("/admin/users/nope")).status_code, 404)

    def test_bulk_delete(self) -> None:
        a = make_user(self.db)
        b = make_user(self.db)
        root = make_user(self.db, role="SUPER_ADMIN")
        response = self.client.request(
            "DELETE",
            self.url("/admin/users/bulk-delete"),
            json={"userIds": [a.id, b.id, root.id]},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["deletedCount"], 2)
        self.assertIsNone(self.reload(a.id))
        self.assertIsNotNone(self.reload(root.id))

    def test_bulk_delete_self_is_400(self) -> None:
        response = self.client.request(
            "DELETE", self.url("/admin/users/bulk-delete"), json={"userIds": [ADMIN.id]}
        )
        self.assertEqual(response.status_code, 400)


class TestListings(ApiTestCase):
    def test_users_filtered_by_status(self) -> None:
        make_user(self.db, status="PENDING_APPROVAL")
        make_user(self.db)
        body = self.client.get(self.url("/admin/users"), params={"status": "PENDING_APPROVAL"}).json()
        self.assertEqual(body["count"], 1)
        self.assertEqual(body["users"][0]["status"], "PENDING_APPROVAL")
        self.assertEqual(self.client.get(self.url("/admin/users")).json()["count"], 2)

    def test_unknown_status_filter_is_400(self) -> None:
        response = self.client.get(self.url("/admin/users"), params={"status": "NOPE"})
        self.assertEqual(response.status_code, 400)

    def test_pending_users_and_dashboard(self) -> None:
        make_user(self.db, status="PENDING_APPROVAL")
        make_user(self.db)
        self.assertEqual(self.client.get(self.url("/admin/pending-users")).json()["count"], 1)
        stats = self.client.get(self.url("/admin/dashboard-stats")).json()
        self.assertEqual(stats["totalUsers"], 2)
        self.assertEqual(stats["pendingUsers"], 1)
        self.assertEqual(len(stats["recentActivity"]), 2)

    def test_tenants_grouping(self) -> None:
        tenant = make_tenant(self.db, name="Göz Merkezi")
        make_user(self.db, role="TENANT_ADMIN", tenant_id=tenant.id)
        make_user(self.db, status="PENDING_APPROVAL", tenant_id=tenant.id)
        loner = make_user(self.db, profile={"tenantName": "Dr. Ayşe Muayenehanesi"})
        make_user(self.db, role="SUPER_ADMIN")

        body = self.client.get(self.url("/admin/tenants")).json()

        self.assertEqual(body["totalTenants"], 2)
        self.assertEqual(body["totalUsers"], 3)
        by_id = {t["tenantId"]: t for t in body["tenants"]}
        self.assertEqual(by_id[tenant.id]["userCount"], 2)
        self.assertEqual(by_id[tenant.id]["pendingUsers"], 1)
        individual = by_id[f"individual-{loner.id}"]
        self.assertEqual(individual["tenantName"], "Dr. Ayşe Muayenehanesi")
        self.assertEqual(individual["tenantSlug"], "dr-ayse-muayenehanesi")

    def test_blocked_users(self) -> None:
        now = datetime.now(timezone.utc)
        blocked = make_user(self.db, role="TENANT_ADMIN", trial_end_date=now - timedelta(days=1))
        make_user(
            self.db,
            profile=subscription(now),
            role="TENANT_ADMIN",
            trial_end_date=now - timedelta(days=1),
        )
        body = self.client.get(self.url("/admin/blocked-users")).json()
        self.assertEqual([u["id"] for u in body["expiredUsers"]], [blocked.id])


class TestTrialExpiryCheckEndpoint(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        now = datetime.now(timezone.utc)
        self.tenant = make_tenant(self.db)
        self.admin = make_user(
            self.db, role="TENANT_ADMIN", tenant_id=self.tenant.id, trial_end_date=now - timedelta(days=1)
        )
        self.member = make_user(self.db, tenant_id=self.tenant.id)
        self.soon = make_user(self.db, trial_end_date=now + timedelta(days=1))

    def test_report_is_read_only(self) -> None:
        body = self.client.get(self.url("/admin/trial-expiry-check")).json()
        self.assertEqual(body["expiredUsers"], 1)
        self.assertEqual(body["expiringSoonUsers"], 1)
        self.assertEqual(self.reload(self.admin.id).status, "ACTIVE")

    def test_sweep_expires_user_and_tenant_members(self) -> None:
        response = self.client.post(self.url("/admin/trial-expiry-check"))
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["expiredUsersCount"], 1)
        self.assertEqual(body["expiredTenantsCount"], 1)
        self.assertEqual(body["results"][0]["subUsersAffected"], 1)
        self.assertEqual(self.reload(self.admin.id).status, "TRIAL_EXPIRED")
        self.assertEqual(self.reload(self.member.id).status, "TRIAL_EXPIRED")
        self.assertEqual(self.reload(self.soon.id).status, "ACTIVE")


class TestAdminAuthorization(ApiTestCase):
    """Without the test override, admin routes need a super-admin cookie."""

    override_admin = False

    def test_admin_routes_require_token(self) -> None:
        user = make_user(self.db)
        response = self.client.post(
            self.url(f"/admin/users/{user.id}/status"), json={"status": "ACTIVE"}
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(self.client.get(self.url("/admin/trial-expiry-check")).status_code, 401)


if __name__ == "__main__":
    unittest.main()

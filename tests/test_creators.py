"""
Creator application and tracking id tests.

Verifies:
- Applying twice keeps one open application
- Approval grants the creator role; each application is decided once
- Only admins list and decide applications
"""

from datetime import datetime, timezone

import pytest

from conftest import FOUNDER, PLAYER, register
from contest_arena_api.app.core.tracking import TRACKING_ID_PATTERN, generate_tracking_id


class TestApply:
    def test_apply_is_idempotent_while_pending(self, client, auth, player):
        first = client.post("/creator", headers=auth(PLAYER))
        second = client.post("/creator", headers=auth(PLAYER))
        assert first.status_code == 201
        assert first.json()["status"] == "pending"
        assert second.json()["id"] == first.json()["id"]

    def test_new_application_after_rejection(self, client, auth, founder, player):
        first = client.post("/creator", headers=auth(PLAYER)).json()
        client.patch(f"/creator/{first['id']}", json={"status": "rejected"}, headers=auth(FOUNDER))
        second = client.post("/creator", headers=auth(PLAYER)).json()
        assert second["id"] != first["id"]
        assert second["status"] == "pending"


class TestDecide:
    def test_approval_grants_creator_role(self, client, auth, founder, player):
        application = client.post("/creator", headers=auth(PLAYER)).json()
        resp = client.patch(f"/creator/{application['id']}", json={"status": "approved"}, headers=auth(FOUNDER))
        assert resp.status_code == 200
        assert resp.json()["status"] == "approved"
        assert resp.json()["decided_at"] is not None
        assert client.get(f"/users/{PLAYER}/role").json()["role"] == "creator"

    def test_rejection_keeps_role(self, client, auth, founder, player):
        application = client.post("/creator", headers=auth(PLAYER)).json()
        client.patch(f"/creator/{application['id']}", json={"status": "rejected"}, headers=auth(FOUNDER))
        assert client.get(f"/users/{PLAYER}/role").json()["role"] == "user"

    def test_admin_applicant_stays_admin(self, client, auth, founder):
        application = client.post("/creator", headers=auth(FOUNDER)).json()
        client.patch(f"/creator/{application['id']}", json={"status": "approved"}, headers=auth(FOUNDER))
        assert client.get(f"/users/{FOUNDER}/role").json()["role"] == "admin"

    def test_second_decision_refused(self, client, auth, founder, player):
        application = client.post("/creator", headers=auth(PLAYER)).json()
        client.patch(f"/creator/{application['id']}", json={"status": "approved"}, headers=auth(FOUNDER))
        resp = client.patch(f"/creator/{application['id']}", json={"status": "rejected"}, headers=auth(FOUNDER))
        assert resp.status_code == 400
        assert resp.json()["error"] == "AlreadyDecided"
        assert client.get(f"/users/{PLAYER}/role").json()["role"] == "creator"

    def test_invalid_status(self, client, auth, founder, player):
        application = client.post("/creator", headers=auth(PLAYER)).json()
        resp = client.patch(f"/creator/{application['id']}", json={"status": "maybe"}, headers=auth(FOUNDER))
        assert resp.status_code == 400
        assert resp.json()["error"] == "InvalidStatus"

    def test_unknown_application(self, client, auth, founder):
        resp = client.patch("/creator/404", json={"status": "approved"}, headers=auth(FOUNDER))
        assert resp.status_code == 404

    def test_non_admin_cannot_decide(self, client, auth, player):
        application = client.post("/creator", headers=auth(PLAYER)).json()
        resp = client.patch(f"/creator/{application['id']}", json={"status": "approved"}, headers=auth(PLAYER))
        assert resp.status_code == 403


class TestListing:
    def test_admin_filters_by_status(self, client, auth, founder, player):
        register(client, "second@arena.test")
        first = client.post("/creator", headers=auth(PLAYER)).json()
        client.post("/creator", headers=auth("second@arena.test"))
        client.patch(f"/creator/{first['id']}", json={"status": "approved"}, headers=auth(FOUNDER))

        everything = client.get("/creator", headers=auth(FOUNDER)).json()
        pending = client.get("/creator", params={"status": "pending"}, headers=auth(FOUNDER)).json()
        assert len(everything) == 2
        assert [a["email"] for a in pending] == ["second@arena.test"]

    def test_non_admin_cannot_list(self, client, auth, player):
        assert client.get("/creator", headers=auth(PLAYER)).status_code == 403


class TestTrackingId:
    def test_format(self):
        assert TRACKING_ID_PATTERN.match(generate_tracking_id())

    def test_uses_utc_date(self):
        moment = datetime(2026, 3, 1, 23, 30, tzinfo=timezone.utc)
        assert generate_tracking_id(moment).startswith("PRCL-20260301-")

    @pytest.mark.parametrize("value", ["PRCL-2026031-ABCDEF", "PRCL-20260301-abcdef", "XXXX-20260301-ABCDEF"])
    def test_pattern_rejects_malformed(self, value):
        assert TRACKING_ID_PATTERN.match(value) is None

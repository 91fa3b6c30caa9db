"""
User registration and role-change tests.

Verifies:
- Registration is idempotent per email
- Only the original admin can grant or revoke the admin role
- Non-admins cannot change roles at all
"""

import asyncio

import pytest

from conftest import CREATOR, FOUNDER, PLAYER, register, set_role
from contest_arena_api.app.core.db import Database
from contest_arena_api.app.core.errors import Forbidden, InvalidInput, NotFound
from contest_arena_api.app.core.roles import Role
from contest_arena_api.app.repositories.user_repository import UserRepository
from contest_arena_api.app.schemas.user import UserCreate
from contest_arena_api.app.services.user_service import UserService


class TestRegistration:
    def test_register_twice_keeps_one_user(self, client, settings):
        first = client.post("/users", json={"email": "a@x.com", "name": "A"})
        second = client.post("/users", json={"email": "a@x.com", "name": "Someone else"})

        assert first.status_code == 201
        assert first.json()["created"] is True
        assert second.status_code == 200
        assert second.json()["message"] == "user already exists"
        assert second.json()["user"]["id"] == first.json()["user"]["id"]
        assert second.json()["user"]["name"] == "A"

        conn = Database(settings.database_url).connect()
        try:
            count = conn.execute("SELECT COUNT(*) FROM users WHERE email = 'a@x.com'").fetchone()[0]
        finally:
            conn.close()
        assert count == 1

    def test_new_users_get_user_role(self, client):
        user = register(client, PLAYER)
        assert user["role"] == "user"

    def test_bootstrap_email_becomes_admin(self, client, founder):
        assert founder["role"] == "admin"

    def test_missing_email_is_invalid_input(self, client):
        resp = client.post("/users", json={"name": "nobody"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "InvalidInput"

    def test_role_lookup(self, client, founder):
        resp = client.get(f"/users/{FOUNDER}/role")
        assert resp.status_code == 200
        assert resp.json() == {"email": FOUNDER, "role": "admin"}

    def test_role_lookup_unknown_user(self, client):
        resp = client.get("/users/ghost@x.com/role")
        assert resp.status_code == 404


class TestRoleChanges:
    def test_admin_makes_creator(self, client, auth, founder, player):
        resp = set_role(client, auth, player["id"], "creator")
        assert resp.status_code == 200
        assert resp.json()["role"] == "creator"
        assert client.get(f"/users/{PLAYER}/role").json()["role"] == "creator"

    def test_original_admin_grants_admin(self, client, auth, founder, player):
        resp = set_role(client, auth, player["id"], "admin")
        assert resp.status_code == 200
        assert resp.json()["role"] == "admin"

    def test_promoted_admin_cannot_mint_admins(self, client, auth, founder):
        deputy = register(client, "deputy@arena.test")
        target = register(client, "target@arena.test")
        assert set_role(client, auth, deputy["id"], "admin").status_code == 200

        resp = set_role(client, auth, target["id"], "admin", requester="deputy@arena.test")
        assert resp.status_code == 403
        assert client.get("/users/target@arena.test/role").json()["role"] == "user"

    def test_promoted_admin_cannot_demote_founder(self, client, auth, founder):
        deputy = register(client, "deputy@arena.test")
        assert set_role(client, auth, deputy["id"], "admin").status_code == 200

        resp = set_role(client, auth, founder["id"], "user", requester="deputy@arena.test")
        assert resp.status_code == 403
        assert client.get(f"/users/{FOUNDER}/role").json()["role"] == "admin"

    def test_promoted_admin_can_still_manage_creators(self, client, auth, founder, player):
        deputy = register(client, "deputy@arena.test")
        assert set_role(client, auth, deputy["id"], "admin").status_code == 200

        resp = set_role(client, auth, player["id"], "creator", requester="deputy@arena.test")
        assert resp.status_code == 200

    def test_creator_cannot_grant_admin(self, client, auth, creator, player):
        resp = set_role(client, auth, player["id"], "admin", requester=CREATOR)
        assert resp.status_code == 403

    def test_unknown_role(self, client, auth, founder, player):
        resp = set_role(client, auth, player["id"], "overlord")
        assert resp.status_code == 400
        assert resp.json()["error"] == "InvalidRole"

    def test_unknown_user(self, client, auth, founder):
        resp = set_role(client, auth, 9999, "creator")
        assert resp.status_code == 404


class TestRoleServiceWithoutAdmin:
    """With no admin at all, admin-role changes are refused, not allowed."""

    @pytest.fixture
    def service(self, tmp_path):
        db = Database(str(tmp_path / "bootstrap.db"))
        db.init_db()
        return UserService(UserRepository(db))

    def test_admin_grant_refused_without_original_admin(self, service):
        user, _ = asyncio.run(service.register(UserCreate(email="a@x.com")))
        with pytest.raises(Forbidden):
            asyncio.run(service.change_role(user.id, "admin", "a@x.com"))
        assert asyncio.run(service.get_role("a@x.com")) == Role.USER

    def test_non_admin_change_allowed(self, service):
        user, _ = asyncio.run(service.register(UserCreate(email="a@x.com")))
        updated = asyncio.run(service.change_role(user.id, "creator", "someone@x.com"))
        assert updated.role == Role.CREATOR

    def test_invalid_role_and_missing_user(self, service):
        with pytest.raises(InvalidInput):
            asyncio.run(service.change_role(1, "root", "a@x.com"))
        with pytest.raises(NotFound):
            asyncio.run(service.change_role(42, "user", "a@x.com"))

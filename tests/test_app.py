"""
Application start-up tests.

Verifies:
- Building the app leaves the database file alone
- Migrations run when the app starts serving
"""

import sqlite3

from fastapi.testclient import TestClient

from contest_arena_api.app.core.db import MIGRATIONS
from contest_arena_api.app.main import create_app


class TestStartup:
    def test_create_app_does_not_touch_database(self, settings, verifier, gateway, tmp_path):
        create_app(settings=settings, verifier=verifier, gateway=gateway)
        assert not (tmp_path / "arena.db").exists()

    def test_startup_applies_migrations(self, settings, verifier, gateway, tmp_path):
        app = create_app(settings=settings, verifier=verifier, gateway=gateway)
        with TestClient(app) as client:
            assert client.get("/").status_code == 200

        conn = sqlite3.connect(tmp_path / "arena.db")
        try:
            version = conn.execute("SELECT MAX(version) FROM migrations").fetchone()[0]
        finally:
            conn.close()
        assert version == MIGRATIONS[-1][0]

    def test_startup_is_repeatable(self, settings, verifier, gateway):
        for _ in range(2):
            app = create_app(settings=settings, verifier=verifier, gateway=gateway)
            with TestClient(app) as client:
                assert client.post("/users", json={"email": "a@x.com"}).status_code in (200, 201)

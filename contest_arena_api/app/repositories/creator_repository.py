"""Persistence for creator-role applications."""

import sqlite3
from typing import List, Optional

from ..core.db import Database
from ..core.tracking import utcnow_iso
from ..schemas.creator import CreatorApplicationRead

_COLUMNS = "id, email, status, created_at, decided_at"


class CreatorApplicationRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    @staticmethod
    def _to_application(row: sqlite3.Row) -> CreatorApplicationRead:
        return CreatorApplicationRead(**{key: row[key] for key in row.keys()})

    def insert(self, email: str) -> int:
        with self._db.cursor() as cursor:
            cursor.execute(
                "INSERT INTO creator_applications (email, status, created_at) VALUES (?, 'pending', ?)",
                (email, utcnow_iso()),
            )
            return cursor.lastrowid

    def get(self, application_id: int) -> Optional[CreatorApplicationRead]:
        conn = self._db.connect()
        try:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM creator_applications WHERE id = ?",
                (application_id,),
            ).fetchone()
            return self._to_application(row) if row else None
        finally:
            conn.close()

    def find_pending(self, email: str) -> Optional[CreatorApplicationRead]:
        conn = self._db.connect()
        try:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM creator_applications "
                "WHERE email = ? AND status = 'pending' ORDER BY id ASC LIMIT 1",
                (email,),
            ).fetchone()
            return self._to_application(row) if row else None
        finally:
            conn.close()

    def list_applications(self, status: Optional[str] = None) -> List[CreatorApplicationRead]:
        query = f"SELECT {_COLUMNS} FROM creator_applications"
        params: tuple = ()
        if status:
            query += " WHERE status = ?"
            params = (status,)
        query += " ORDER BY created_at ASC, id ASC"
        conn = self._db.connect()
        try:
            return [self._to_application(row) for row in conn.execute(query, params).fetchall()]
        finally:
            conn.close()

    def decide(self, application_id: int, status: str) -> bool:
        """Move a pending application to ``status``.  Returns False if it was not pending."""
        with self._db.cursor() as cursor:
            cursor.execute(
                "UPDATE creator_applications SET status = ?, decided_at = ? WHERE id = ? AND status = 'pending'",
                (status, utcnow_iso(), application_id),
            )
            return cursor.rowcount == 1

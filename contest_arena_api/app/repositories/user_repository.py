"""
Persistence for users.

Email is the natural key and is UNIQUE in the table, so registration is
an ``INSERT ... ON CONFLICT DO NOTHING``: two concurrent first sign-ins
for the same email still produce a single row.
"""

import sqlite3
from typing import List, Optional

from ..core.db import Database
from ..core.roles import Role
from ..core.tracking import utcnow_iso
from ..schemas.user import UserRead

_COLUMNS = "id, email, name, photo_url, role, created_at, updated_at"


class UserRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    @staticmethod
    def _to_user(row: sqlite3.Row) -> UserRead:
        return UserRead(
            id=row["id"],
            email=row["email"],
            name=row["name"],
            photo_url=row["photo_url"],
            role=row["role"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def insert_if_absent(self, email: str, name: Optional[str], photo_url: Optional[str], role: Role) -> bool:
        """Insert a user unless the email exists.  Returns True if inserted."""
        with self._db.cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO users (email, name, photo_url, role, created_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(email) DO NOTHING
                """,
                (email, name, photo_url, role.value, utcnow_iso()),
            )
            return cursor.rowcount == 1

    def get_by_email(self, email: str) -> Optional[UserRead]:
        conn = self._db.connect()
        try:
            row = conn.execute(f"SELECT {_COLUMNS} FROM users WHERE email = ?", (email,)).fetchone()
            return self._to_user(row) if row else None
        finally:
            conn.close()

    def get_by_id(self, user_id: int) -> Optional[UserRead]:
        conn = self._db.connect()
        try:
            row = conn.execute(f"SELECT {_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()
            return self._to_user(row) if row else None
        finally:
            conn.close()

    def get_many_by_email(self, emails: List[str]) -> List[UserRead]:
        if not emails:
            return []
        placeholders = ", ".join("?" for _ in emails)
        conn = self._db.connect()
        try:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM users WHERE email IN ({placeholders})",
                tuple(emails),
            ).fetchall()
            return [self._to_user(row) for row in rows]
        finally:
            conn.close()

    def earliest_admin(self) -> Optional[UserRead]:
        """Return the admin with the earliest creation time (the original admin)."""
        conn = self._db.connect()
        try:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM users WHERE role = ? ORDER BY created_at ASC, id ASC LIMIT 1",
                (Role.ADMIN.value,),
            ).fetchone()
            return self._to_user(row) if row else None
        finally:
            conn.close()

    def set_role(self, user_id: int, role: Role) -> None:
        with self._db.cursor() as cursor:
            cursor.execute(
                "UPDATE users SET role = ?, updated_at = ? WHERE id = ?",
                (role.value, utcnow_iso(), user_id),
            )

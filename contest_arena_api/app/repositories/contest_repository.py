"""
Persistence for contests.

Every mutation is a single UPDATE against one row, which SQLite
applies atomically.  In particular ``record_payment`` increments the
participant counter in the database rather than reading, adding and
writing it back.
"""

import sqlite3
from typing import Any, Dict, List, Optional

from ..core.db import Database
from ..core.tracking import utcnow_iso
from ..schemas.contest import ContestCreate, ContestRead

_COLUMNS = (
    "id, creator_email, name, image, description, contest_type, price, prize_money, "
    "task_instruction, deadline, status, created_at, updated_at, approved_at, rejected_at, "
    "tracking_id, payment_status, transaction_id, payment_tracking_id, participants_count, "
    "winner_email, winner_declared_at"
)

# Fields a creator may change through an edit.
EDITABLE_FIELDS = (
    "name",
    "image",
    "description",
    "contest_type",
    "price",
    "prize_money",
    "task_instruction",
    "deadline",
)


class ContestRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    @staticmethod
    def _to_contest(row: sqlite3.Row) -> ContestRead:
        return ContestRead(**{key: row[key] for key in row.keys()})

    @staticmethod
    def _serialise(value: Any) -> Any:
        return value.isoformat() if hasattr(value, "isoformat") else value

    def insert(self, creator_email: str, data: ContestCreate) -> int:
        fields = data.model_dump()
        with self._db.cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO contests (creator_email, name, image, description, contest_type, price,
                                      prize_money, task_instruction, deadline, status, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, 'pending', ?)
                """,
                (
                    creator_email,
                    fields["name"],
                    fields["image"],
                    fields["description"],
                    fields["contest_type"],
                    fields["price"],
                    fields["prize_money"],
                    fields["task_instruction"],
                    self._serialise(fields["deadline"]),
                    utcnow_iso(),
                ),
            )
            return cursor.lastrowid

    def get(self, contest_id: int) -> Optional[ContestRead]:
        conn = self._db.connect()
        try:
            row = conn.execute(f"SELECT {_COLUMNS} FROM contests WHERE id = ?", (contest_id,)).fetchone()
            return self._to_contest(row) if row else None
        finally:
            conn.close()

    def list_contests(self, status: Optional[str] = None, creator_email: Optional[str] = None) -> List[ContestRead]:
        query = f"SELECT {_COLUMNS} FROM contests"
        where_clauses: list[str] = []
        params: list = []
        if status:
            where_clauses.append("status = ?")
            params.append(status)
        if creator_email:
            where_clauses.append("creator_email = ?")
            params.append(creator_email)
        if where_clauses:
            query += " WHERE " + " AND ".join(where_clauses)
        query += " ORDER BY created_at DESC, id DESC"
        conn = self._db.connect()
        try:
            return [self._to_contest(row) for row in conn.execute(query, tuple(params)).fetchall()]
        finally:
            conn.close()

    def mark_approved(self, contest_id: int, tracking_id: str) -> None:
        with self._db.cursor() as cursor:
            cursor.execute(
                "UPDATE contests SET status = 'approved', approved_at = ?, tracking_id = ? WHERE id = ?",
                (utcnow_iso(), tracking_id, contest_id),
            )

    def mark_rejected(self, contest_id: int) -> None:
        with self._db.cursor() as cursor:
            cursor.execute(
                "UPDATE contests SET status = 'rejected', rejected_at = ? WHERE id = ?",
                (utcnow_iso(), contest_id),
            )

    def update_fields(self, contest_id: int, changes: Dict[str, Any]) -> None:
        """Apply ``changes`` (restricted to ``EDITABLE_FIELDS``) and stamp ``updated_at``."""
        assignments = []
        values = []
        for field in EDITABLE_FIELDS:
            if field in changes:
                assignments.append(f"{field} = ?")
                values.append(self._serialise(changes[field]))
        assignments.append("updated_at = ?")
        values.append(utcnow_iso())
        values.append(contest_id)
        with self._db.cursor() as cursor:
            cursor.execute(f"UPDATE contests SET {', '.join(assignments)} WHERE id = ?", tuple(values))

    def delete(self, contest_id: int) -> bool:
        with self._db.cursor() as cursor:
            cursor.execute("DELETE FROM contests WHERE id = ?", (contest_id,))
            return cursor.rowcount == 1

    def record_payment(self, contest_id: int, transaction_id: str, tracking_id: str) -> bool:
        """Count one more participant and stamp the latest payment on the contest."""
        with self._db.cursor() as cursor:
            cursor.execute(
                """
                UPDATE contests
                SET participants_count = participants_count + 1,
                    payment_status = 'paid',
                    transaction_id = ?,
                    payment_tracking_id = ?
                WHERE id = ?
                """,
                (transaction_id, tracking_id, contest_id),
            )
            return cursor.rowcount == 1

    def mark_winner(self, contest_id: int, winner_email: str) -> None:
        with self._db.cursor() as cursor:
            cursor.execute(
                "UPDATE contests SET winner_email = ?, winner_declared_at = ? WHERE id = ?",
                (winner_email, utcnow_iso(), contest_id),
            )

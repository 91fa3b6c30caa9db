"""
Persistence for payments and their submissions.

``insert_if_absent`` is the idempotency primitive of the payment flow.
``payments.transaction_id`` carries a UNIQUE constraint and the insert
uses ``ON CONFLICT(transaction_id) DO NOTHING``, so when two
confirmations of the same transaction race, exactly one of them
inserts and the other observes ``rowcount == 0``.
"""

import sqlite3
from typing import Dict, List, Optional

from ..core.db import Database
from ..core.tracking import utcnow_iso
from ..schemas.payment import PaymentRead, SubmissionRead

_COLUMNS = (
    "id, transaction_id, tracking_id, contest_id, email, amount, currency, session_id, "
    "payment_status, is_winner, contest_winner_declared, created_at"
)


class PaymentRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    def _hydrate(self, conn: sqlite3.Connection, rows: List[sqlite3.Row]) -> List[PaymentRead]:
        """Build payment models and attach their submissions in submission order."""
        if not rows:
            return []
        ids = [row["id"] for row in rows]
        placeholders = ", ".join("?" for _ in ids)
        by_payment: Dict[int, List[SubmissionRead]] = {payment_id: [] for payment_id in ids}
        for sub in conn.execute(
            f"SELECT id, payment_id, link, submitted_at FROM submissions "
            f"WHERE payment_id IN ({placeholders}) ORDER BY submitted_at ASC, id ASC",
            tuple(ids),
        ).fetchall():
            by_payment[sub["payment_id"]].append(
                SubmissionRead(id=sub["id"], link=sub["link"], submitted_at=sub["submitted_at"])
            )
        return [
            PaymentRead(
                id=row["id"],
                transaction_id=row["transaction_id"],
                tracking_id=row["tracking_id"],
                contest_id=row["contest_id"],
                email=row["email"],
                amount=row["amount"],
                currency=row["currency"],
                payment_status=row["payment_status"],
                created_at=row["created_at"],
                is_winner=bool(row["is_winner"]),
                contest_winner_declared=bool(row["contest_winner_declared"]),
                submissions=by_payment[row["id"]],
            )
            for row in rows
        ]

    def _select(self, where: str, params: tuple, order: str = "created_at ASC, id ASC") -> List[PaymentRead]:
        conn = self._db.connect()
        try:
            rows = conn.execute(f"SELECT {_COLUMNS} FROM payments WHERE {where} ORDER BY {order}", params).fetchall()
            return self._hydrate(conn, rows)
        finally:
            conn.close()

    def insert_if_absent(
        self,
        transaction_id: str,
        tracking_id: str,
        contest_id: int,
        email: str,
        amount: float,
        currency: Optional[str],
        session_id: Optional[str],
    ) -> bool:
        """Record a paid transaction unless it is already recorded.

        Returns True if this call inserted the row, False if a row with
        the same ``transaction_id`` already existed.
        """
        with self._db.cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO payments (transaction_id, tracking_id, contest_id, email, amount,
                                      currency, session_id, payment_status, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, 'paid', ?)
                ON CONFLICT(transaction_id) DO NOTHING
                """,
                (transaction_id, tracking_id, contest_id, email, amount, currency, session_id, utcnow_iso()),
            )
            return cursor.rowcount == 1

    def get_by_transaction(self, transaction_id: str) -> Optional[PaymentRead]:
        found = self._select("transaction_id = ?", (transaction_id,))
        return found[0] if found else None

    def get(self, payment_id: int) -> Optional[PaymentRead]:
        found = self._select("id = ?", (payment_id,))
        return found[0] if found else None

    def list_paid_for_contest(self, contest_id: int) -> List[PaymentRead]:
        return self._select("contest_id = ? AND payment_status = 'paid'", (contest_id,))

    def list_for_email(self, email: str) -> List[PaymentRead]:
        return self._select("email = ?", (email,), order="created_at DESC, id DESC")

    def latest_paid(self, email: str, contest_id: int) -> Optional[PaymentRead]:
        found = self._select(
            "email = ? AND contest_id = ? AND payment_status = 'paid'",
            (email, contest_id),
            order="created_at DESC, id DESC",
        )
        return found[0] if found else None

    def add_submission(self, payment_id: int, link: str) -> SubmissionRead:
        submitted_at = utcnow_iso()
        with self._db.cursor() as cursor:
            cursor.execute(
                "INSERT INTO submissions (payment_id, link, submitted_at) VALUES (?, ?, ?)",
                (payment_id, link, submitted_at),
            )
            submission_id = cursor.lastrowid
        return SubmissionRead(id=submission_id, link=link, submitted_at=submitted_at)

    def mark_winner(self, payment_id: int, contest_id: int) -> None:
        """Flag ``payment_id`` as the winner and every payment of the contest as decided."""
        with self._db.cursor() as cursor:
            cursor.execute(
                "UPDATE payments SET contest_winner_declared = 1 WHERE contest_id = ?",
                (contest_id,),
            )
            cursor.execute("UPDATE payments SET is_winner = 1 WHERE id = ?", (payment_id,))

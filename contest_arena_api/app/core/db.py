"""
SQLite storage and a simple migration system.

``Database`` owns the location of the SQLite file and hands out
connections (``connect``) or a committing cursor (``cursor``).  One
instance is created per process by ``core.container`` and passed to
the repositories; nothing in the application opens the database on its
own.

``init_db`` stores applied migration versions in the ``migrations``
table and executes new migrations in order.  If you add a migration,
append it to ``MIGRATIONS`` with an incremented version number.

The four logical collections of the service map onto the tables
``users``, ``contests``, ``payments`` (with its ``submissions`` child
table) and ``creator_applications``.  ``payments.transaction_id`` is
UNIQUE: the storage layer, not the reconciler, guarantees that a
gateway transaction is recorded at most once.
"""

import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


MIGRATIONS: list[tuple[int, str]] = [
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL UNIQUE,
            name TEXT,
            photo_url TEXT,
            role TEXT NOT NULL DEFAULT 'user',
            created_at TEXT NOT NULL,
            updated_at TEXT
        );

        CREATE TABLE IF NOT EXISTS contests (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            creator_email TEXT NOT NULL,
            name TEXT NOT NULL,
            image TEXT,
            description TEXT,
            contest_type TEXT,
            price INTEGER NOT NULL,
            prize_money INTEGER NOT NULL DEFAULT 0,
            task_instruction TEXT,
            deadline TEXT,
            status TEXT NOT NULL DEFAULT 'pending',
            created_at TEXT NOT NULL,
            updated_at TEXT,
            approved_at TEXT,
            rejected_at TEXT,
            tracking_id TEXT,
            payment_status TEXT,
            transaction_id TEXT,
            payment_tracking_id TEXT,
            participants_count INTEGER NOT NULL DEFAULT 0
        );

        CREATE TABLE IF NOT EXISTS payments (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            transaction_id TEXT NOT NULL UNIQUE,
            tracking_id TEXT NOT NULL,
            contest_id INTEGER NOT NULL,
            email TEXT NOT NULL,
            amount REAL NOT NULL DEFAULT 0,
            currency TEXT,
            session_id TEXT,
            payment_status TEXT NOT NULL DEFAULT 'paid',
            is_winner INTEGER NOT NULL DEFAULT 0,
            contest_winner_declared INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_payments_contest ON payments (contest_id);
        CREATE INDEX IF NOT EXISTS idx_payments_email ON payments (email);

        CREATE TABLE IF NOT EXISTS submissions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            payment_id INTEGER NOT NULL,
            link TEXT NOT NULL,
            submitted_at TEXT NOT NULL,
            FOREIGN KEY(payment_id) REFERENCES payments(id)
        );

        CREATE TABLE IF NOT EXISTS creator_applications (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'pending',
            created_at TEXT NOT NULL,
            decided_at TEXT
        );
        """,
    ),
    (
        2,
        """
        -- Winner declaration is stamped on the contest as well as on the
        -- payments so contest listings can show the result directly.
        ALTER TABLE contests ADD COLUMN winner_email TEXT;
        ALTER TABLE contests ADD COLUMN winner_declared_at TEXT;
        """,
    ),
]


class Database:
    """Connection factory for one SQLite file."""

    def __init__(self, url: str) -> None:
        self.path = self.resolve_path(url)

    @staticmethod
    def resolve_path(url: str) -> str:
        """Compute the path to the SQLite database file.

        Absolute paths and the special ``:memory:`` name are used as
        given; relative paths are resolved against the project root.
        """
        if url == ":memory:" or os.path.isabs(url):
            return url
        base_dir = Path(__file__).resolve().parent.parent.parent.parent
        return str((base_dir / url).resolve())

    def connect(self) -> sqlite3.Connection:
        """Open a new connection with rows addressable by column name."""
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def cursor(self) -> Iterator[sqlite3.Cursor]:
        """Yield a cursor, commit on success and always close the connection."""
        conn = self.connect()
        try:
            yield conn.cursor()
            conn.commit()
        finally:
            conn.close()

    def init_db(self) -> int:
        """Apply pending migrations and return the resulting schema version."""
        with self.cursor() as cursor:
            cursor.execute("CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)")
            row = cursor.execute("SELECT MAX(version) AS version FROM migrations").fetchone()
            current_version = row["version"] if row and row["version"] is not None else 0

            for version, sql in MIGRATIONS:
                if version > current_version:
                    cursor.executescript(sql)
                    cursor.execute("INSERT INTO migrations (version) VALUES (?)", (version,))
                    current_version = version
        return current_version

from __future__ import annotations

import sqlite3
from pathlib import Path

from .errors import PersistenceConnectError


DEFAULT_TIMEOUT_SECONDS = 5.0


def get_connection(db_path: str, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path, timeout=timeout)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    with get_connection(db_path, timeout) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS records (
                id TEXT PRIMARY KEY,
                resource TEXT NOT NULL,
                user_id TEXT NOT NULL,
                kind TEXT NOT NULL CHECK (kind IN ('income', 'expense')),
                description TEXT,
                source TEXT,
                category TEXT,
                amount REAL NOT NULL,
                date TEXT NOT NULL,
                date_key TEXT NOT NULL,
                notes TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_records_owner
            ON records (resource, user_id, date_key)
            """
        )
    conn.close()


class Database:
    """The persistence driver: where the data lives and how to reach it."""

    def __init__(self, db_path: str, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self.db_path = db_path
        self.timeout = timeout

    def connection(self) -> sqlite3.Connection:
        return get_connection(self.db_path, self.timeout)

    def connect(self) -> None:
        try:
            init_db(self.db_path, self.timeout)
        except (sqlite3.Error, OSError) as exc:
            raise PersistenceConnectError(f"cannot open database at {self.db_path}: {exc}") from exc

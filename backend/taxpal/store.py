from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from .db import Database
from .filters import RecordFilter
from .normalizer import date_key


RECORD_COLUMNS = (
    "id",
    "user_id",
    "kind",
    "description",
    "source",
    "category",
    "amount",
    "date",
    "notes",
    "created_at",
    "updated_at",
)

UPDATABLE_COLUMNS = {"kind", "description", "source", "category", "amount", "date", "notes", "updated_at"}


def _row_to_record(row: sqlite3.Row) -> dict[str, Any]:
    return {column: row[column] for column in RECORD_COLUMNS}


class RecordStore:
    """sqlite-backed persistence for every resource. Rows are always owner scoped."""

    def __init__(self, database: Database) -> None:
        self.database = database

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = self.database.connection()
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def insert(self, resource: str, record: dict[str, Any]) -> dict[str, Any]:
        values = [record.get(column) for column in RECORD_COLUMNS]
        with self._connect() as conn:
            conn.execute(
                f"""
                INSERT INTO records (resource, date_key, {", ".join(RECORD_COLUMNS)})
                VALUES (?, ?, {", ".join("?" for _ in RECORD_COLUMNS)})
                """,
                [resource, date_key(record["date"]), *values],
            )
        return {column: record.get(column) for column in RECORD_COLUMNS}

    def query(self, resource: str, flt: RecordFilter) -> list[dict[str, Any]]:
        if flt.user_id is None:
            raise ValueError("record queries must be scoped to an owner")

        clauses = ["resource = ?", "user_id = ?"]
        params: list[Any] = [resource, flt.user_id]
        if flt.date_from is not None:
            clauses.append("date_key >= ?")
            params.append(date_key(flt.date_from, "from"))
        if flt.date_to is not None:
            clauses.append("date_key <= ?")
            params.append(date_key(flt.date_to, "to"))
        if flt.category is not None:
            clauses.append("category = ?")
            params.append(flt.category)
        if flt.source is not None:
            clauses.append("source = ?")
            params.append(flt.source)
        if flt.kind is not None:
            clauses.append("kind = ?")
            params.append(flt.kind)

        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT {", ".join(RECORD_COLUMNS)}
                FROM records
                WHERE {" AND ".join(clauses)}
                ORDER BY date_key DESC, created_at DESC
                """,
                params,
            ).fetchall()
        return [_row_to_record(row) for row in rows]

    def get(self, resource: str, record_id: str, user_id: str) -> dict[str, Any] | None:
        with self._connect() as conn:
            row = conn.execute(
                f"""
                SELECT {", ".join(RECORD_COLUMNS)}
                FROM records
                WHERE resource = ? AND id = ? AND user_id = ?
                """,
                (resource, record_id, user_id),
            ).fetchone()
        return _row_to_record(row) if row is not None else None

    def update(self, resource: str, record_id: str, user_id: str, updates: dict[str, Any]) -> int:
        unknown = set(updates) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"cannot update columns: {sorted(unknown)}")

        assignments = dict(updates)
        if "date" in assignments:
            assignments["date_key"] = date_key(assignments["date"])
        set_clause = ", ".join(f"{column} = ?" for column in assignments)

        with self._connect() as conn:
            cursor = conn.execute(
                f"""
                UPDATE records
                SET {set_clause}
                WHERE resource = ? AND id = ? AND user_id = ?
                """,
                [*assignments.values(), resource, record_id, user_id],
            )
        return cursor.rowcount

    def delete(self, resource: str, record_id: str, user_id: str) -> int:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM records WHERE resource = ? AND id = ? AND user_id = ?",
                (resource, record_id, user_id),
            )
        return cursor.rowcount

    def delete_all(self, resource: str, user_id: str) -> int:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM records WHERE resource = ? AND user_id = ?",
                (resource, user_id),
            )
        return cursor.rowcount

from __future__ import annotations

import math
import sqlite3
import uuid
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any, TypeVar

from .errors import NotFoundError, UnexpectedError, ValidationError
from .filters import build_filter
from .logging_setup import get_logger
from .normalizer import normalize_record, render_instant
from .store import RecordStore


logger = get_logger("taxpal.controllers")

T = TypeVar("T")

CONTENT_FIELDS = ("description", "source", "category", "amount", "date", "notes")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _has_text(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


def validate_record(record: Mapping[str, Any], kind: str) -> None:
    amount = record.get("amount")
    if amount is None:
        raise ValidationError("amount is required")
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise ValidationError("amount must be a number")
    if not math.isfinite(amount):
        raise ValidationError("amount must be a finite number")
    if amount < 0:
        raise ValidationError("amount must not be negative")

    if kind == "expense":
        for field in ("description", "category", "date"):
            if not _has_text(record.get(field)):
                raise ValidationError(f"{field} is required")
    elif not _has_text(record.get("source")):
        raise ValidationError("source or description is required")


class RecordController:
    """CRUD for one resource. ``kind`` is fixed for incomes and expenses and
    read from the payload for the unified transaction resource."""

    def __init__(
        self,
        resource: str,
        store: RecordStore,
        kind: str | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.resource = resource
        self.store = store
        self.kind = kind
        self.clock = clock
        self.label = kind or "transaction"

    def _persist(self, operation: Callable[..., T], *args: Any) -> T:
        try:
            return operation(*args)
        except sqlite3.Error as exc:
            logger.error("[db] %s %s failed: %s", self.resource, operation.__name__, exc)
            raise UnexpectedError() from exc

    def _kind_of(self, payload: Mapping[str, Any], fallback: str | None = None) -> str:
        if self.kind is not None:
            return self.kind
        kind = payload.get("kind") or fallback
        if kind is None:
            raise ValidationError("kind is required")
        return kind

    def create(self, payload: Mapping[str, Any], owner_id: str) -> dict[str, Any]:
        kind = self._kind_of(payload)
        fields = {key: payload[key] for key in CONTENT_FIELDS if payload.get(key) is not None}
        record = normalize_record(fields, kind)

        now = render_instant(self.clock())
        if kind == "income" and "date" not in record:
            record["date"] = now
        validate_record(record, kind)

        stored = {
            "id": str(uuid.uuid4()),
            "user_id": owner_id,
            "kind": kind,
            "description": record.get("description"),
            "source": record.get("source") if kind == "income" else None,
            "category": record.get("category"),
            "amount": float(record["amount"]),
            "date": record["date"],
            "notes": record.get("notes"),
            "created_at": now,
            "updated_at": now,
        }
        result = self._persist(self.store.insert, self.resource, stored)
        logger.info("[%s] created %s for user %s", self.resource, result["id"], owner_id)
        return result

    def list(
        self,
        owner_id: str,
        from_: object = None,
        to: object = None,
        category: str | None = None,
        source: str | None = None,
        kind: str | None = None,
    ) -> list[dict[str, Any]]:
        flt = build_filter(self.kind, from_=from_, to=to, category=category, source=source, record_kind=kind)
        return self._persist(self.store.query, self.resource, flt.scoped(owner_id))

    def get(self, record_id: str, owner_id: str) -> dict[str, Any]:
        record = self._persist(self.store.get, self.resource, record_id, owner_id)
        if record is None:
            raise NotFoundError(f"{self.label} not found")
        return record

    def update(self, record_id: str, owner_id: str, patch: Mapping[str, Any]) -> dict[str, Any]:
        existing = self.get(record_id, owner_id)

        for field, column in (("id", "id"), ("userId", "user_id"), ("user_id", "user_id")):
            supplied = patch.get(field)
            if supplied is not None and supplied != existing[column]:
                raise ValidationError(f"{field} cannot be changed")

        kind = self._kind_of(patch, fallback=existing["kind"])
        fields = {
            key: patch[key]
            for key in CONTENT_FIELDS
            if key in patch and (patch[key] is not None or key == "notes")
        }
        if not fields and kind == existing["kind"]:
            raise ValidationError("no fields to update")

        changes = normalize_record(fields, kind)
        # a kind switch can leave the merged record needing its own alias pass
        merged = normalize_record({**existing, **changes, "kind": kind}, kind)
        merged.setdefault("source", None)
        validate_record(merged, kind)
        merged["amount"] = float(merged["amount"])
        merged["updated_at"] = max(render_instant(self.clock()), existing["updated_at"])

        updates = {
            column: merged[column]
            for column in ("kind", *CONTENT_FIELDS)
            if merged[column] != existing[column]
        }
        updates["updated_at"] = merged["updated_at"]
        rowcount = self._persist(self.store.update, self.resource, record_id, owner_id, updates)
        if rowcount == 0:
            raise NotFoundError(f"{self.label} not found")
        logger.info("[%s] updated %s", self.resource, record_id)
        return merged

    def remove(self, record_id: str, owner_id: str) -> dict[str, Any]:
        rowcount = self._persist(self.store.delete, self.resource, record_id, owner_id)
        if rowcount == 0:
            raise NotFoundError(f"{self.label} not found")
        logger.info("[%s] deleted %s", self.resource, record_id)
        return {"deleted": True, "id": record_id}


class TransactionController(RecordController):
    def __init__(self, store: RecordStore, clock: Callable[[], datetime] = _utc_now) -> None:
        super().__init__("transactions", store, kind=None, clock=clock)

    def remove_all(self, owner_id: str) -> dict[str, Any]:
        count = self._persist(self.store.delete_all, self.resource, owner_id)
        logger.info("[%s] deleted %d records for user %s", self.resource, count, owner_id)
        return {"deleted": True, "count": count}

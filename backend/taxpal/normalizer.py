from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, timezone
from typing import Any

from .errors import ValidationError


KINDS = ("income", "expense")


def _as_utc(instant: datetime | date, field: str = "date") -> datetime:
    if not isinstance(instant, datetime):
        return datetime(instant.year, instant.month, instant.day, tzinfo=timezone.utc)
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    try:
        return instant.astimezone(timezone.utc)
    except OverflowError:
        # offsets can push 0001-01-01 or 9999-12-31 outside the datetime range
        raise ValidationError(f"{field} is outside the supported date range") from None


def render_instant(instant: datetime | date, field: str = "date") -> str:
    """Render an instant as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC.

    Naive datetimes are taken as UTC and bare dates as UTC midnight.
    """
    instant = _as_utc(instant, field)
    return instant.replace(tzinfo=None).isoformat(timespec="milliseconds") + "Z"


def parse_instant(text: str, field: str = "date") -> datetime:
    try:
        instant = datetime.fromisoformat(text)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an ISO-8601 date or date-time") from None
    return _as_utc(instant, field)


def to_iso_string(value: object, field: str = "date") -> str:
    if isinstance(value, (datetime, date)):
        return render_instant(value, field)
    if isinstance(value, str):
        parse_instant(value, field)
        return value
    raise ValidationError(f"{field} must be an ISO-8601 string or a date-time")


def date_key(value: object, field: str = "date") -> str:
    """Canonical UTC key used for every stored or compared date."""
    if isinstance(value, str):
        return render_instant(parse_instant(value, field), field)
    if isinstance(value, (datetime, date)):
        return render_instant(value, field)
    raise ValidationError(f"{field} must be an ISO-8601 string or a date-time")

def _has_text(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


def normalize_record(payload: Mapping[str, Any], kind: str) -> dict[str, Any]:
    if kind not in KINDS:
        raise ValidationError(f"kind must be one of {', '.join(KINDS)}")

    record = dict(payload)

    if record.get("date") is None:
        record.pop("date", None)
    else:
        record["date"] = to_iso_string(record["date"])

    if kind == "income":
        if not _has_text(record.get("source")) and _has_text(record.get("description")):
            record["source"] = record["description"]
    else:
        record.pop("source", None)

    return record

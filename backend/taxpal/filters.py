from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TypeVar

from .errors import ValidationError
from .normalizer import KINDS, to_iso_string


@dataclass(frozen=True)
class RecordFilter:
    """Which records a list query selects. Bounds are inclusive ISO strings."""

    date_from: str | None = None
    date_to: str | None = None
    category: str | None = None
    source: str | None = None
    kind: str | None = None
    user_id: str | None = None

    def scoped(self, user_id: str) -> RecordFilter:
        return replace(self, user_id=user_id)


T = TypeVar("T")


def _blank_to_none(value: T | None) -> T | None:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def build_filter(
    kind: str | None = None,
    from_: object = None,
    to: object = None,
    category: str | None = None,
    source: str | None = None,
    record_kind: str | None = None,
) -> RecordFilter:
    """Build a filter for the ``income``/``expense`` resources or, with
    ``kind=None``, for the unified transaction resource."""
    from_ = _blank_to_none(from_)
    to = _blank_to_none(to)
    category = _blank_to_none(category)
    source = _blank_to_none(source)
    record_kind = _blank_to_none(record_kind)

    if kind == "expense" and source is not None:
        raise ValidationError("source is not a filter for expenses")
    if record_kind is not None:
        if kind is not None:
            raise ValidationError("kind is only a filter for transactions")
        if record_kind not in KINDS:
            raise ValidationError(f"kind must be one of {', '.join(KINDS)}")

    return RecordFilter(
        date_from=to_iso_string(from_, "from") if from_ is not None else None,
        date_to=to_iso_string(to, "to") if to is not None else None,
        category=category,
        source=source,
        kind=record_kind if kind is None else kind,
    )

from datetime import datetime, timezone

import pytest

from taxpal.errors import ValidationError
from taxpal.filters import RecordFilter, build_filter


def test_no_parameters_means_no_constraints():
    assert build_filter("income") == RecordFilter(kind="income")


def test_bounds_are_normalized_to_iso_strings():
    flt = build_filter(
        "income",
        from_=datetime(2024, 3, 1, tzinfo=timezone.utc),
        to="2024-03-31",
    )
    assert flt.date_from == "2024-03-01T00:00:00.000Z"
    assert flt.date_to == "2024-03-31"


def test_equality_filters_are_kept_verbatim():
    flt = build_filter("income", category="Salary", source="ACME")
    assert flt.category == "Salary"
    assert flt.source == "ACME"


def test_blank_parameters_are_ignored():
    assert build_filter("income", from_="", category=" ") == RecordFilter(kind="income")


def test_expense_filter_rejects_source():
    with pytest.raises(ValidationError):
        build_filter("expense", source="ACME")


def test_malformed_bound_is_rejected():
    with pytest.raises(ValidationError):
        build_filter("expense", to="31/03/2024")


def test_transaction_filter_accepts_kind():
    assert build_filter(None, record_kind="expense").kind == "expense"
    with pytest.raises(ValidationError):
        build_filter(None, record_kind="transfer")
    with pytest.raises(ValidationError):
        build_filter("income", record_kind="expense")


def test_scoped_sets_owner_without_touching_original():
    flt = build_filter("income", category="Salary")
    scoped = flt.scoped("alice")
    assert scoped.user_id == "alice"
    assert scoped.category == "Salary"
    assert flt.user_id is None


@pytest.mark.parametrize("bound", ["from_", "to"])
def test_bound_outside_utc_range_is_rejected(bound):
    with pytest.raises(ValidationError):
        build_filter("expense", **{bound: "9999-12-31T23:00:00-05:00"})

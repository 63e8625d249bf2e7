from datetime import date, datetime, timedelta, timezone

import pytest

from taxpal.errors import ValidationError
from taxpal.normalizer import date_key, normalize_record, render_instant


def test_income_description_becomes_source():
    out = normalize_record({"description": "Salary", "amount": 100}, "income")
    assert out["source"] == "Salary"
    assert out["description"] == "Salary"


def test_income_source_wins_over_description():
    out = normalize_record({"source": "Employer", "description": "Salary"}, "income")
    assert out["source"] == "Employer"
    assert out["description"] == "Salary"


def test_blank_source_is_replaced_by_description():
    out = normalize_record({"source": "  ", "description": "Freelance"}, "income")
    assert out["source"] == "Freelance"


def test_expense_never_carries_source():
    out = normalize_record({"description": "Lunch", "source": "ignored"}, "expense")
    assert "source" not in out
    assert out["description"] == "Lunch"


def test_payload_is_not_mutated():
    payload = {"description": "Salary", "date": datetime(2024, 3, 1, tzinfo=timezone.utc)}
    normalize_record(payload, "income")
    assert payload == {"description": "Salary", "date": datetime(2024, 3, 1, tzinfo=timezone.utc)}


def test_structured_instant_is_rendered_as_iso():
    instant = datetime(2024, 3, 1, 12, 30, 5, 123456, tzinfo=timezone.utc)
    out = normalize_record({"date": instant}, "expense")
    assert out["date"] == "2024-03-01T12:30:05.123Z"


def test_offset_instant_is_rendered_in_utc():
    instant = datetime(2024, 3, 1, 2, 0, tzinfo=timezone(timedelta(hours=5)))
    assert render_instant(instant) == "2024-02-29T21:00:00.000Z"


def test_naive_datetime_and_date_are_utc():
    assert render_instant(datetime(2024, 3, 1, 8)) == "2024-03-01T08:00:00.000Z"
    assert render_instant(date(2024, 3, 1)) == "2024-03-01T00:00:00.000Z"


@pytest.mark.parametrize("text", ["2024-03-01T00:00:00.000Z", "2024-03-01", "2024-03-01T10:00:00+02:00"])
def test_string_date_passes_through_unchanged(text):
    once = normalize_record({"date": text}, "income")
    twice = normalize_record(once, "income")
    assert once["date"] == text
    assert twice["date"] == text


def test_malformed_string_date_is_rejected():
    with pytest.raises(ValidationError):
        normalize_record({"date": "next tuesday"}, "expense")


def test_none_date_is_treated_as_absent():
    out = normalize_record({"date": None, "description": "Salary"}, "income")
    assert "date" not in out


def test_unknown_kind_is_rejected():
    with pytest.raises(ValidationError):
        normalize_record({}, "transfer")


def test_date_key_orders_mixed_representations():
    assert date_key("2024-03-01") == "2024-03-01T00:00:00.000Z"
    assert date_key("2024-03-01T10:00:00+02:00") == "2024-03-01T08:00:00.000Z"
    assert date_key(datetime(2024, 3, 1, 8, tzinfo=timezone.utc)) == date_key("2024-03-01T08:00:00Z")


@pytest.mark.parametrize("text", ["0001-01-01T00:00:00+05:00", "9999-12-31T23:00:00-05:00"])
def test_offset_date_outside_utc_range_is_rejected(text):
    with pytest.raises(ValidationError, match="outside the supported date range"):
        normalize_record({"date": text}, "expense")
    with pytest.raises(ValidationError):
        date_key(text)


def test_early_years_keep_four_digit_keys():
    assert date_key("0001-01-01T05:00:00+05:00") == "0001-01-01T00:00:00.000Z"
    assert date_key("0999-06-01") < date_key("1999-06-01")

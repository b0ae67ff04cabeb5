"""Tests for date parser with relative dates."""

from datetime import date, datetime

import pytest

from ledgerkit.domain.errors import ValidationError
from ledgerkit.utils.date_parser import from_unix_timestamp, parse_date, parse_datetime

TODAY = date(2024, 3, 15)


def test_parse_absolute_date():
    """Test parsing absolute dates."""
    assert parse_date("2024-01-15") == date(2024, 1, 15)
    assert parse_date("January 15, 2024") == date(2024, 1, 15)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("today", date(2024, 3, 15)),
        ("Yesterday", date(2024, 3, 14)),
        ("tomorrow", date(2024, 3, 16)),
        ("this month", date(2024, 3, 1)),
        ("this year", date(2024, 1, 1)),
        ("last month", date(2024, 2, 1)),
        ("last year", date(2023, 1, 1)),
    ],
)
def test_parse_relative_dates(text, expected):
    """Test relative forms against a fixed reference day."""
    assert parse_date(text, today=TODAY) == expected


def test_parse_last_month_in_january():
    """Test that 'last month' wraps to December."""
    assert parse_date("last month", today=date(2024, 1, 20)) == date(2023, 12, 1)


def test_parse_invalid_date():
    """Test parsing an invalid date."""
    with pytest.raises(ValidationError, match="Could not parse date"):
        parse_date("not a date")


def test_parse_datetime_converts_to_naive_utc():
    """Test that offsets are converted to UTC."""
    assert parse_datetime("2024-01-15 09:30") == datetime(2024, 1, 15, 9, 30)
    assert parse_datetime("2024-01-15T09:30:00+02:00") == datetime(2024, 1, 15, 7, 30)


def test_parse_datetime_invalid():
    """Test an unparseable date/time."""
    with pytest.raises(ValidationError):
        parse_datetime("soon")


def test_from_unix_timestamp():
    """Test conversion of explorer timestamps."""
    assert from_unix_timestamp("1709294400") == datetime(2024, 3, 1, 12, 0)
    assert from_unix_timestamp(0) == datetime(1970, 1, 1)

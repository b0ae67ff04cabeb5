"""Date parsing utilities.

All datetimes handled by ledgerkit are naive and expressed in UTC.
"""

from datetime import UTC, date, datetime, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from ledgerkit.domain.errors import ValidationError


def utc_now() -> datetime:
    """Return the current time as a naive UTC datetime."""
    return datetime.now(UTC).replace(tzinfo=None)


def from_unix_timestamp(seconds: int | str) -> datetime:
    """Convert a unix timestamp in seconds to a naive UTC datetime."""
    return datetime.fromtimestamp(int(seconds), UTC).replace(tzinfo=None)


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "January 15, 2024") and a few
    relative forms ("today", "yesterday", "this month", "last year").

    Args:
        date_str: Date string in various formats
        today: Reference day for relative forms (defaults to the current UTC day)

    Returns:
        Date object

    Raises:
        ValidationError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    if today is None:
        today = utc_now().date()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
        "this month": today.replace(day=1),
        "this year": today.replace(month=1, day=1),
        "last month": (today - relativedelta(months=1)).replace(day=1),
        "last year": today.replace(month=1, day=1) - relativedelta(years=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        return date_parser.parse(date_str).date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValidationError(f"Could not parse date '{date_str}': {e}")


def parse_datetime(value: str) -> datetime:
    """Parse a date/time string into a naive UTC datetime.

    Timezone-aware input is converted to UTC; naive input is taken as UTC.

    Raises:
        ValidationError: If the string cannot be parsed
    """
    try:
        parsed = date_parser.parse(value.strip())
    except (ValueError, TypeError, OverflowError) as e:
        raise ValidationError(f"Could not parse date/time '{value}': {e}")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC).replace(tzinfo=None)
    return parsed

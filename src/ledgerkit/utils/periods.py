"""Reporting period resolution.

Windows are inclusive on both ends and always computed from an explicit
``now`` so that results are reproducible.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional

from dateutil.relativedelta import relativedelta

from ledgerkit.domain.errors import ValidationError, invalid_date_range

EARLIEST_CUSTOM_DATE = date(2010, 1, 1)


class Period(str, Enum):
    """Named reporting periods."""

    ALL_TIME = "all-time"
    THIS_MONTH = "this-month"
    LAST_MONTH = "last-month"
    THIS_YEAR = "this-year"
    LAST_YEAR = "last-year"
    CUSTOM = "custom"
    TODAY = "today"
    YESTERDAY = "yesterday"
    LAST_7_DAYS = "last-7-days"
    LAST_30_DAYS = "last-30-days"
    LAST_3_MONTHS = "last-3-months"
    LAST_6_MONTHS = "last-6-months"

    @classmethod
    def parse(cls, value: "str | Period") -> "Period":
        """Parse a period name in kebab-case, snake_case or camelCase.

        Raises:
            ValidationError: If the name is not a known period
        """
        if isinstance(value, Period):
            return value
        normalized = value.strip().replace("_", "").replace("-", "").lower()
        for period in cls:
            if period.value.replace("-", "") == normalized:
                return period
        supported = ", ".join(p.value for p in cls)
        raise ValidationError(f"Unknown period: '{value}'. Supported periods: {supported}")


@dataclass(frozen=True)
class PeriodWindow:
    """Inclusive [start, end] datetime window."""

    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max)


def _as_date(value: date) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def validate_custom_range(
    start: Optional[date], end: Optional[date], now: datetime
) -> tuple[date, date]:
    """Validate a caller-supplied custom range.

    Args:
        start: First day of the range
        end: Last day of the range
        now: Current time, used for the upper limit

    Returns:
        Tuple of (start, end) as dates

    Raises:
        ValidationError: If a bound is missing, reversed or out of range
    """
    if start is None or end is None:
        raise ValidationError("Custom period requires both a start date and an end date")

    start_day = _as_date(start)
    end_day = _as_date(end)
    if start_day > end_day:
        raise ValidationError(invalid_date_range(start_day, end_day))
    if start_day < EARLIEST_CUSTOM_DATE:
        raise ValidationError(
            f"Start date {start_day} is before {EARLIEST_CUSTOM_DATE.isoformat()}"
        )
    tomorrow = now.date() + timedelta(days=1)
    if end_day > tomorrow:
        raise ValidationError(f"End date {end_day} is in the future")
    return start_day, end_day


def resolve_period_window(
    period: "str | Period",
    now: datetime,
    custom_start: Optional[date] = None,
    custom_end: Optional[date] = None,
) -> Optional[PeriodWindow]:
    """Resolve a period name into a concrete window.

    Args:
        period: Period name or Period member
        now: Current time; "this" periods end at this moment
        custom_start: Start date, used only for the custom period
        custom_end: End date, used only for the custom period

    Returns:
        PeriodWindow, or None for all-time (no date restriction)

    Raises:
        ValidationError: If the period is unknown or the custom range is invalid
    """
    period = Period.parse(period)
    today = now.date()
    first_of_month = today.replace(day=1)

    if period == Period.ALL_TIME:
        return None

    if period == Period.THIS_MONTH:
        return PeriodWindow(start_of_day(first_of_month), now)

    if period == Period.LAST_MONTH:
        start = first_of_month - relativedelta(months=1)
        # Last day of last month (day before first day of current month)
        end = first_of_month - timedelta(days=1)
        return PeriodWindow(start_of_day(start), end_of_day(end))

    if period == Period.THIS_YEAR:
        return PeriodWindow(start_of_day(today.replace(month=1, day=1)), now)

    if period == Period.LAST_YEAR:
        start = today.replace(month=1, day=1) - relativedelta(years=1)
        end = today.replace(month=1, day=1) - timedelta(days=1)
        return PeriodWindow(start_of_day(start), end_of_day(end))

    if period == Period.TODAY:
        return PeriodWindow(start_of_day(today), now)

    if period == Period.YESTERDAY:
        yesterday = today - timedelta(days=1)
        return PeriodWindow(start_of_day(yesterday), end_of_day(yesterday))

    if period == Period.LAST_7_DAYS:
        return PeriodWindow(start_of_day(today - timedelta(days=7)), now)

    if period == Period.LAST_30_DAYS:
        return PeriodWindow(start_of_day(today - timedelta(days=30)), now)

    if period == Period.LAST_3_MONTHS:
        return PeriodWindow(start_of_day(first_of_month - relativedelta(months=3)), now)

    if period == Period.LAST_6_MONTHS:
        return PeriodWindow(start_of_day(first_of_month - relativedelta(months=6)), now)

    start_day, end_day = validate_custom_range(custom_start, custom_end, now)
    return PeriodWindow(start_of_day(start_day), end_of_day(end_day))

"""Date parsing utilities."""

from datetime import date, datetime, timedelta
from typing import Union

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from propfin.domain.errors import InvalidDateError, invalid_date

DateLike = Union[date, datetime, str]


def parse_date(date_str: str, today: date | None = None) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "January 15, 2024", etc.
    - Relative dates: "today", "yesterday", "tomorrow"

    Args:
        date_str: Date string in various formats
        today: Date that relative words are resolved against (defaults to today)

    Returns:
        Date object

    Raises:
        InvalidDateError: If date string cannot be parsed
    """
    if date_str is None or not str(date_str).strip():
        raise InvalidDateError(invalid_date(date_str, "empty date"))

    date_str = str(date_str).strip().lower()
    today = today or date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, TypeError, OverflowError) as e:
        raise InvalidDateError(invalid_date(date_str, e))


def to_date(value: DateLike) -> date:
    """Coerce a date, datetime or date string into a date.

    Raises:
        InvalidDateError: If the value is not a date or cannot be parsed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return parse_date(value)
    raise InvalidDateError(invalid_date(value, f"unsupported type {type(value).__name__}"))


def parse_month(month_str: str) -> date:
    """Parse a YYYY-MM month key into the first day of that month.

    Raises:
        InvalidDateError: If the month key is malformed
    """
    try:
        return datetime.strptime(str(month_str).strip(), "%Y-%m").date()
    except ValueError as e:
        raise InvalidDateError(invalid_date(month_str, e))


def month_key(value: date) -> str:
    """Return the YYYY-MM key of a date."""
    return value.strftime("%Y-%m")


def month_start(value: date, months: int = 0) -> date:
    """First day of the month `months` away from the month of `value`."""
    return value.replace(day=1) + relativedelta(months=months)


def month_end(value: date, months: int = 0) -> date:
    """Last day of the month `months` away from the month of `value`."""
    return month_start(value, months + 1) - timedelta(days=1)


def quarter_start(value: date, quarters: int = 0) -> date:
    """First day of the quarter `quarters` away from the quarter of `value`."""
    first_month = (value.month - 1) // 3 * 3 + 1
    return value.replace(month=first_month, day=1) + relativedelta(months=3 * quarters)


def quarter_end(value: date, quarters: int = 0) -> date:
    """Last day of the quarter `quarters` away from the quarter of `value`."""
    return quarter_start(value, quarters + 1) - timedelta(days=1)


def year_start(value: date, years: int = 0) -> date:
    return date(value.year + years, 1, 1)


def year_end(value: date, years: int = 0) -> date:
    return date(value.year + years, 12, 31)

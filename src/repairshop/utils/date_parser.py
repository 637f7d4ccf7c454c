"""Date parsing utilities."""

from datetime import date, datetime, timedelta, UTC
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime.

    Stored timestamps come back from SQLite without tzinfo, so every
    timestamp in the application is naive UTC.
    """
    return datetime.now(UTC).replace(tzinfo=None)


def days_since(then: datetime, now: datetime) -> int:
    """Return the number of whole days elapsed between two timestamps."""
    return (now - then).days


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "January 15, 2024", etc.
    - Relative dates: "today", "tomorrow", "next week", "next month",
      "in 14 days"

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = utcnow().date()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
        "next week": today + timedelta(weeks=1),
        "next month": today + relativedelta(months=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    if date_str.startswith("in ") and date_str.endswith(" days"):
        count = date_str[3:-5].strip()
        if count.isdigit():
            return today + timedelta(days=int(count))

    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, TypeError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def end_of_day(value: date) -> datetime:
    """Return the last second of a calendar date."""
    return datetime.combine(value, datetime.max.time()).replace(microsecond=0)

"""UTC calendar-day helpers.

Attendance is a calendar-day concept: every timestamp that reaches the store
is folded onto the UTC date it falls on, so the write path and the read path
always agree on which day a session belongs to.
"""
import calendar
from datetime import date, datetime, timedelta, timezone

from classcraft.errors import ValidationError


def utcnow():
    return datetime.now(timezone.utc)


def _parse_timestamp(value):
    text = value.strip()
    if not text:
        raise ValidationError("Date must not be empty")

    try:
        if len(text) == 10:
            return datetime.strptime(text, "%Y-%m-%d").date()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"Invalid date '{value}', use YYYY-MM-DD or an ISO-8601 timestamp")


def normalize_day(value=None):
    """
    Returns the UTC calendar day a timestamp falls on.

    Accepts None (now), a date, a datetime (naive values are taken as UTC,
    aware ones are converted to UTC first) or an ISO-8601 string.
    Normalizing an already normalized day returns it unchanged.
    """
    if value is None:
        value = utcnow()
    if isinstance(value, str):
        value = _parse_timestamp(value)

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value

    raise ValidationError(f"Unsupported date value: {value!r}")


def days_in_month(year, month):
    return calendar.monthrange(year, month)[1]


def month_range(year, month):
    """
    Half-open [first_day, first_day_of_next_month) range of a calendar month.

    The upper bound is None for December of the last representable year.
    """
    if isinstance(year, bool) or not isinstance(year, int) or isinstance(month, bool) or not isinstance(month, int):
        raise ValidationError("year and month must be integers")
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12")
    if not date.min.year <= year <= date.max.year:
        raise ValidationError(f"year must be between {date.min.year} and {date.max.year}")

    first_day = date(year, month, 1)
    last_day = first_day + timedelta(days=days_in_month(year, month) - 1)
    if last_day == date.max:
        return first_day, None
    return first_day, last_day + timedelta(days=1)

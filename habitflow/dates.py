"""Day-granular calendar helpers.

Everything here works on ``datetime.date``. Log keys are canonical
``YYYY-MM-DD`` strings; convert at the edges with to_key() / parse_key().
"""

import calendar
from datetime import date, datetime, timezone, timedelta

from habitflow.config import TIMEZONE_OFFSET_HOURS

TZ = timezone(timedelta(hours=TIMEZONE_OFFSET_HOURS))

ONE_DAY = timedelta(days=1)


def today() -> date:
    """Current local date (respects TIMEZONE_OFFSET_HOURS)."""
    return datetime.now(TZ).date()


def to_key(d: date) -> str:
    return d.strftime("%Y-%m-%d")


def parse_key(key: str) -> date:
    """Parse a YYYY-MM-DD key. Raises ValueError on anything else."""
    return date.fromisoformat(key)


def as_date(value) -> date:
    """Coerce a date, datetime or ISO string (date or timestamp) to a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    # "2026-03-01T08:15:00.000Z" -> "2026-03-01"
    return date.fromisoformat(str(value)[:10])


def day_of_week(d: date) -> int:
    """0=Sunday .. 6=Saturday."""
    return (d.weekday() + 1) % 7


def start_of_week(d: date, monday: bool = True) -> date:
    if monday:
        return d - timedelta(days=d.weekday())
    return d - timedelta(days=day_of_week(d))


def start_of_month(d: date) -> date:
    return d.replace(day=1)


def days_in_month(d: date) -> int:
    return calendar.monthrange(d.year, d.month)[1]


def end_of_month(d: date) -> date:
    return d.replace(day=days_in_month(d))


def add_months(d: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's length."""
    index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def date_range(start: date, end: date) -> list[date]:
    """Inclusive list of days from start to end (empty if end < start)."""
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def period_key(d: date) -> str:
    """YYYY-MM month key."""
    return d.strftime("%Y-%m")


_MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def month_label(d: date) -> str:
    """English "February 2026" label, independent of the process locale."""
    return f"{_MONTH_NAMES[d.month - 1]} {d.year}"

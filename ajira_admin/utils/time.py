"""Time utilities (UTC now, calendar windows, tolerant timestamp parsing).

All analytics windows are computed in UTC. Stored timestamps may come back
naive (SQLite) or as ISO strings; ``to_utc`` normalizes both.
"""
from __future__ import annotations
import calendar
from datetime import date, datetime, time, timezone, timedelta

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def to_utc(value: datetime | date | str | None) -> datetime | None:
    """Coerce a stored timestamp to an aware UTC datetime (None if unparseable)."""
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    return None

def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)

def end_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=23, minute=59, second=59, microsecond=999999)

def start_of_month(moment: datetime) -> datetime:
    return start_of_day(moment).replace(day=1)

def end_of_month(moment: datetime) -> datetime:
    last_day = calendar.monthrange(moment.year, moment.month)[1]
    return end_of_day(moment).replace(day=last_day)

def sub_months(moment: datetime, months: int) -> datetime:
    """Calendar month arithmetic; the day is clamped to the target month's length."""
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)

def sub_years(moment: datetime, years: int) -> datetime:
    return sub_months(moment, years * 12)

def sub_days(moment: datetime, days: int) -> datetime:
    return moment - timedelta(days=days)

def in_window(value: datetime | None, start: datetime | None, end: datetime | None = None, *, inclusive_end: bool = False) -> bool:
    """True when ``start <= value < end`` (or ``<= end`` with inclusive_end)."""
    if value is None:
        return False
    if start is not None and value < start:
        return False
    if end is not None:
        if inclusive_end:
            return value <= end
        return value < end
    return True

__all__ = [
    "utc_now",
    "to_utc",
    "start_of_day",
    "end_of_day",
    "start_of_month",
    "end_of_month",
    "sub_months",
    "sub_years",
    "sub_days",
    "in_window",
]

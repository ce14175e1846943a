"""Calendar helpers for payroll dates."""
import calendar
from datetime import date, datetime
from typing import Tuple


def clamp_day(year: int, month: int, day: int) -> date:
    """Return year/month/day, pulling the day back to the month's last day if needed."""
    _, last_day = calendar.monthrange(year, month)
    return date(year, month, min(day, last_day))


def add_months(value: date, months: int, day: int = None) -> date:
    """Shift a date by whole months, keeping `day` (or the original day) where the month allows."""
    index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(index, 12)
    return clamp_day(year, month + 1, day if day is not None else value.day)


def start_of_day(value: date) -> datetime:
    return datetime(value.year, value.month, value.day)


def month_bounds(value: date) -> Tuple[date, date]:
    """First day of the month containing `value` and first day of the next month."""
    first = date(value.year, value.month, 1)
    return first, add_months(first, 1, day=1)

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from .models import LogEntry, coerce_date, from_quarters

# Standard contracted workday
STANDARD_DAY_HOURS = Decimal('7.75')


def logged_hours(target: date, entries: Iterable[LogEntry]) -> Decimal:
    """Hours already logged on a day, across all projects."""
    target = coerce_date(target)
    return from_quarters(sum(entry.quarters for entry in entries if entry.date == target))


def suggest(target: date, entries: Iterable[LogEntry]) -> Optional[Decimal]:
    """Suggest the hours left to reach a standard day, or None when the day is full."""
    target = coerce_date(target)
    remaining = STANDARD_DAY_HOURS - logged_hours(target, entries)
    if remaining <= 0:
        return None
    return remaining.quantize(Decimal('0.01'))

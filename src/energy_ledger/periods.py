"""Reporting period boundaries (day, Monday-start week, calendar month/year)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

# Inclusive end of a day, millisecond resolution
_END_OF_DAY = {"hour": 23, "minute": 59, "second": 59, "microsecond": 999000}
_START_OF_DAY = {"hour": 0, "minute": 0, "second": 0, "microsecond": 0}


class Period(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


@dataclass(frozen=True)
class PeriodWindow:
    """Closed interval ``[start, end]`` covered by a period."""

    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


def resolve_period(period: Period | str, reference: datetime | None = None) -> PeriodWindow:
    """Resolve *period* around *reference* (default: now).

    The window keeps the reference's tzinfo, so naive references give naive
    windows and aware references give aware ones.
    """
    period = Period(period)
    now = reference or datetime.now()
    day_start = now.replace(**_START_OF_DAY)

    if period is Period.DAILY:
        start = day_start
        end = now.replace(**_END_OF_DAY)
    elif period is Period.WEEKLY:
        # weekday() is 0 for Monday
        start = day_start - timedelta(days=now.weekday())
        end = (start + timedelta(days=6)).replace(**_END_OF_DAY)
    elif period is Period.MONTHLY:
        start = day_start.replace(day=1)
        if now.month == 12:
            next_month = start.replace(year=now.year + 1, month=1)
        else:
            next_month = start.replace(month=now.month + 1)
        end = (next_month - timedelta(days=1)).replace(**_END_OF_DAY)
    else:
        start = day_start.replace(month=1, day=1)
        end = now.replace(month=12, day=31, **_END_OF_DAY)

    return PeriodWindow(start=start, end=end)

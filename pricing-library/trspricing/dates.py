"""
Date arithmetic: day counts, business-day calendars and roll conventions.

Curves in this library are indexed by year fractions; `curve_time` is the single
place where a calendar date becomes a curve time (ACT/365F from the valuation
date, basis configurable).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum

from dateutil.relativedelta import relativedelta

from trspricing.config import get_settings


class DayCount(Enum):
    ACT_365F = "ACT/365F"
    ACT_360 = "ACT/360"
    THIRTY_360 = "30/360"


class BDConvention(Enum):
    NONE = "none"
    FOLLOWING = "following"
    MODIFIED_FOLLOWING = "modified_following"
    PRECEDING = "preceding"


def year_fraction(start: date, end: date, day_count: DayCount = DayCount.ACT_365F) -> float:
    """Accrual fraction between two dates (negative if end < start)."""
    if day_count is DayCount.ACT_365F:
        return (end - start).days / 365.0
    if day_count is DayCount.ACT_360:
        return (end - start).days / 360.0
    d1 = min(start.day, 30)
    d2 = 30 if (end.day == 31 and d1 == 30) else end.day
    days = 360 * (end.year - start.year) + 30 * (end.month - start.month) + (d2 - d1)
    return days / 360.0


def curve_time(as_of: date, d: date) -> float:
    """Curve time (year fraction) of `d` measured from the valuation date."""
    return (d - as_of).days / get_settings().curve_time_basis


@dataclass(frozen=True)
class Calendar:
    """
    Business-day calendar: weekend days (Monday=0) plus explicit holidays.
    """

    name: str = "WEEKENDS"
    holidays: frozenset[date] = field(default_factory=frozenset)
    weekend: tuple[int, ...] = (5, 6)

    def is_business_day(self, d: date) -> bool:
        return d.weekday() not in self.weekend and d not in self.holidays


WEEKENDS_ONLY = Calendar()
NO_HOLIDAYS = Calendar(name="NONE", weekend=())


def roll(d: date, convention: BDConvention = BDConvention.FOLLOWING,
         calendar: Calendar = WEEKENDS_ONLY) -> date:
    """Move `d` onto a business day according to the roll convention."""
    if convention is BDConvention.NONE or calendar.is_business_day(d):
        return d
    if convention is BDConvention.PRECEDING:
        return _step(d, -1, calendar)
    rolled = _step(d, 1, calendar)
    if convention is BDConvention.MODIFIED_FOLLOWING and rolled.month != d.month:
        return _step(d, -1, calendar)
    return rolled


def _step(d: date, direction: int, calendar: Calendar) -> date:
    d += timedelta(days=direction)
    while not calendar.is_business_day(d):
        d += timedelta(days=direction)
    return d


def add_business_days(d: date, n: int, calendar: Calendar = WEEKENDS_ONLY) -> date:
    """
    Add n business days (n may be negative). With n == 0 the date is returned as is.
    """
    direction = 1 if n > 0 else -1
    for _ in range(abs(n)):
        d = _step(d, direction, calendar)
    return d


def add_months(d: date, n: int) -> date:
    """Calendar month arithmetic, clamping to month end (Aug 31 + 1M = Sep 30)."""
    return d + relativedelta(months=n)

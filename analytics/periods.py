# =============================================================================
# PRINTSHOP ANALYTICS - DATE-RANGE SELECTOR
# =============================================================================
# Resolves a report period symbol into concrete [start, end] instants.
#
# | period        | start                    | end                          |
# |---------------|--------------------------|------------------------------|
# | last_7_days   | today - 6 days, 00:00:00 | today, 23:59:59              |
# | last_30_days  | today - 29 days, 00:00:00| today, 23:59:59              |
# | current_month | 1st of month, 00:00:00   | today, 23:59:59              |
# | last_month    | 1st of prev month        | last day of prev month       |
# | custom        | custom_start or None     | custom_end or None           |
#
# Calendar days are those of `now`'s timezone (naive `now` is UTC).
# `now` is always passed in; this module never reads the clock.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, List, Optional

from .rows import parse_timestamp

LAST_7_DAYS = "last_7_days"
LAST_30_DAYS = "last_30_days"
CURRENT_MONTH = "current_month"
LAST_MONTH = "last_month"
CUSTOM = "custom"

PERIODS: List[str] = [LAST_7_DAYS, LAST_30_DAYS, CURRENT_MONTH, LAST_MONTH, CUSTOM]
DEFAULT_PERIOD = LAST_30_DAYS

START_OF_DAY = time(0, 0, 0)
END_OF_DAY = time(23, 59, 59)


@dataclass(frozen=True)
class DateRange:
    """Inclusive instant range; a None bound is unbounded on that side."""
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def contains(self, moment: datetime) -> bool:
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True

    @property
    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None


UNBOUNDED = DateRange()


def _at(day: date, moment: time, tz: tzinfo) -> datetime:
    return datetime.combine(day, moment, tzinfo=tz)


def _parse_bound(value: Any, tz: tzinfo, moment: time) -> Optional[datetime]:
    """Custom bound: dates get ``moment`` on that day, instants pass through."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return parse_timestamp(value, tz)
    if isinstance(value, date):
        return _at(value, moment, tz)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if len(text) == 10:
            try:
                return _at(date.fromisoformat(text), moment, tz)
            except ValueError:
                return None
        return parse_timestamp(text, tz)
    return None


def resolve_range(
    period: Optional[str],
    custom_start: Any = None,
    custom_end: Any = None,
    *,
    now: datetime,
) -> DateRange:
    """
    Resolve a period symbol relative to ``now``.

    Args:
        period: One of PERIODS; anything else falls back to last_30_days
        custom_start: Start for the custom period (datetime, date or ISO text)
        custom_end: End for the custom period; a bare date means 23:59:59
        now: Current instant supplied by the caller

    Returns:
        DateRange with timezone-aware bounds
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    tz = now.tzinfo

    if period == CUSTOM:
        return DateRange(
            start=_parse_bound(custom_start, tz, START_OF_DAY),
            end=_parse_bound(custom_end, tz, END_OF_DAY),
        )

    today = now.date()
    end = _at(today, END_OF_DAY, tz)

    if period == LAST_7_DAYS:
        start = _at(today - timedelta(days=6), START_OF_DAY, tz)
    elif period == CURRENT_MONTH:
        start = _at(today.replace(day=1), START_OF_DAY, tz)
    elif period == LAST_MONTH:
        last_day_prev = today.replace(day=1) - timedelta(days=1)
        start = _at(last_day_prev.replace(day=1), START_OF_DAY, tz)
        end = _at(last_day_prev, END_OF_DAY, tz)
    else:
        start = _at(today - timedelta(days=29), START_OF_DAY, tz)

    return DateRange(start=start, end=end)

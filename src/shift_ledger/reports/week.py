"""Week boundaries shared by weekly reset, department overview and user summaries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from ..core.constants import DEFAULT_WEEK_START_DAY


@dataclass(frozen=True)
class WeekWindow:
    """Half-open interval [start, end) in epoch seconds."""

    start: int
    end: int

    def contains(self, timestamp: int) -> bool:
        return self.start <= timestamp < self.end


def resolve_timezone(name: Optional[str]) -> Optional[tzinfo]:
    """IANA zone for week/day boundaries; empty means server local time."""

    name = (name or "").strip()
    return ZoneInfo(name) if name else None


def local_datetime(timestamp: int, tz: Optional[tzinfo] = None) -> datetime:
    return datetime.fromtimestamp(int(timestamp), tz)


def local_date(timestamp: int, tz: Optional[tzinfo] = None) -> date:
    return local_datetime(timestamp, tz).date()


def midnight(day: date, tz: Optional[tzinfo] = None) -> int:
    # Naive datetimes resolve against the server's local zone.
    return int(datetime.combine(day, time.min, tzinfo=tz).timestamp())


def week_window(
    now: int,
    week_start_day: int = DEFAULT_WEEK_START_DAY,
    week_offset: int = 0,
    tz: Optional[tzinfo] = None,
) -> WeekWindow:
    """Window of the week containing `now`, shifted by `week_offset` weeks.

    week_start_day uses 0=Sunday .. 6=Saturday. Both ends are local
    midnights, so consecutive windows share a boundary even across DST.
    """

    today = local_date(now, tz)
    sunday_based = (today.weekday() + 1) % 7
    days_back = (sunday_based - int(week_start_day)) % 7
    first_day = today - timedelta(days=days_back) + timedelta(weeks=int(week_offset))
    return WeekWindow(start=midnight(first_day, tz), end=midnight(first_day + timedelta(days=7), tz))

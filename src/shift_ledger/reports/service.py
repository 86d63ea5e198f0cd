from __future__ import annotations

from collections import defaultdict
from datetime import tzinfo
from typing import Optional, Sequence

from ..common.clock import Clock, SystemClock
from ..core.constants import RECENT_SHIFTS_LIMIT
from ..core.enums import SubjectStatus
from ..guilds.service import GuildService
from ..shifts.durations import shift_durations
from ..shifts.model import Break, Shift, ShiftDurations
from ..shifts.repository import BreakRepository, ShiftRepository
from .model import DayTotals, RosterEntry, ShiftReportRow, SubjectTotals, SubjectWeekSummary
from .week import WeekWindow, local_date


class ReportService:
    """Read-only rollups over the ledger; nothing here mutates the store."""

    def __init__(
        self,
        shifts: ShiftRepository,
        breaks: BreakRepository,
        guilds: GuildService,
        *,
        clock: Optional[Clock] = None,
        tz: Optional[tzinfo] = None,
    ):
        self._shifts = shifts
        self._breaks = breaks
        self._guilds = guilds
        self._clock = clock or SystemClock()
        self._tz = tz

    def week_window(self, guild_id: str, week_offset: int = 0) -> WeekWindow:
        return self._guilds.week_window(str(guild_id), self._clock.now(), week_offset, self._tz)

    def active_roster(self, guild_id: str, unit: Optional[str] = None) -> list[RosterEntry]:
        """Subjects on an open shift, oldest shift first."""

        guild_id = str(guild_id)
        now = self._clock.now()
        shifts = self._shifts.list_open(guild_id, unit=unit)
        on_break = {b.shift_id for b in self._breaks.list_open_for_guild(guild_id)}

        return [
            RosterEntry(
                subject_id=s.subject_id,
                shift_id=s.id,
                unit=s.unit,
                started_at=s.start_time,
                elapsed_seconds=max(0, now - s.start_time),
                on_break=s.id in on_break,
            )
            for s in shifts
        ]

    def department_summary(
        self,
        guild_id: str,
        week_offset: int = 0,
        unit: Optional[str] = None,
    ) -> list[SubjectTotals]:
        """Completed shifts per subject in the week, most time first."""

        counts: dict[str, int] = defaultdict(int)
        totals: dict[str, int] = defaultdict(int)
        for row in self._completed_rows(guild_id, week_offset, unit):
            counts[row.shift.subject_id] += 1
            totals[row.shift.subject_id] += row.durations.effective_seconds

        summary = [
            SubjectTotals(subject_id=subject, shift_count=counts[subject], total_effective_seconds=totals[subject])
            for subject in counts
        ]
        summary.sort(key=lambda s: (-s.total_effective_seconds, s.subject_id))
        return summary

    def daily_breakdown(
        self,
        guild_id: str,
        week_offset: int = 0,
        unit: Optional[str] = None,
    ) -> list[DayTotals]:
        counts: dict = defaultdict(int)
        totals: dict = defaultdict(int)
        for row in self._completed_rows(guild_id, week_offset, unit):
            day = local_date(row.shift.start_time, self._tz)
            counts[day] += 1
            totals[day] += row.durations.effective_seconds

        return [
            DayTotals(day=day, shift_count=counts[day], total_effective_seconds=totals[day])
            for day in sorted(counts)
        ]

    def subject_summary(
        self,
        guild_id: str,
        subject_id: str,
        week_offset: int = 0,
        unit: Optional[str] = None,
        *,
        recent_limit: int = RECENT_SHIFTS_LIMIT,
    ) -> SubjectWeekSummary:
        guild_id, subject_id = str(guild_id), str(subject_id)
        window = self.week_window(guild_id, week_offset)

        completed = self._completed_rows(guild_id, week_offset, unit, subject_id=subject_id, window=window)

        recent = list(self._shifts.list_for_subject(subject_id, guild_id, limit=recent_limit))
        if unit is not None:
            recent = [s for s in recent if s.unit == unit]

        return SubjectWeekSummary(
            subject_id=subject_id,
            status=self._status(subject_id, guild_id),
            window=window,
            shift_count=len(completed),
            total_effective_seconds=sum(r.durations.effective_seconds for r in completed),
            recent_shifts=self._with_durations(recent),
        )

    def shift_durations(self, shift: Shift) -> ShiftDurations:
        return shift_durations(shift, self._breaks.list_for_shift(shift.id), self._clock.now())

    # ---- helpers ----

    def _status(self, subject_id: str, guild_id: str) -> SubjectStatus:
        if self._shifts.get_open(subject_id, guild_id) is None:
            return SubjectStatus.OFF_SHIFT
        if self._breaks.get_open(subject_id, guild_id) is not None:
            return SubjectStatus.ON_BREAK
        return SubjectStatus.ON_SHIFT

    def _completed_rows(
        self,
        guild_id: str,
        week_offset: int,
        unit: Optional[str],
        *,
        subject_id: Optional[str] = None,
        window: Optional[WeekWindow] = None,
    ) -> list[ShiftReportRow]:
        window = window or self.week_window(guild_id, week_offset)
        shifts = self._shifts.list_in_window(
            str(guild_id),
            start=window.start,
            end=window.end,
            unit=unit,
            subject_id=subject_id,
        )
        # Open shifts are left out of completed-time rollups.
        return self._with_durations([s for s in shifts if s.end_time is not None])

    def _with_durations(self, shifts: Sequence[Shift]) -> list[ShiftReportRow]:
        if not shifts:
            return []
        now = self._clock.now()
        by_shift: dict[int, list[Break]] = defaultdict(list)
        for b in self._breaks.list_for_shifts([s.id for s in shifts]):
            by_shift[b.shift_id].append(b)
        return [ShiftReportRow(shift=s, durations=shift_durations(s, by_shift[s.id], now)) for s in shifts]

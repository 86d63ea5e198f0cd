from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ..core.enums import SubjectStatus
from ..shifts.model import Shift, ShiftDurations
from .week import WeekWindow


@dataclass(frozen=True)
class RosterEntry:
    """Read-model: one subject currently on shift."""

    subject_id: str
    shift_id: int
    unit: Optional[str]
    started_at: int
    elapsed_seconds: int
    on_break: bool


@dataclass(frozen=True)
class SubjectTotals:
    subject_id: str
    shift_count: int
    total_effective_seconds: int


@dataclass(frozen=True)
class DayTotals:
    day: date
    shift_count: int
    total_effective_seconds: int


@dataclass(frozen=True)
class ShiftReportRow:
    shift: Shift
    durations: ShiftDurations


@dataclass(frozen=True)
class SubjectWeekSummary:
    subject_id: str
    status: SubjectStatus
    window: WeekWindow
    shift_count: int
    total_effective_seconds: int
    recent_shifts: list[ShiftReportRow] = field(default_factory=list)

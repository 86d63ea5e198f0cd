from __future__ import annotations

from enum import Enum


class ToggleAction(str, Enum):
    """Outcome of a shift or break toggle."""

    STARTED = "started"
    ENDED = "ended"


class SubjectStatus(str, Enum):
    """Current state of a subject within a guild."""

    OFF_SHIFT = "off_shift"
    ON_SHIFT = "on_shift"
    ON_BREAK = "on_break"


class RefresherState(str, Enum):
    IDLE = "idle"
    SCHEDULED = "scheduled"


class ShiftEventKind(str, Enum):
    """Ledger changes reported to listeners (roster refresh, shift log)."""

    SHIFT_STARTED = "shift_started"
    SHIFT_ENDED = "shift_ended"
    BREAK_STARTED = "break_started"
    BREAK_ENDED = "break_ended"
    SHIFT_ADJUSTED = "shift_adjusted"
    SHIFT_DELETED = "shift_deleted"
    WEEK_CLEARED = "week_cleared"

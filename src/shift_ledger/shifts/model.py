from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import ShiftEventKind, ToggleAction


@dataclass(frozen=True)
class Shift:
    """Domain entity: one work session of a subject in a guild."""

    id: int
    subject_id: str
    guild_id: str
    start_time: int
    end_time: Optional[int] = None
    unit: Optional[str] = None
    start_proof_url: Optional[str] = None
    end_proof_url: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.end_time is None


@dataclass(frozen=True)
class Break:
    """Domain entity: a pause nested inside one shift."""

    id: int
    shift_id: int
    subject_id: str
    guild_id: str
    start_time: int
    end_time: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return self.end_time is None


@dataclass(frozen=True)
class ShiftDurations:
    raw_seconds: int
    break_seconds: int
    effective_seconds: int


@dataclass(frozen=True)
class ShiftToggle:
    action: ToggleAction
    shift: Shift
    effective_seconds: int = 0
    break_seconds: int = 0


@dataclass(frozen=True)
class BreakToggle:
    action: ToggleAction
    brk: Break
    duration_seconds: int = 0


@dataclass(frozen=True)
class ShiftEvent:
    """One successful ledger change, as handed to the change listener.

    actor_id is set when someone other than the subject made the change
    (force toggles, adjustments, deletes, weekly resets).
    """

    kind: ShiftEventKind
    guild_id: str
    at: int
    subject_id: Optional[str] = None
    actor_id: Optional[str] = None
    reason: Optional[str] = None
    shift: Optional[Shift] = None
    brk: Optional[Break] = None
    proof_url: Optional[str] = None
    effective_seconds: int = 0
    break_seconds: int = 0
    delta_seconds: int = 0
    count: int = 0

    @property
    def forced(self) -> bool:
        return self.actor_id is not None and self.actor_id != self.subject_id

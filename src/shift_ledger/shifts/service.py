from __future__ import annotations

import logging
from datetime import tzinfo
from typing import Callable, Iterable, Optional, Sequence

from ..common.clock import Clock, SystemClock
from ..common.locks import KeyedLock
from ..common.validators import (
    optional_text,
    require_choice,
    require_int,
    require_max_length,
    require_non_empty,
    validate_proof_url,
)
from ..core.constants import (
    BULK_DELETE_LIMIT,
    MAX_ADJUST_SECONDS,
    MAX_FUTURE_SECONDS,
    MAX_REASON_LENGTH,
    MAX_UNIT_LENGTH,
    SHIFT_RETENTION_SECONDS,
)
from ..core.enums import ShiftEventKind, ToggleAction
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..guilds.service import GuildService
from ..reports.week import WeekWindow
from .durations import break_duration, shift_durations
from .model import Break, BreakToggle, Shift, ShiftDurations, ShiftEvent, ShiftToggle
from .repository import BreakRepository, ShiftRepository

logger = logging.getLogger(__name__)


class ShiftService:
    """Shift/break state machine.

    Every call re-reads the store; toggles for one (subject, guild) pair are
    serialised in-process, and the store's unique open-row keys reject a
    second open shift or break from any other process.
    """

    def __init__(
        self,
        shifts: ShiftRepository,
        breaks: BreakRepository,
        guilds: GuildService,
        *,
        clock: Optional[Clock] = None,
        units: Iterable[str] = (),
        tz: Optional[tzinfo] = None,
        on_change: Optional[Callable[[ShiftEvent], None]] = None,
    ):
        self._shifts = shifts
        self._breaks = breaks
        self._guilds = guilds
        self._clock = clock or SystemClock()
        self._units = tuple(units)
        self._tz = tz
        self._on_change = on_change
        self._locks = KeyedLock()

    def set_change_listener(self, on_change: Optional[Callable[[ShiftEvent], None]]) -> None:
        self._on_change = on_change

    # ---- state changes ----

    def toggle_shift(
        self,
        subject_id: str,
        guild_id: str,
        unit: Optional[str] = None,
        *,
        proof_url: Optional[str] = None,
        actor_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> ShiftToggle:
        subject_id, guild_id = str(subject_id), str(guild_id)
        proof_url = validate_proof_url(proof_url)
        reason = self._clean_reason(reason)
        actor_id = self._actor(actor_id)

        with self._locks.hold((subject_id, guild_id)):
            open_shift = self._shifts.get_open(subject_id, guild_id)
            now = self._clock.now()

            if open_shift is None:
                unit = self._clean_unit(unit)
                shift_id = self._shifts.create_open(
                    subject_id=subject_id,
                    guild_id=guild_id,
                    start_time=now,
                    unit=unit,
                    start_proof_url=proof_url,
                )
                shift = self._require_shift(shift_id)
                logger.info("Shift %s started by %s in guild %s (unit=%s)", shift.id, subject_id, guild_id, unit)
                result = ShiftToggle(action=ToggleAction.STARTED, shift=shift)
                kind = ShiftEventKind.SHIFT_STARTED
            else:
                if not self._shifts.close(shift_id=open_shift.id, end_time=now, end_proof_url=proof_url):
                    raise ConflictError("Shift was already ended")
                shift = self._require_shift(open_shift.id)
                durations = self.durations(shift, now=now)
                logger.info(
                    "Shift %s ended by %s in guild %s (effective=%ss, breaks=%ss)",
                    shift.id,
                    subject_id,
                    guild_id,
                    durations.effective_seconds,
                    durations.break_seconds,
                )
                result = ShiftToggle(
                    action=ToggleAction.ENDED,
                    shift=shift,
                    effective_seconds=durations.effective_seconds,
                    break_seconds=durations.break_seconds,
                )
                kind = ShiftEventKind.SHIFT_ENDED

        self._notify(
            ShiftEvent(
                kind=kind,
                guild_id=guild_id,
                at=now,
                subject_id=subject_id,
                actor_id=actor_id,
                reason=reason,
                shift=result.shift,
                proof_url=proof_url,
                effective_seconds=result.effective_seconds,
                break_seconds=result.break_seconds,
            )
        )
        return result

    def toggle_break(
        self,
        subject_id: str,
        guild_id: str,
        *,
        actor_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> BreakToggle:
        subject_id, guild_id = str(subject_id), str(guild_id)
        reason = self._clean_reason(reason)
        actor_id = self._actor(actor_id)

        with self._locks.hold((subject_id, guild_id)):
            open_shift = self._shifts.get_open(subject_id, guild_id)
            if open_shift is None:
                raise ConflictError("No active shift")

            open_break = self._breaks.get_open(subject_id, guild_id)
            now = self._clock.now()

            if open_break is not None:
                if not self._breaks.close(break_id=open_break.id, end_time=now):
                    raise ConflictError("Break was already ended")
                brk = self._require_break(open_break.id)
                result = BreakToggle(action=ToggleAction.ENDED, brk=brk, duration_seconds=break_duration(brk, now))
                logger.info("Break %s ended by %s (%ss)", brk.id, subject_id, result.duration_seconds)
                kind = ShiftEventKind.BREAK_ENDED
            else:
                break_id = self._breaks.create_open(
                    shift_id=open_shift.id,
                    subject_id=subject_id,
                    guild_id=guild_id,
                    start_time=now,
                )
                brk = self._require_break(break_id)
                result = BreakToggle(action=ToggleAction.STARTED, brk=brk)
                logger.info("Break %s started by %s on shift %s", brk.id, subject_id, open_shift.id)
                kind = ShiftEventKind.BREAK_STARTED

        self._notify(
            ShiftEvent(
                kind=kind,
                guild_id=guild_id,
                at=now,
                subject_id=subject_id,
                actor_id=actor_id,
                reason=reason,
                shift=open_shift,
                brk=result.brk,
                break_seconds=result.duration_seconds,
            )
        )
        return result

    def adjust_shift(
        self,
        shift_id: int,
        delta_seconds: int,
        *,
        subject_id: Optional[str] = None,
        actor_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> Shift:
        """Move a closed shift's end time by delta_seconds, never before its start."""

        delta = require_int(delta_seconds, "delta_seconds")
        if abs(delta) > MAX_ADJUST_SECONDS:
            raise ValidationError("Adjustment too large - maximum 7 days")
        reason = self._clean_reason(reason)
        actor_id = self._actor(actor_id)

        shift = self._shifts.get_by_id(int(shift_id))
        if shift is None:
            raise ConflictError("Shift does not exist")
        if subject_id is not None and shift.subject_id != str(subject_id):
            raise ConflictError("Shift belongs to another subject")

        with self._locks.hold((shift.subject_id, shift.guild_id)):
            shift = self._shifts.get_by_id(shift.id)
            if shift is None:
                raise ConflictError("Shift does not exist")
            if shift.end_time is None:
                raise ConflictError("Cannot adjust an active shift")

            now = self._clock.now()
            new_end = max(shift.start_time, shift.end_time + delta)
            if new_end > now + MAX_FUTURE_SECONDS:
                raise ValidationError("Resulting time is unreasonably far in the future")

            if not self._shifts.update_end_time(shift_id=shift.id, end_time=new_end):
                raise ConflictError("Cannot adjust an active shift")
            updated = self._require_shift(shift.id)
            durations = self.durations(updated, now=now)

        logger.info("Shift %s adjusted by %ss (end %s -> %s)", shift.id, delta, shift.end_time, updated.end_time)
        self._notify(
            ShiftEvent(
                kind=ShiftEventKind.SHIFT_ADJUSTED,
                guild_id=updated.guild_id,
                at=now,
                subject_id=updated.subject_id,
                actor_id=actor_id,
                reason=reason,
                shift=updated,
                effective_seconds=durations.effective_seconds,
                break_seconds=durations.break_seconds,
                delta_seconds=updated.end_time - shift.end_time,
            )
        )
        return updated

    def delete_shift(
        self,
        shift_id: int,
        *,
        actor_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> bool:
        reason = self._clean_reason(reason)
        actor_id = self._actor(actor_id)
        shift = self._shifts.get_by_id(int(shift_id))
        if shift is None:
            return False
        with self._locks.hold((shift.subject_id, shift.guild_id)):
            deleted = self._shifts.delete_with_breaks(shift.id)
        if deleted:
            logger.info("Shift %s deleted", shift.id)
            self._notify(
                ShiftEvent(
                    kind=ShiftEventKind.SHIFT_DELETED,
                    guild_id=shift.guild_id,
                    at=self._clock.now(),
                    subject_id=shift.subject_id,
                    actor_id=actor_id,
                    reason=reason,
                    shift=shift,
                )
            )
        return deleted

    def clear_weekly_shifts(
        self,
        guild_id: str,
        *,
        actor_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> int:
        """Delete every shift started in the current week, with its breaks.

        Irreversible; confirmation belongs to the caller.
        """

        guild_id = str(guild_id)
        reason = self._clean_reason(reason)
        actor_id = self._actor(actor_id)
        window = self.week_window(guild_id)
        deleted = self._shifts.delete_in_window(
            guild_id,
            start=window.start,
            end=window.end,
            max_rows=BULK_DELETE_LIMIT,
        )
        logger.warning("Weekly reset removed %d shift(s) in guild %s", deleted, guild_id)
        if deleted:
            self._notify(
                ShiftEvent(
                    kind=ShiftEventKind.WEEK_CLEARED,
                    guild_id=guild_id,
                    at=self._clock.now(),
                    actor_id=actor_id,
                    reason=reason,
                    count=deleted,
                )
            )
        return deleted

    def purge_old_shifts(self, max_age_seconds: int = SHIFT_RETENTION_SECONDS) -> int:
        max_age = require_int(max_age_seconds, "max_age_seconds", min_value=0)
        deleted = self._shifts.delete_closed_before(self._clock.now() - max_age)
        if deleted:
            logger.info("Retention cleanup removed %d shift(s)", deleted)
        return deleted

    # ---- reads ----

    def week_window(self, guild_id: str, week_offset: int = 0) -> WeekWindow:
        return self._guilds.week_window(str(guild_id), self._clock.now(), week_offset, self._tz)

    def get_shift(self, shift_id: int) -> Shift:
        return self._require_shift(shift_id)

    def get_break(self, break_id: int) -> Break:
        return self._require_break(break_id)

    def active_shift(self, subject_id: str, guild_id: str) -> Optional[Shift]:
        return self._shifts.get_open(str(subject_id), str(guild_id))

    def active_break(self, subject_id: str, guild_id: str) -> Optional[Break]:
        return self._breaks.get_open(str(subject_id), str(guild_id))

    def shifts_for_subject(
        self,
        subject_id: str,
        guild_id: str,
        *,
        limit: Optional[int] = None,
        unit: Optional[str] = None,
    ) -> Sequence[Shift]:
        shifts = self._shifts.list_for_subject(str(subject_id), str(guild_id), limit=limit)
        if unit is not None:
            shifts = [s for s in shifts if s.unit == unit]
        return shifts

    def breaks_for_shift(self, shift_id: int) -> Sequence[Break]:
        return self._breaks.list_for_shift(int(shift_id))

    def durations(self, shift: Shift, *, now: Optional[int] = None) -> ShiftDurations:
        now = self._clock.now() if now is None else now
        return shift_durations(shift, self._breaks.list_for_shift(shift.id), now)

    def units(self, guild_id: str) -> Sequence[str]:
        return self._shifts.list_units(str(guild_id))

    # ---- helpers ----

    def _clean_unit(self, unit: Optional[str]) -> str:
        unit = require_non_empty(unit, "Unit")
        unit = require_max_length(unit, "Unit", MAX_UNIT_LENGTH)
        return require_choice(unit, "Unit", self._units)

    def _require_shift(self, shift_id: int) -> Shift:
        shift = self._shifts.get_by_id(int(shift_id))
        if shift is None:
            raise NotFoundError(f"Shift {shift_id} not found")
        return shift

    def _require_break(self, break_id: int) -> Break:
        brk = self._breaks.get_by_id(int(break_id))
        if brk is None:
            raise NotFoundError(f"Break {break_id} not found")
        return brk

    @staticmethod
    def _clean_reason(reason: Optional[str]) -> Optional[str]:
        return optional_text(reason, "Reason", MAX_REASON_LENGTH)

    @staticmethod
    def _actor(actor_id: Optional[str]) -> Optional[str]:
        if actor_id is None or actor_id == "":
            return None
        if isinstance(actor_id, int) and not isinstance(actor_id, bool):
            return str(actor_id)
        return require_non_empty(actor_id, "actor_id")

    def _notify(self, event: ShiftEvent) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change(event)
        except Exception:
            logger.exception("Change listener failed for %s in guild %s", event.kind.value, event.guild_id)

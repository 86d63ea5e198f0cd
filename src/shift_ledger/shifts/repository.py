from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Break, Shift


class ShiftRepository(Protocol):
    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        raise NotImplementedError

    def get_open(self, subject_id: str, guild_id: str) -> Optional[Shift]:
        raise NotImplementedError

    def list_open(self, guild_id: str, *, unit: Optional[str] = None) -> Sequence[Shift]:
        """Open shifts ordered by start time, oldest first."""

        raise NotImplementedError

    def list_for_subject(
        self,
        subject_id: str,
        guild_id: str,
        *,
        limit: Optional[int] = None,
    ) -> Sequence[Shift]:
        """Newest first."""

        raise NotImplementedError

    def list_in_window(
        self,
        guild_id: str,
        *,
        start: int,
        end: int,
        unit: Optional[str] = None,
        subject_id: Optional[str] = None,
    ) -> Sequence[Shift]:
        """Shifts with start <= start_time < end, oldest first."""

        raise NotImplementedError

    def list_units(self, guild_id: str) -> Sequence[str]:
        raise NotImplementedError

    def create_open(
        self,
        *,
        subject_id: str,
        guild_id: str,
        start_time: int,
        unit: Optional[str],
        start_proof_url: Optional[str] = None,
    ) -> int:
        """Insert an open shift. Raises ConflictError if one is already open."""

        raise NotImplementedError

    def close(self, *, shift_id: int, end_time: int, end_proof_url: Optional[str] = None) -> bool:
        """Close an open shift and its open break in one transaction."""

        raise NotImplementedError

    def update_end_time(self, *, shift_id: int, end_time: int) -> bool:
        """Only touches closed shifts."""

        raise NotImplementedError

    def delete_with_breaks(self, shift_id: int) -> bool:
        raise NotImplementedError

    def delete_in_window(self, guild_id: str, *, start: int, end: int, max_rows: int) -> int:
        """Delete the window's shifts and their breaks atomically.

        Raises ResourceExhaustedError (deleting nothing) above max_rows.
        """

        raise NotImplementedError

    def delete_closed_before(self, cutoff: int) -> int:
        """Delete closed shifts started before cutoff, with their breaks."""

        raise NotImplementedError


class BreakRepository(Protocol):
    def get_by_id(self, break_id: int) -> Optional[Break]:
        raise NotImplementedError

    def get_open(self, subject_id: str, guild_id: str) -> Optional[Break]:
        raise NotImplementedError

    def list_for_shift(self, shift_id: int) -> Sequence[Break]:
        raise NotImplementedError

    def list_for_shifts(self, shift_ids: Sequence[int]) -> Sequence[Break]:
        raise NotImplementedError

    def list_open_for_guild(self, guild_id: str) -> Sequence[Break]:
        raise NotImplementedError

    def create_open(self, *, shift_id: int, subject_id: str, guild_id: str, start_time: int) -> int:
        """Insert an open break under a still-open shift.

        Raises ConflictError if the shift is closed or a break is already open.
        """

        raise NotImplementedError

    def close(self, *, break_id: int, end_time: int) -> bool:
        raise NotImplementedError

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import ScheduledAction


class ActionRepository(Protocol):
    def create(
        self,
        *,
        subject_id: str,
        guild_id: str,
        action_type: str,
        start_date: int,
        end_date: int,
        description: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def get_by_id(self, action_id: int) -> Optional[ScheduledAction]:
        raise NotImplementedError

    def list_for_subject(
        self,
        subject_id: str,
        guild_id: str,
        *,
        include_completed: bool = True,
    ) -> Sequence[ScheduledAction]:
        raise NotImplementedError

    def list_by_type(
        self,
        action_type: str,
        guild_id: str,
        *,
        include_completed: bool = True,
    ) -> Sequence[ScheduledAction]:
        raise NotImplementedError

    def list_expired(self, now: int, *, guild_id: Optional[str] = None) -> Sequence[ScheduledAction]:
        """Incomplete actions with end_date <= now, earliest first."""

        raise NotImplementedError

    def complete(self, action_id: int, *, completed_at: int) -> bool:
        raise NotImplementedError

    def delete(self, action_id: int) -> bool:
        raise NotImplementedError

    def delete_expired(self, now: int, *, guild_id: Optional[str] = None, max_rows: int) -> Sequence[ScheduledAction]:
        """Delete and return expired actions atomically.

        Raises ResourceExhaustedError (deleting nothing) above max_rows.
        """

        raise NotImplementedError

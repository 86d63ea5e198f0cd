from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

from ..common.clock import Clock, SystemClock
from ..common.validators import optional_text, require_int, require_max_length, require_non_empty
from ..core.constants import BULK_DELETE_LIMIT, DAY_SECONDS, MAX_ACTION_TYPE_LENGTH, MAX_DESCRIPTION_LENGTH
from ..core.exceptions import NotFoundError, ValidationError
from .model import ScheduledAction
from .repository import ActionRepository

logger = logging.getLogger(__name__)


class ActionService:
    def __init__(self, actions: ActionRepository, *, clock: Optional[Clock] = None):
        self._actions = actions
        self._clock = clock or SystemClock()

    def create_action(
        self,
        subject_id: str,
        guild_id: str,
        action_type: str,
        start_date: int,
        end_date: int,
        description: Optional[str] = None,
    ) -> ScheduledAction:
        action_type = require_max_length(require_non_empty(action_type, "Action type"), "Action type", MAX_ACTION_TYPE_LENGTH)
        start = require_int(start_date, "start_date", min_value=0)
        end = require_int(end_date, "end_date", min_value=0)
        if end < start:
            raise ValidationError("End date must be on or after start date")

        description = optional_text(description, "Description", MAX_DESCRIPTION_LENGTH)

        action_id = self._actions.create(
            subject_id=str(subject_id),
            guild_id=str(guild_id),
            action_type=action_type,
            start_date=start,
            end_date=end,
            description=description,
        )
        logger.info("Action %s (%s) created for %s in guild %s", action_id, action_type, subject_id, guild_id)
        return self.get_action(action_id)

    def get_action(self, action_id: int) -> ScheduledAction:
        action = self._actions.get_by_id(int(action_id))
        if action is None:
            raise NotFoundError(f"Action {action_id} not found")
        return action

    def complete_action(self, action_id: int) -> ScheduledAction:
        if not self._actions.complete(int(action_id), completed_at=self._clock.now()):
            raise NotFoundError(f"Action {action_id} not found")
        return self.get_action(action_id)

    def actions_for_subject(
        self,
        subject_id: str,
        guild_id: str,
        *,
        include_completed: bool = True,
    ) -> Sequence[ScheduledAction]:
        return self._actions.list_for_subject(str(subject_id), str(guild_id), include_completed=include_completed)

    def actions_by_type(
        self,
        action_type: str,
        guild_id: str,
        *,
        include_completed: bool = True,
    ) -> Sequence[ScheduledAction]:
        return self._actions.list_by_type(action_type, str(guild_id), include_completed=include_completed)

    def expired_actions(self, guild_id: Optional[str] = None) -> Sequence[ScheduledAction]:
        return self._actions.list_expired(self._clock.now(), guild_id=guild_id)

    def purge_expired_actions(self, guild_id: Optional[str] = None) -> Sequence[ScheduledAction]:
        removed = self._actions.delete_expired(self._clock.now(), guild_id=guild_id, max_rows=BULK_DELETE_LIMIT)
        if removed:
            logger.info("Purged %d expired action(s)", len(removed))
        return removed

    @staticmethod
    def duration_days(action: ScheduledAction) -> int:
        return math.ceil((action.end_date - action.start_date) / DAY_SECONDS)

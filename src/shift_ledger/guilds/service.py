from __future__ import annotations

import logging
from datetime import tzinfo
from typing import Optional, Sequence

from ..common.validators import require_int
from ..core.constants import DEFAULT_WEEK_START_DAY, MAX_WEEK_OFFSET
from ..core.exceptions import ValidationError
from ..reports.week import WeekWindow, week_window
from .model import CONFIGURABLE_FIELDS, GuildConfig
from .repository import GuildRepository

logger = logging.getLogger(__name__)


class GuildService:
    def __init__(self, guilds: GuildRepository):
        self._guilds = guilds

    def get(self, guild_id: str) -> Optional[GuildConfig]:
        return self._guilds.get(str(guild_id))

    def get_or_default(self, guild_id: str) -> GuildConfig:
        """Stored configuration, or the defaults without persisting them."""

        return self._guilds.get(str(guild_id)) or GuildConfig(guild_id=str(guild_id))

    def get_or_create(self, guild_id: str) -> GuildConfig:
        existing = self._guilds.get(str(guild_id))
        if existing:
            return existing
        logger.info("Creating configuration for guild %s", guild_id)
        return self._guilds.create(str(guild_id))

    def configure(self, guild_id: str, /, **fields) -> GuildConfig:
        unknown = sorted(set(fields) - set(CONFIGURABLE_FIELDS))
        if unknown:
            raise ValidationError(f"Unknown setting(s): {', '.join(unknown)}")

        clean: dict = {}
        for name, value in fields.items():
            if name == "week_start_day":
                clean[name] = require_int(value, "week_start_day", min_value=0, max_value=6)
            elif value is None:
                clean[name] = None
            else:
                # Empty string clears a target/role.
                clean[name] = str(value).strip() or None

        self.get_or_create(guild_id)
        updated = self._guilds.update(str(guild_id), clean)
        if updated is None:
            raise ValidationError("Guild configuration update failed")
        return updated

    def roster_guilds(self) -> Sequence[GuildConfig]:
        return self._guilds.list_with_roster_target()

    def week_start_day(self, guild_id: str) -> int:
        config = self._guilds.get(str(guild_id))
        return config.week_start_day if config else DEFAULT_WEEK_START_DAY

    def week_window(self, guild_id: str, now: int, week_offset: int = 0, tz: Optional[tzinfo] = None) -> WeekWindow:
        """The guild's week containing `now`, shifted by up to ten years either way."""

        offset = require_int(week_offset, "week_offset", min_value=-MAX_WEEK_OFFSET, max_value=MAX_WEEK_OFFSET)
        return week_window(now, self.week_start_day(guild_id), offset, tz)

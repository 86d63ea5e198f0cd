from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.constants import DEFAULT_WEEK_START_DAY


@dataclass(frozen=True)
class GuildConfig:
    """Per-organisation settings: publish targets, roles and week start."""

    guild_id: str
    shift_log_target_id: Optional[str] = None
    roster_target_id: Optional[str] = None
    action_log_target_id: Optional[str] = None
    access_role_id: Optional[str] = None
    admin_role_id: Optional[str] = None
    week_start_day: int = DEFAULT_WEEK_START_DAY
    created_at: Optional[int] = None
    updated_at: Optional[int] = None


CONFIGURABLE_FIELDS = (
    "shift_log_target_id",
    "roster_target_id",
    "action_log_target_id",
    "access_role_id",
    "admin_role_id",
    "week_start_day",
)

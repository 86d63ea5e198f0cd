from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ScheduledAction:
    """Time-bounded administrative action (e.g. leave of absence)."""

    id: int
    subject_id: str
    guild_id: str
    action_type: str
    start_date: int
    end_date: int
    description: Optional[str] = None
    is_completed: bool = False
    completed_at: Optional[int] = None

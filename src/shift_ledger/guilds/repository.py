from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import GuildConfig


class GuildRepository(Protocol):
    def get(self, guild_id: str) -> Optional[GuildConfig]:
        raise NotImplementedError

    def create(self, guild_id: str) -> GuildConfig:
        """Insert a default row; returns the existing row if already present."""

        raise NotImplementedError

    def update(self, guild_id: str, fields: dict) -> Optional[GuildConfig]:
        """Apply a whitelist-checked partial update."""

        raise NotImplementedError

    def list_with_roster_target(self) -> Sequence[GuildConfig]:
        raise NotImplementedError

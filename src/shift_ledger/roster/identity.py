from __future__ import annotations

from typing import Optional, Protocol

from ..common.clock import Clock, SystemClock
from ..core.constants import IDENTITY_CACHE_SECONDS
from .discord_api import DiscordAPI


def mention(subject_id: str) -> str:
    return f"<@{subject_id}>"


class IdentityResolver(Protocol):
    def display_name(self, guild_id: str, subject_id: str) -> str:
        raise NotImplementedError


class DiscordMemberResolver(IdentityResolver):
    """Guild nickname, then global name, then username.

    Names are cached per (guild, subject) for ttl_seconds so renames show up
    on a later refresh; expired entries are dropped on the next lookup.
    """

    def __init__(self, api: DiscordAPI, *, clock: Optional[Clock] = None, ttl_seconds: int = IDENTITY_CACHE_SECONDS):
        self._api = api
        self._clock = clock or SystemClock()
        self._ttl = int(ttl_seconds)
        self._cache: dict[tuple[str, str], tuple[str, int]] = {}

    def display_name(self, guild_id: str, subject_id: str) -> str:
        key = (str(guild_id), str(subject_id))
        now = self._clock.now()
        cached = self._cache.get(key)
        if cached and cached[1] > now:
            return cached[0]

        member = self._api.get(f"guilds/{guild_id}/members/{subject_id}") or {}
        user = member.get("user") or {}
        name = member.get("nick") or user.get("global_name") or user.get("username") or mention(subject_id)

        self._cache = {k: v for k, v in self._cache.items() if v[1] > now}
        self._cache[key] = (name, now + self._ttl)
        return name

    def __len__(self) -> int:
        return len(self._cache)

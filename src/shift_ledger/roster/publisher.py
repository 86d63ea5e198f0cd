from __future__ import annotations

from typing import Optional, Protocol

from ..core.constants import ROSTER_SCAN_LIMIT
from .discord_api import DiscordAPI


class DisplayPublisher(Protocol):
    def find_own_message(self, target_id: str, marker: str) -> Optional[str]:
        """Most recent message we authored in target_id whose content has marker."""

        raise NotImplementedError

    def send(self, target_id: str, content: str) -> str:
        raise NotImplementedError

    def edit(self, target_id: str, message_id: str, content: str) -> None:
        raise NotImplementedError


class DiscordChannelPublisher(DisplayPublisher):
    def __init__(self, api: DiscordAPI, *, scan_limit: int = ROSTER_SCAN_LIMIT):
        self._api = api
        self._scan_limit = int(scan_limit)
        self._bot_user_id: Optional[str] = None

    def _own_id(self) -> str:
        if self._bot_user_id is None:
            self._bot_user_id = str(self._api.get("users/@me")["id"])
        return self._bot_user_id

    def find_own_message(self, target_id: str, marker: str) -> Optional[str]:
        own_id = self._own_id()
        # Discord returns newest first.
        messages = self._api.get(f"channels/{target_id}/messages", params={"limit": self._scan_limit}) or []
        for msg in messages:
            author = msg.get("author") or {}
            if str(author.get("id")) == own_id and marker in (msg.get("content") or ""):
                return str(msg["id"])
        return None

    def send(self, target_id: str, content: str) -> str:
        msg = self._api.post(f"channels/{target_id}/messages", {"content": content})
        return str(msg["id"])

    def edit(self, target_id: str, message_id: str, content: str) -> None:
        self._api.patch(f"channels/{target_id}/messages/{message_id}", {"content": content})

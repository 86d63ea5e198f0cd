"""Minimal Discord REST client using a bot token."""

from __future__ import annotations

from typing import Any, Optional

import requests

DISCORD_API_BASE = "https://discord.com/api/v10"


class DiscordAPI:
    def __init__(
        self,
        token: str,
        *,
        api_base: str = DISCORD_API_BASE,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self._api_base = api_base.rstrip("/")
        self._timeout = float(timeout)
        self._session = session or requests.Session()
        self._headers = {
            "Authorization": f"Bot {token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def request(self, method: str, endpoint: str, *, params: dict | None = None, json: dict | None = None) -> Any:
        """Make an authenticated request; raises requests.HTTPError on failure."""

        resp = self._session.request(
            method,
            f"{self._api_base}/{endpoint.lstrip('/')}",
            params=params,
            json=json,
            headers=self._headers,
            timeout=self._timeout,
        )
        resp.raise_for_status()
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    def get(self, endpoint: str, params: dict | None = None) -> Any:
        return self.request("GET", endpoint, params=params)

    def post(self, endpoint: str, payload: dict) -> Any:
        return self.request("POST", endpoint, json=payload)

    def patch(self, endpoint: str, payload: dict) -> Any:
        return self.request("PATCH", endpoint, json=payload)

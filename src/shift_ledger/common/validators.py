from __future__ import annotations

from typing import Iterable, Optional
from urllib.parse import urlparse

from ..core.constants import MAX_PROOF_LENGTH
from ..core.exceptions import ValidationError

ALLOWED_PROOF_HOSTS = frozenset(
    {
        "imgur.com",
        "i.imgur.com",
        "gyazo.com",
        "i.gyazo.com",
        "prntscr.com",
        "prnt.sc",
        "lightshot.com",
        "discord.com",
        "discordapp.com",
        "cdn.discordapp.com",
        "media.discordapp.net",
        "media.discordapp.com",
    }
)


def require_str(value, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    return value


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if value is None or not require_str(value, field_name).strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_max_length(value: str, field_name: str, max_len: int) -> str:
    if len(value) > max_len:
        raise ValidationError(f"{field_name} too long (max {max_len} characters)")
    return value


def require_int(value, field_name: str, *, min_value: Optional[int] = None, max_value: Optional[int] = None) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
    if isinstance(value, float) and value != number:
        raise ValidationError(f"{field_name} must be an integer")
    if min_value is not None and number < min_value:
        raise ValidationError(f"{field_name} must be at least {min_value}")
    if max_value is not None and number > max_value:
        raise ValidationError(f"{field_name} must be at most {max_value}")
    return number


def optional_text(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    """Stripped text, or None when absent or blank."""

    if value is None:
        return None
    value = require_str(value, field_name).strip()
    if not value:
        return None
    return require_max_length(value, field_name, max_len)


def require_choice(value: str, field_name: str, choices: Iterable[str]) -> str:
    allowed = list(choices)
    if allowed and value not in allowed:
        raise ValidationError(f"{field_name} must be one of: {', '.join(allowed)}")
    return value


def validate_proof_url(url: Optional[str]) -> Optional[str]:
    """Proof links must be https and hosted on an approved media service."""

    if url is None:
        return None
    url = require_str(url, "Proof URL").strip()
    if not url:
        return None
    if len(url) > MAX_PROOF_LENGTH:
        raise ValidationError(f"Proof URL too long (max {MAX_PROOF_LENGTH} characters)")

    parsed = urlparse(url)
    if parsed.scheme != "https":
        raise ValidationError("Only HTTPS proof URLs are allowed")
    host = (parsed.hostname or "").lower()
    if host not in ALLOWED_PROOF_HOSTS:
        raise ValidationError("Proof URL host is not an approved media service")
    return url

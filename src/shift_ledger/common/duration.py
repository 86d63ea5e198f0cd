from __future__ import annotations

MONTH_SECONDS = 30 * 24 * 3600


def format_duration(seconds: int) -> str:
    """Render seconds as '1mo 2d 3h 4m'; anything under a minute is '0m'."""

    seconds = max(0, int(seconds))
    months = seconds // MONTH_SECONDS
    days = (seconds % MONTH_SECONDS) // (24 * 3600)
    hours = (seconds % (24 * 3600)) // 3600
    minutes = (seconds % 3600) // 60

    parts: list[str] = []
    if months:
        parts.append(f"{months}mo")
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    return " ".join(parts) or "0m"


def format_hours_minutes(seconds: int) -> str:
    seconds = max(0, int(seconds))
    return f"{seconds // 3600}h {(seconds % 3600) // 60}m"

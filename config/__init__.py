import os


def get_settings_module() -> str:
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "config.production"

    if env in {"test", "testing"}:
        return "config.testing"

    return "config.development"


def env_list(name: str, default: str = "") -> tuple:
    """Comma-separated env var as a tuple of non-empty, stripped items."""

    return tuple(item.strip() for item in os.getenv(name, default).split(",") if item.strip())

import os

from config import env_list

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "shift_ledger"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

TIMEZONE = os.getenv("TIMEZONE", "")
UNITS = env_list("UNITS")
EMPLOYEE_TERM = os.getenv("EMPLOYEE_TERM", "employee")

ROSTER_REFRESH_ENABLED = bool(int(os.getenv("ROSTER_REFRESH_ENABLED", "1")))
ROSTER_REFRESH_SECONDS = int(os.getenv("ROSTER_REFRESH_SECONDS", "180"))

DISCORD_TOKEN = os.getenv("DISCORD_TOKEN", "")
DISCORD_API_BASE = os.getenv("DISCORD_API_BASE", "https://discord.com/api/v10")
PUBLISH_TIMEOUT_SECONDS = float(os.getenv("PUBLISH_TIMEOUT_SECONDS", "10"))

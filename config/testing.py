import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "shift_ledger_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False

TIMEZONE = "UTC"
UNITS = ()
EMPLOYEE_TERM = "employee"

ROSTER_REFRESH_ENABLED = False
ROSTER_REFRESH_SECONDS = 180

DISCORD_TOKEN = ""
DISCORD_API_BASE = "https://discord.com/api/v10"
PUBLISH_TIMEOUT_SECONDS = 10.0

"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DAY_SECONDS = 24 * 60 * 60
WEEK_SECONDS = 7 * DAY_SECONDS

DEFAULT_WEEK_START_DAY = 1  # 0=Sunday .. 6=Saturday
MAX_WEEK_OFFSET = 520

MAX_ADJUST_SECONDS = 7 * DAY_SECONDS
MAX_FUTURE_SECONDS = 365 * DAY_SECONDS
BULK_DELETE_LIMIT = 1000
SHIFT_RETENTION_SECONDS = 10 * WEEK_SECONDS

MAX_UNIT_LENGTH = 20
MAX_PROOF_LENGTH = 2000
MAX_ACTION_TYPE_LENGTH = 50
MAX_DESCRIPTION_LENGTH = 500
MAX_REASON_LENGTH = 500

DEFAULT_HISTORY_LIMIT = 10
RECENT_SHIFTS_LIMIT = 5

ROSTER_REFRESH_SECONDS = 3 * 60
ROSTER_CONTENT_BUDGET = 1800
ROSTER_HEADER = "## 🕐 Active Shifts"
ROSTER_SCAN_LIMIT = 50
IDENTITY_CACHE_SECONDS = 5 * 60

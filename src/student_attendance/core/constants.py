"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_GRACE_SECONDS = 30
DEFAULT_TOKEN_DAYS = 30
DEFAULT_HISTORY_PAGE_SIZE = 25
DEFAULT_DAY_BOUNDARY = "00:00"
UNKNOWN_CLIENT = "Unknown"

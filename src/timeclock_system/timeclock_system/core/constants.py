"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

EARTH_RADIUS_M = 6_371_000

MIN_RADIUS_M = 10
DEFAULT_RADIUS_M = 50

STATS_WINDOW_DAYS = 7
WORKER_HISTORY_LIMIT = 20
ADMIN_RECENT_LIMIT = 25

MIN_PASSWORD_LENGTH = 8
DEFAULT_SESSION_DAYS = 7

"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

REPLY_SUBJECT_PREFIX = "Re: "
DEFAULT_ATTENDANCE_HISTORY_LIMIT = 30
MAX_CACHED_ENGINES = 256

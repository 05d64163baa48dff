"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_WEEKEND_DAYS = ("saturday", "sunday")

DEFAULT_WARNING_DAYS = 2
DEFAULT_ADVANCE_LEAVE_TYPE = "casual"
DEFAULT_POST_LEAVE_TYPE = "sick"

REASON_MIN_LENGTH = 10
REASON_MAX_LENGTH = 1000
COMMENT_MAX_LENGTH = 1000

MAX_BALANCE_DAYS = 365
MAX_ATTENDANCE_THRESHOLD = 365

DEFAULT_LIST_LIMIT = 200

"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

LATE_CHECKIN_HOUR = 11
EARLY_CHECKOUT_FLAG_HOUR = 16
LONG_DAY_HOURS = 12
ACTIVITY_GAP_MINUTES = 30

EARLY_CHECKOUT_CUTOFF_HOUR = 19
AUTO_CHECKOUT_HOUR = 19
AUTO_CHECKOUT_MARKER = "Auto-checkout"
AUTO_CHECKOUT_NOTE = "Auto-checkout at 7 PM"

ABSENT_ID_PREFIX = "absent"
ABSENT_NOTE = "No attendance record for this date"

NOTES_SEPARATOR = "; "
SYSTEM_NOTES_SEPARATOR = " | "

DEFAULT_PAGE_SIZE = 20
DEFAULT_HISTORY_PAGE_SIZE = 10
LIVE_TRACKING_ACTIVITY_LIMIT = 5

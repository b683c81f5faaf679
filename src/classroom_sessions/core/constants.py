"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_EARLY_GRACE_MINUTES = 10
DEFAULT_LATE_GRACE_MINUTES = 15

DEFAULT_RECURRENCE_INTERVAL = 1
DEFAULT_RECURRENCE_COUNT = 1

WINDOW_CLOSED_MESSAGE = "Attendance can only be marked during scheduled class time"

# Column widths of class_sessions.room and attendance_records.session_label
ROOM_MAX_LENGTH = 100
SESSION_LABEL_MAX_LENGTH = 100

# One recurring request may not generate more sessions than this
MAX_RECURRENCE_COUNT = 366

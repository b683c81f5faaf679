from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Actor roles supplied by the authentication layer."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class SessionStatus(str, Enum):
    """Lifecycle status of a class session."""

    SCHEDULED = "scheduled"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.COMPLETED, SessionStatus.CANCELLED)


# Sessions that can still authorize an attendance marking.
OPEN_SESSION_STATUSES = (SessionStatus.SCHEDULED, SessionStatus.ACTIVE)


class RecurrenceFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"


class StudentAttendanceStatus(str, Enum):
    """Per-student mark stored inside an attendance record."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"

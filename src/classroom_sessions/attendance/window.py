from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

from ..core.constants import DEFAULT_EARLY_GRACE_MINUTES, DEFAULT_LATE_GRACE_MINUTES, WINDOW_CLOSED_MESSAGE
from ..core.enums import OPEN_SESSION_STATUSES
from ..core.exceptions import AuthorizationError
from ..courses.model import Course
from ..courses.service import is_course_teacher
from ..sessions.model import ClassSession
from ..sessions.repository import SessionRepository
from ..users.model import Actor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WindowConfig:
    """Grace periods around a session during which marking is still allowed.

    early_grace_minutes widens the window before start_time,
    late_grace_minutes widens it after end_time.
    """

    early_grace_minutes: int = DEFAULT_EARLY_GRACE_MINUTES
    late_grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES

    def __post_init__(self):
        if int(self.early_grace_minutes) < 0 or int(self.late_grace_minutes) < 0:
            raise ValueError("Grace minutes must not be negative")

    @classmethod
    def from_settings(cls, settings: Any) -> "WindowConfig":
        return cls(
            early_grace_minutes=int(getattr(settings, "ATTENDANCE_EARLY_GRACE_MINUTES", DEFAULT_EARLY_GRACE_MINUTES)),
            late_grace_minutes=int(getattr(settings, "ATTENDANCE_LATE_GRACE_MINUTES", DEFAULT_LATE_GRACE_MINUTES)),
        )

    @property
    def early_grace(self) -> timedelta:
        return timedelta(minutes=int(self.early_grace_minutes))

    @property
    def late_grace(self) -> timedelta:
        return timedelta(minutes=int(self.late_grace_minutes))


@dataclass(frozen=True)
class WindowDecision:
    allowed: bool
    session_id: Optional[int] = None
    reason: Optional[str] = None


class AttendanceWindowGate:
    """Decides whether attendance may be marked for a course at a given instant.

    A marking is allowed when some scheduled/active session of the course
    satisfies start_time - early_grace <= reference_time <= end_time + late_grace.
    The gate never reads the clock; callers pass the reference time explicitly.
    """

    def __init__(self, sessions: SessionRepository, config: WindowConfig | None = None):
        self._sessions = sessions
        self._config = config or WindowConfig()

    @property
    def config(self) -> WindowConfig:
        return self._config

    def find_session(self, *, course_id: int, reference_time: datetime) -> Optional[ClassSession]:
        return self._sessions.find_latest_covering(
            course_id=int(course_id),
            statuses=OPEN_SESSION_STATUSES,
            starts_by=reference_time + self._config.early_grace,
            ends_after=reference_time - self._config.late_grace,
        )

    def check_allowed(self, *, course: Course, actor: Actor, reference_time: datetime) -> WindowDecision:
        """Trusts that course access was already checked; only re-asserts teacher ownership."""

        if actor.is_admin:
            return WindowDecision(allowed=True)

        if not is_course_teacher(course, actor):
            raise AuthorizationError("Not authorized for this course")

        session = self.find_session(course_id=course.course_id, reference_time=reference_time)
        if not session:
            logger.warning(
                "Attendance window closed for course %s at %s (user %s)",
                course.course_id, reference_time, actor.user_id,
            )
            return WindowDecision(allowed=False, reason=WINDOW_CLOSED_MESSAGE)

        return WindowDecision(allowed=True, session_id=session.session_id)

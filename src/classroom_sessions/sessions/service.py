from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, List, Optional, Tuple

from ..common.datetime_utils import parse_instant
from ..common.validators import require_id, require_max_length
from ..core.constants import ROOM_MAX_LENGTH
from ..core.enums import SessionStatus
from ..core.exceptions import (
    AuthorizationError,
    InvalidStateForRescheduleError,
    InvalidTimeRangeError,
    SessionNotFoundError,
    ValidationError,
)
from ..courses.service import CourseAccessService
from ..users.model import Actor
from .model import ClassSession, NewSession
from .recurrence import build_recurrence, expand_occurrences
from .repository import SessionRepository

logger = logging.getLogger(__name__)


def parse_time_range(start_time: Any, end_time: Any) -> Tuple[datetime, datetime]:
    start = parse_instant(start_time)
    end = parse_instant(end_time)
    if not start or not end:
        raise InvalidTimeRangeError("startTime/endTime must be valid dates")
    if end <= start:
        raise InvalidTimeRangeError("endTime must be after startTime")
    return start, end


def clean_room(value: Any) -> str:
    return require_max_length(value.strip() if isinstance(value, str) else "", "room", ROOM_MAX_LENGTH)


def parse_status(value: Any) -> SessionStatus:
    try:
        return SessionStatus(str(value or "").strip().lower())
    except ValueError:
        raise ValidationError("Invalid status")


class SessionService:
    """Creates class sessions and drives their lifecycle.

    Status updates are deliberately unrestricted: any status may follow any
    other. Only rescheduling is refused once a session is completed or cancelled.
    """

    def __init__(self, sessions: SessionRepository, course_access: CourseAccessService):
        self._sessions = sessions
        self._course_access = course_access

    def _load_for_update(self, actor: Actor, session_id: Any) -> ClassSession:
        session = self._sessions.get_by_id(require_id(session_id, "session id"))
        if not session:
            raise SessionNotFoundError("Session not found")
        self._course_access.ensure_access(session.course_id, actor)
        return session

    def _reload(self, session_id: int) -> ClassSession:
        session = self._sessions.get_by_id(session_id)
        if not session:
            raise SessionNotFoundError("Session not found")
        return session

    def get_session(self, *, actor: Actor, session_id: Any) -> ClassSession:
        return self._load_for_update(actor, session_id)

    def create_single(
        self,
        *,
        actor: Actor,
        course_id: Any,
        start_time: Any,
        end_time: Any,
        room: Optional[str] = None,
    ) -> ClassSession:
        course = self._course_access.ensure_access(require_id(course_id, "course id"), actor)
        start, end = parse_time_range(start_time, end_time)
        room_label = clean_room(room)

        created = self._sessions.create(
            NewSession(
                course_id=course.course_id,
                start_time=start,
                end_time=end,
                created_by=actor.user_id,
                room=room_label,
            )
        )
        logger.info(
            "Session %s created for course %s (%s - %s) by user %s",
            created.session_id, course.course_id, start, end, actor.user_id,
        )
        return created

    def create_recurring(
        self,
        *,
        actor: Actor,
        course_id: Any,
        start_time: Any,
        end_time: Any,
        frequency: Any,
        interval: Any = None,
        count: Any = None,
        until: Any = None,
        room: Optional[str] = None,
    ) -> List[ClassSession]:
        course = self._course_access.ensure_access(require_id(course_id, "course id"), actor)
        start, end = parse_time_range(start_time, end_time)

        until_at = None
        if until not in (None, ""):
            until_at = parse_instant(until)
            if until_at is None:
                raise ValidationError("until must be a valid date")

        room_label = clean_room(room)
        recurrence = build_recurrence(frequency=frequency, interval=interval, count=count, until=until_at)
        occurrences = expand_occurrences(start, end, recurrence)
        if not occurrences:
            logger.info("Recurring request for course %s produced no sessions (until=%s)", course.course_id, until_at)
            return []

        created = self._sessions.create_many(
            [
                NewSession(
                    course_id=course.course_id,
                    start_time=occ_start,
                    end_time=occ_end,
                    created_by=actor.user_id,
                    room=room_label,
                    recurrence=recurrence,
                )
                for occ_start, occ_end in occurrences
            ]
        )
        logger.info(
            "Created %d %s sessions for course %s by user %s",
            len(created), recurrence.frequency.value, course.course_id, actor.user_id,
        )
        return list(created)

    def reschedule(
        self,
        *,
        actor: Actor,
        session_id: Any,
        start_time: Any,
        end_time: Any,
        reason: Any = None,
        room: Optional[str] = None,
    ) -> ClassSession:
        session = self._load_for_update(actor, session_id)

        if session.status.is_terminal:
            raise InvalidStateForRescheduleError(f"Cannot reschedule a {session.status.value} session")

        start, end = parse_time_range(start_time, end_time)

        self._sessions.update_schedule(
            session_id=session.session_id,
            start_time=start,
            end_time=end,
            reschedule_reason=reason.strip() if isinstance(reason, str) else "",
            room=clean_room(room) if isinstance(room, str) else None,
            updated_by=actor.user_id,
        )
        logger.info("Session %s rescheduled to %s - %s by user %s", session.session_id, start, end, actor.user_id)
        return self._reload(session.session_id)

    def update_status(
        self,
        *,
        actor: Actor,
        session_id: Any,
        status: Any,
        cancelled_reason: Any = None,
    ) -> ClassSession:
        session = self._load_for_update(actor, session_id)
        new_status = parse_status(status)

        reason = None
        if new_status == SessionStatus.CANCELLED and cancelled_reason is not None:
            reason = str(cancelled_reason or "").strip()

        self._sessions.update_status(
            session_id=session.session_id,
            status=new_status,
            cancelled_reason=reason,
            updated_by=actor.user_id,
        )
        logger.info(
            "Session %s status %s -> %s by user %s",
            session.session_id, session.status.value, new_status.value, actor.user_id,
        )
        return self._reload(session.session_id)

    def list_sessions(
        self,
        *,
        actor: Actor,
        course_id: Any = None,
        status: Any = None,
    ) -> List[ClassSession]:
        course_filter = None
        if course_id not in (None, ""):
            course_filter = self._course_access.ensure_access(require_id(course_id, "course id"), actor).course_id
        elif actor.is_teacher:
            raise ValidationError("course query is required for teachers")
        elif not actor.is_admin:
            raise AuthorizationError("Not authorized to list sessions")

        status_filter = parse_status(status) if status not in (None, "") else None
        return list(self._sessions.list_sessions(course_id=course_filter, status=status_filter))

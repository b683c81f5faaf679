from __future__ import annotations

from datetime import datetime

import pytest

from classroom_sessions.core.enums import SessionStatus
from classroom_sessions.core.exceptions import (
    AuthorizationError,
    ConflictError,
    CourseNotFoundError,
    InvalidStateForRescheduleError,
    InvalidTimeRangeError,
    SessionNotFoundError,
    ValidationError,
)
from classroom_sessions.courses.service import CourseAccessService
from classroom_sessions.sessions.service import SessionService


@pytest.fixture
def svc(sessions_repo, courses_repo) -> SessionService:
    return SessionService(sessions_repo, CourseAccessService(courses_repo))


def test_create_single_session_defaults_to_scheduled(svc, teacher):
    s = svc.create_single(
        actor=teacher,
        course_id=1,
        start_time="2024-01-01T10:00:00",
        end_time="2024-01-01T11:00:00",
        room=" A-101 ",
    )

    assert s.status == SessionStatus.SCHEDULED
    assert s.course_id == 1
    assert s.created_by == teacher.user_id
    assert s.room == "A-101"
    assert s.recurrence is None


def test_create_single_converts_offsets_to_utc(svc, admin):
    s = svc.create_single(
        actor=admin,
        course_id=3,
        start_time="2024-01-01T10:00:00+02:00",
        end_time="2024-01-01T11:00:00Z",
    )

    assert s.start_time == datetime(2024, 1, 1, 8, 0)
    assert s.end_time == datetime(2024, 1, 1, 11, 0)


@pytest.mark.parametrize(
    "start,end",
    [
        ("2024-01-01T10:00:00", "2024-01-01T10:00:00"),
        ("2024-01-01T10:00:00", "2024-01-01T09:00:00"),
        ("not-a-date", "2024-01-01T11:00:00"),
        (None, "2024-01-01T11:00:00"),
    ],
)
def test_create_single_rejects_bad_time_range(svc, teacher, sessions_repo, start, end):
    with pytest.raises(InvalidTimeRangeError):
        svc.create_single(actor=teacher, course_id=1, start_time=start, end_time=end)

    assert sessions_repo.list_sessions() == []


def test_create_single_unknown_course(svc, admin):
    with pytest.raises(CourseNotFoundError):
        svc.create_single(actor=admin, course_id=99, start_time="2024-01-01T10:00", end_time="2024-01-01T11:00")


def test_teacher_cannot_schedule_foreign_course(svc, teacher):
    with pytest.raises(AuthorizationError):
        svc.create_single(actor=teacher, course_id=3, start_time="2024-01-01T10:00", end_time="2024-01-01T11:00")


def test_student_cannot_schedule(svc, student):
    with pytest.raises(AuthorizationError):
        svc.create_single(actor=student, course_id=1, start_time="2024-01-01T10:00", end_time="2024-01-01T11:00")


def test_create_recurring_weekly(svc, teacher):
    created = svc.create_recurring(
        actor=teacher,
        course_id=1,
        start_time="2024-01-01T09:00:00",
        end_time="2024-01-01T10:00:00",
        frequency="weekly",
        interval=2,
        count=3,
    )

    assert [s.start_time.day for s in created] == [1, 15, 29]
    assert all(s.status == SessionStatus.SCHEDULED for s in created)
    assert all(s.recurrence is not None and s.recurrence.interval == 2 for s in created)


def test_create_recurring_until_before_start_creates_nothing(svc, teacher, sessions_repo):
    created = svc.create_recurring(
        actor=teacher,
        course_id=1,
        start_time="2024-01-10T09:00:00",
        end_time="2024-01-10T10:00:00",
        frequency="daily",
        count=5,
        until="2024-01-01",
    )

    assert created == []
    assert sessions_repo.list_sessions() == []


def test_create_recurring_invalid_frequency(svc, teacher):
    with pytest.raises(ValidationError):
        svc.create_recurring(
            actor=teacher,
            course_id=1,
            start_time="2024-01-01T09:00:00",
            end_time="2024-01-01T10:00:00",
            frequency="yearly",
        )


def _session(svc, actor, course_id=1):
    return svc.create_single(
        actor=actor, course_id=course_id, start_time="2024-01-01T10:00:00", end_time="2024-01-01T11:00:00"
    )


def test_reschedule_overwrites_range_and_reason(svc, teacher):
    s = _session(svc, teacher)

    updated = svc.reschedule(
        actor=teacher,
        session_id=s.session_id,
        start_time="2024-01-02T10:00:00",
        end_time="2024-01-02T12:00:00",
        reason=" room clash ",
    )

    assert updated.start_time == datetime(2024, 1, 2, 10, 0)
    assert updated.end_time == datetime(2024, 1, 2, 12, 0)
    assert updated.reschedule_reason == "room clash"
    assert updated.updated_by == teacher.user_id
    assert updated.status == SessionStatus.SCHEDULED


@pytest.mark.parametrize("terminal", [SessionStatus.COMPLETED, SessionStatus.CANCELLED])
def test_reschedule_terminal_session_is_refused(svc, teacher, terminal):
    s = _session(svc, teacher)
    svc.update_status(actor=teacher, session_id=s.session_id, status=terminal.value)

    with pytest.raises(InvalidStateForRescheduleError) as exc:
        svc.reschedule(
            actor=teacher,
            session_id=s.session_id,
            start_time="2024-01-02T10:00:00",
            end_time="2024-01-02T11:00:00",
        )

    assert isinstance(exc.value, ConflictError)


def test_reschedule_terminal_checked_before_time_range(svc, teacher):
    s = _session(svc, teacher)
    svc.update_status(actor=teacher, session_id=s.session_id, status="cancelled")

    with pytest.raises(InvalidStateForRescheduleError):
        svc.reschedule(actor=teacher, session_id=s.session_id, start_time="bad", end_time="bad")


def test_reschedule_missing_session(svc, teacher):
    with pytest.raises(SessionNotFoundError):
        svc.reschedule(actor=teacher, session_id=42, start_time="2024-01-02T10:00", end_time="2024-01-02T11:00")


def test_reschedule_by_other_teacher_is_refused(svc, teacher, other_teacher):
    s = _session(svc, teacher)

    with pytest.raises(AuthorizationError):
        svc.reschedule(
            actor=other_teacher,
            session_id=s.session_id,
            start_time="2024-01-02T10:00",
            end_time="2024-01-02T11:00",
        )


def test_update_status_allows_any_transition(svc, teacher):
    s = _session(svc, teacher)

    done = svc.update_status(actor=teacher, session_id=s.session_id, status="completed")
    assert done.status == SessionStatus.COMPLETED

    back = svc.update_status(actor=teacher, session_id=s.session_id, status="scheduled")
    assert back.status == SessionStatus.SCHEDULED


def test_update_status_cancel_stores_reason(svc, teacher):
    s = _session(svc, teacher)

    cancelled = svc.update_status(
        actor=teacher, session_id=s.session_id, status="cancelled", cancelled_reason="Teacher sick"
    )

    assert cancelled.status == SessionStatus.CANCELLED
    assert cancelled.cancelled_reason == "Teacher sick"


def test_update_status_same_status_only_touches_updated_by(svc, teacher, admin):
    s = _session(svc, teacher)

    again = svc.update_status(actor=admin, session_id=s.session_id, status="scheduled")

    assert again.status == SessionStatus.SCHEDULED
    assert again.start_time == s.start_time
    assert again.updated_by == admin.user_id


def test_update_status_rejects_unknown_value(svc, teacher):
    s = _session(svc, teacher)

    with pytest.raises(ValidationError):
        svc.update_status(actor=teacher, session_id=s.session_id, status="postponed")


def test_list_sessions_requires_course_for_teachers(svc, teacher):
    with pytest.raises(ValidationError):
        svc.list_sessions(actor=teacher)


def test_list_sessions_filters_by_course_and_status(svc, teacher, admin):
    a = _session(svc, teacher, course_id=1)
    _session(svc, teacher, course_id=2)
    svc.update_status(actor=teacher, session_id=a.session_id, status="active")

    assert [s.course_id for s in svc.list_sessions(actor=admin)] == [1, 2]
    assert [s.session_id for s in svc.list_sessions(actor=teacher, course_id=1)] == [a.session_id]
    assert svc.list_sessions(actor=teacher, course_id=2, status="active") == []


def test_student_cannot_list_sessions(svc, student):
    with pytest.raises(AuthorizationError):
        svc.list_sessions(actor=student)


@pytest.mark.parametrize(
    "start,end",
    [
        ("2024-01-02T10:00:00", "2024-01-02T10:00:00"),
        ("2024-01-02T10:00:00", "2024-01-02T09:00:00"),
    ],
)
def test_reschedule_rejects_bad_time_range(svc, teacher, start, end):
    s = _session(svc, teacher)

    with pytest.raises(InvalidTimeRangeError) as exc:
        svc.reschedule(actor=teacher, session_id=s.session_id, start_time=start, end_time=end)

    assert isinstance(exc.value, ValidationError)
    assert svc.get_session(actor=teacher, session_id=s.session_id).start_time == s.start_time


def test_long_reasons_are_stored_in_full(svc, teacher):
    s = _session(svc, teacher)
    reason = "r" * 1000

    moved = svc.reschedule(
        actor=teacher,
        session_id=s.session_id,
        start_time="2024-01-02T10:00:00",
        end_time="2024-01-02T11:00:00",
        reason=reason,
    )
    cancelled = svc.update_status(actor=teacher, session_id=s.session_id, status="cancelled", cancelled_reason=reason)

    assert moved.reschedule_reason == reason
    assert cancelled.cancelled_reason == reason


def test_overlong_room_is_a_validation_error(svc, teacher, sessions_repo):
    with pytest.raises(ValidationError):
        svc.create_single(
            actor=teacher,
            course_id=1,
            start_time="2024-01-01T10:00:00",
            end_time="2024-01-01T11:00:00",
            room="R" * 101,
        )

    s = _session(svc, teacher)
    with pytest.raises(ValidationError):
        svc.reschedule(
            actor=teacher,
            session_id=s.session_id,
            start_time="2024-01-02T10:00:00",
            end_time="2024-01-02T11:00:00",
            room="R" * 101,
        )
    assert len(sessions_repo.list_sessions()) == 1


def test_recurring_count_above_limit_is_rejected(svc, teacher, sessions_repo):
    with pytest.raises(ValidationError):
        svc.create_recurring(
            actor=teacher,
            course_id=1,
            start_time="2024-01-01T09:00:00",
            end_time="2024-01-01T10:00:00",
            frequency="daily",
            count=10_000_000,
        )

    assert sessions_repo.list_sessions() == []

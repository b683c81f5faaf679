from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable, List, Mapping, Optional

from ..common.datetime_utils import parse_instant
from ..common.validators import coerce_positive_int, optional_text, require_id, require_max_length
from ..core.constants import SESSION_LABEL_MAX_LENGTH
from ..core.enums import StudentAttendanceStatus
from ..core.exceptions import (
    AttendanceNotFoundError,
    AuthorizationError,
    DuplicateRecordError,
    EmptyRecordSetError,
    InvalidDateError,
    ValidationError,
    WindowClosedError,
)
from ..courses.service import CourseAccessService
from ..users.model import Actor
from .model import AttendanceRecord, AttendanceStats, StudentRecord
from .repository import AttendanceRepository
from .window import AttendanceWindowGate

logger = logging.getLogger(__name__)

_STATUS_VALUES = {s.value for s in StudentAttendanceStatus}


def normalize_student_records(records: Any, bulk_status: Any = None) -> List[StudentRecord]:
    """Resolve each entry's effective status and drop the unusable ones.

    A truthy `bulk_status` overrides every per-student status. Entries without a
    positive student id, or whose effective status is not present/absent/late,
    are dropped silently. Duplicated students are kept as given.
    """

    if not isinstance(records, (list, tuple)):
        return []

    out: List[StudentRecord] = []
    for rec in records:
        if not isinstance(rec, Mapping):
            continue

        student_id = coerce_positive_int(rec.get("student_id", rec.get("student")))
        status = bulk_status or rec.get("status")
        status = status.strip() if isinstance(status, str) else status
        if student_id is None or not isinstance(status, str) or status not in _STATUS_VALUES:
            continue

        out.append(
            StudentRecord(
                student_id=student_id,
                status=StudentAttendanceStatus(status),
                remarks=optional_text(rec.get("remarks")),
            )
        )
    return out


def _require_records(records: Any, bulk_status: Any) -> List[StudentRecord]:
    normalized = normalize_student_records(records, bulk_status)
    if not normalized:
        raise EmptyRecordSetError("At least one student record is required")
    return normalized


def _clean_label(value: Any) -> Optional[str]:
    return require_max_length(optional_text(value), "session", SESSION_LABEL_MAX_LENGTH)


def _parse_day(value: Any, field_name: str) -> Optional[date]:
    if value in (None, ""):
        return None
    parsed = parse_instant(value)
    if parsed is None:
        raise InvalidDateError(f"Invalid {field_name}")
    return parsed.date()


def build_stats(records: Iterable[AttendanceRecord]) -> AttendanceStats:
    total_sessions = 0
    counts = {s: 0 for s in StudentAttendanceStatus}
    total_marks = 0

    for rec in records:
        total_sessions += 1
        for sr in rec.student_records:
            total_marks += 1
            counts[sr.status] += 1

    present = counts[StudentAttendanceStatus.PRESENT]
    absent = counts[StudentAttendanceStatus.ABSENT]
    late = counts[StudentAttendanceStatus.LATE]

    # Late students count as attended.
    total = present + absent + late
    percentage = round((present + late) / total * 100, 2) if total else 0.0

    return AttendanceStats(
        total_sessions=total_sessions,
        present=present,
        absent=absent,
        late=late,
        total_student_marks=total_marks,
        percentage=percentage,
    )


class AttendanceService:
    """Records attendance, gated by the class-session window."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        course_access: CourseAccessService,
        gate: AttendanceWindowGate,
    ):
        self._attendance = attendance
        self._course_access = course_access
        self._gate = gate

    def _load(self, attendance_id: Any) -> AttendanceRecord:
        record = self._attendance.get_by_id(require_id(attendance_id, "attendance id"))
        if not record:
            raise AttendanceNotFoundError("Attendance not found")
        return record

    def mark(
        self,
        *,
        actor: Actor,
        course_id: Any,
        date: Any,
        student_records: Any = None,
        bulk_status: Any = None,
        session_label: Any = None,
        notes: Any = None,
    ) -> AttendanceRecord:
        if course_id in (None, "") or date in (None, ""):
            raise ValidationError("Course and date are required")

        course = self._course_access.ensure_access(require_id(course_id, "course id"), actor)

        marked_at = parse_instant(date)
        if marked_at is None:
            raise InvalidDateError("Invalid date")

        decision = self._gate.check_allowed(course=course, actor=actor, reference_time=marked_at)
        if not decision.allowed:
            raise WindowClosedError(decision.reason or "Attendance window is closed")

        existing = self._attendance.get_for_course_and_date(course.course_id, marked_at.date())
        if existing:
            raise DuplicateRecordError("Attendance already exists for this course and date")

        records = _require_records(student_records, bulk_status)

        created = self._attendance.create(
            course_id=course.course_id,
            attendance_date=marked_at.date(),
            marked_at=marked_at,
            marked_by=actor.user_id,
            student_records=records,
            class_session_id=decision.session_id,
            session_label=_clean_label(session_label),
            notes=optional_text(notes),
        )
        logger.info(
            "Attendance %s marked for course %s on %s (session %s, %d students) by user %s",
            created.attendance_id, course.course_id, created.attendance_date,
            decision.session_id, len(records), actor.user_id,
        )
        return created

    def update(self, *, actor: Actor, attendance_id: Any, fields: Mapping[str, Any]) -> AttendanceRecord:
        """Replace date, session label, notes and/or student records.

        Updates are not re-checked against the attendance window; only the
        (course, date) uniqueness is enforced.
        """

        record = self._load(attendance_id)
        self._course_access.ensure_access(record.course_id, actor)

        marked_at = record.marked_at
        attendance_date = record.attendance_date
        if fields.get("date") not in (None, ""):
            parsed = parse_instant(fields["date"])
            if parsed is None:
                raise InvalidDateError("Invalid date")
            marked_at, attendance_date = parsed, parsed.date()

            if attendance_date != record.attendance_date:
                clash = self._attendance.get_for_course_and_date(record.course_id, attendance_date)
                if clash and clash.attendance_id != record.attendance_id:
                    raise DuplicateRecordError("Attendance already exists for this course and date")

        session_label = _clean_label(fields["session_label"]) if "session_label" in fields else record.session_label
        notes = optional_text(fields["notes"]) if "notes" in fields else record.notes

        student_records = None
        if fields.get("student_records") is not None:
            student_records = _require_records(fields["student_records"], fields.get("bulk_status"))

        if not self._attendance.update(
            attendance_id=record.attendance_id,
            attendance_date=attendance_date,
            marked_at=marked_at,
            session_label=session_label,
            notes=notes,
            student_records=student_records,
        ):
            raise AttendanceNotFoundError("Attendance not found")

        logger.info("Attendance %s updated by user %s", record.attendance_id, actor.user_id)
        return self._load(record.attendance_id)

    def delete(self, *, actor: Actor, attendance_id: Any) -> int:
        record = self._load(attendance_id)
        self._course_access.ensure_access(record.course_id, actor)

        if not self._attendance.delete(record.attendance_id):
            raise AttendanceNotFoundError("Attendance not found")

        logger.info("Attendance %s deleted by user %s", record.attendance_id, actor.user_id)
        return record.attendance_id

    def list_for_course(
        self,
        *,
        actor: Actor,
        course_id: Any,
        on: Any = None,
        start: Any = None,
        end: Any = None,
    ) -> List[AttendanceRecord]:
        course = self._course_access.ensure_access(require_id(course_id, "course id"), actor)

        day = _parse_day(on, "date")
        if day is not None:
            start_date = end_date = day
        else:
            start_date = _parse_day(start, "startDate")
            end_date = _parse_day(end, "endDate")

        return list(
            self._attendance.list_records(course_id=course.course_id, start_date=start_date, end_date=end_date)
        )

    def list_for_student(self, *, actor: Actor, student_id: Any) -> List[AttendanceRecord]:
        sid = require_id(student_id, "student id")
        if not (actor.is_admin or actor.is_teacher or actor.user_id == sid):
            raise AuthorizationError("Not authorized to view this student attendance")
        return list(self._attendance.list_records(student_id=sid))

    def course_stats(self, *, actor: Actor, course_id: Any) -> AttendanceStats:
        course = self._course_access.ensure_access(require_id(course_id, "course id"), actor)
        return build_stats(self._attendance.list_records(course_id=course.course_id))

    def report(
        self,
        *,
        actor: Actor,
        start: Any = None,
        end: Any = None,
        course_id: Any = None,
        student_id: Any = None,
    ) -> List[AttendanceRecord]:
        if not actor.is_admin:
            raise AuthorizationError("Not authorized to generate reports")

        return list(
            self._attendance.list_records(
                course_id=require_id(course_id, "course id") if course_id not in (None, "") else None,
                student_id=require_id(student_id, "student id") if student_id not in (None, "") else None,
                start_date=_parse_day(start, "startDate"),
                end_date=_parse_day(end, "endDate"),
            )
        )

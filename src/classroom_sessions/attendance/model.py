from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple

from ..core.enums import StudentAttendanceStatus


@dataclass(frozen=True)
class StudentRecord:
    student_id: int
    status: StudentAttendanceStatus
    remarks: Optional[str] = None


@dataclass(frozen=True)
class AttendanceRecord:
    """Attendance of one course on one calendar date.

    `class_session_id` names the session that authorized the marking; it is
    None when an admin marked outside any session.
    """

    attendance_id: int
    course_id: int
    attendance_date: date
    marked_at: datetime
    marked_by: int
    student_records: Tuple[StudentRecord, ...] = ()
    class_session_id: Optional[int] = None
    session_label: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class AttendanceStats:
    """Per-course totals across every attendance record."""

    total_sessions: int
    present: int
    absent: int
    late: int
    total_student_marks: int
    percentage: float

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord, StudentRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_course_and_date(self, course_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create(
        self,
        *,
        course_id: int,
        attendance_date: date,
        marked_at: datetime,
        marked_by: int,
        student_records: Sequence[StudentRecord],
        class_session_id: Optional[int] = None,
        session_label: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> AttendanceRecord:
        """Insert a record.

        Raises DuplicateRecordError when (course_id, attendance_date) already exists,
        which is how concurrent markers of the same course/date are settled.
        """

        raise NotImplementedError

    def update(
        self,
        *,
        attendance_id: int,
        attendance_date: date,
        marked_at: datetime,
        session_label: Optional[str],
        notes: Optional[str],
        student_records: Optional[Sequence[StudentRecord]] = None,
    ) -> bool:
        """Overwrite the record's fields; `student_records=None` keeps the stored rows.

        Raises DuplicateRecordError when the new date collides with another record.
        """

        raise NotImplementedError

    def delete(self, attendance_id: int) -> bool:
        raise NotImplementedError

    def list_records(
        self,
        *,
        course_id: Optional[int] = None,
        student_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        """Records newest first; date bounds are inclusive."""

        raise NotImplementedError

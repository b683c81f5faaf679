from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Optional

import pytest

from classroom_sessions.attendance.model import AttendanceRecord
from classroom_sessions.core.enums import Role
from classroom_sessions.core.exceptions import DuplicateRecordError
from classroom_sessions.courses.model import Course
from classroom_sessions.sessions.model import ClassSession, NewSession
from classroom_sessions.users.model import Actor


class InMemoryCourses:
    def __init__(self, courses: dict[int, Course]):
        self._courses = courses

    def get_by_id(self, course_id: int) -> Optional[Course]:
        return self._courses.get(int(course_id))


class InMemorySessions:
    def __init__(self):
        self._by_id: dict[int, ClassSession] = {}
        self._id = 0

    def add(self, **kwargs) -> ClassSession:
        """Test helper: store a session with explicit fields."""
        self._id += 1
        s = ClassSession(session_id=self._id, **kwargs)
        self._by_id[s.session_id] = s
        return s

    def get_by_id(self, session_id: int) -> Optional[ClassSession]:
        return self._by_id.get(int(session_id))

    def create(self, new: NewSession) -> ClassSession:
        return self.add(
            course_id=new.course_id,
            start_time=new.start_time,
            end_time=new.end_time,
            status=new.status,
            created_by=new.created_by,
            room=new.room,
            recurrence=new.recurrence,
        )

    def create_many(self, items):
        return [self.create(n) for n in items]

    def update_schedule(self, *, session_id, start_time, end_time, reschedule_reason, room, updated_by) -> bool:
        s = self._by_id.get(int(session_id))
        if not s:
            return False
        self._by_id[s.session_id] = replace(
            s,
            start_time=start_time,
            end_time=end_time,
            reschedule_reason=reschedule_reason,
            room=s.room if room is None else room,
            updated_by=updated_by,
        )
        return True

    def update_status(self, *, session_id, status, cancelled_reason, updated_by) -> bool:
        s = self._by_id.get(int(session_id))
        if not s:
            return False
        self._by_id[s.session_id] = replace(
            s,
            status=status,
            cancelled_reason=s.cancelled_reason if cancelled_reason is None else cancelled_reason,
            updated_by=updated_by,
        )
        return True

    def list_sessions(self, *, course_id=None, status=None):
        items = [
            s
            for s in self._by_id.values()
            if (course_id is None or s.course_id == course_id) and (status is None or s.status == status)
        ]
        return sorted(items, key=lambda s: (s.start_time, s.session_id))

    def find_latest_covering(self, *, course_id, statuses, starts_by, ends_after):
        statuses = set(statuses)
        candidates = [
            s
            for s in self._by_id.values()
            if s.course_id == course_id
            and s.status in statuses
            and s.start_time <= starts_by
            and s.end_time >= ends_after
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda s: (s.start_time, s.session_id))


class InMemoryAttendance:
    def __init__(self):
        self._by_id: dict[int, AttendanceRecord] = {}
        self._id = 0

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self._by_id.get(int(attendance_id))

    def get_for_course_and_date(self, course_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        for r in self._by_id.values():
            if r.course_id == course_id and r.attendance_date == attendance_date:
                return r
        return None

    def create(self, *, course_id, attendance_date, marked_at, marked_by, student_records,
               class_session_id=None, session_label=None, notes=None) -> AttendanceRecord:
        if self.get_for_course_and_date(course_id, attendance_date):
            raise DuplicateRecordError("Attendance already exists for this course and date")
        self._id += 1
        rec = AttendanceRecord(
            attendance_id=self._id,
            course_id=course_id,
            attendance_date=attendance_date,
            marked_at=marked_at,
            marked_by=marked_by,
            student_records=tuple(student_records),
            class_session_id=class_session_id,
            session_label=session_label,
            notes=notes,
        )
        self._by_id[rec.attendance_id] = rec
        return rec

    def update(self, *, attendance_id, attendance_date, marked_at, session_label, notes, student_records=None) -> bool:
        rec = self._by_id.get(int(attendance_id))
        if not rec:
            return False
        clash = self.get_for_course_and_date(rec.course_id, attendance_date)
        if clash and clash.attendance_id != rec.attendance_id:
            raise DuplicateRecordError("Attendance already exists for this course and date")
        self._by_id[rec.attendance_id] = replace(
            rec,
            attendance_date=attendance_date,
            marked_at=marked_at,
            session_label=session_label,
            notes=notes,
            student_records=rec.student_records if student_records is None else tuple(student_records),
        )
        return True

    def delete(self, attendance_id: int) -> bool:
        return self._by_id.pop(int(attendance_id), None) is not None

    def list_records(self, *, course_id=None, student_id=None, start_date=None, end_date=None):
        out = []
        for r in self._by_id.values():
            if course_id is not None and r.course_id != course_id:
                continue
            if student_id is not None and all(sr.student_id != student_id for sr in r.student_records):
                continue
            if start_date is not None and r.attendance_date < start_date:
                continue
            if end_date is not None and r.attendance_date > end_date:
                continue
            out.append(r)
        return sorted(out, key=lambda r: (r.attendance_date, r.attendance_id), reverse=True)


# Course 1 and 2 are taught by teacher 10; course 3 by teacher 11.
@pytest.fixture
def courses_repo() -> InMemoryCourses:
    return InMemoryCourses(
        {
            1: Course(course_id=1, teacher_id=10, code="PF101", name="Programming Fundamentals"),
            2: Course(course_id=2, teacher_id=10, code="DS201", name="Data Structures"),
            3: Course(course_id=3, teacher_id=11, code="DB210", name="Databases"),
        }
    )


@pytest.fixture
def sessions_repo() -> InMemorySessions:
    return InMemorySessions()


@pytest.fixture
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def admin() -> Actor:
    return Actor(user_id=1, role=Role.ADMIN)


@pytest.fixture
def teacher() -> Actor:
    return Actor(user_id=10, role=Role.TEACHER)


@pytest.fixture
def other_teacher() -> Actor:
    return Actor(user_id=11, role=Role.TEACHER)


@pytest.fixture
def student() -> Actor:
    return Actor(user_id=100, role=Role.STUDENT)

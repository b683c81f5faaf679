from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .attendance.window import AttendanceWindowGate, WindowConfig
from .courses.mysql_course_repository import MySQLCourseRepository
from .courses.repository import CourseRepository
from .courses.service import CourseAccessService
from .database.connection import DBConfig, DatabaseConnection
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.repository import SessionRepository
from .sessions.service import SessionService


@dataclass(frozen=True)
class Container:
    courses_repo: CourseRepository
    sessions_repo: SessionRepository
    attendance_repo: AttendanceRepository

    course_access: CourseAccessService
    window_gate: AttendanceWindowGate
    session_service: SessionService
    attendance_service: AttendanceService

    conn: Optional[DatabaseConnection] = None


def assemble(
    *,
    courses_repo: CourseRepository,
    sessions_repo: SessionRepository,
    attendance_repo: AttendanceRepository,
    window_config: Optional[WindowConfig] = None,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services on top of the given repositories (MySQL or in-memory)."""

    course_access = CourseAccessService(courses_repo)
    window_gate = AttendanceWindowGate(sessions_repo, window_config or WindowConfig())

    return Container(
        courses_repo=courses_repo,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
        course_access=course_access,
        window_gate=window_gate,
        session_service=SessionService(sessions_repo, course_access),
        attendance_service=AttendanceService(attendance_repo, course_access, window_gate),
        conn=conn,
    )


def build_container(*, db_config: dict, window_config: Optional[WindowConfig] = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return assemble(
        courses_repo=MySQLCourseRepository(conn),
        sessions_repo=MySQLSessionRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        window_config=window_config,
        conn=conn,
    )

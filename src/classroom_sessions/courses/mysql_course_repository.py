from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Course
from .repository import CourseRepository


class MySQLCourseRepository(CourseRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, course_id: int) -> Optional[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT course_id, course_code, course_name, teacher_id
                FROM courses
                WHERE course_id=%s
                """,
                (int(course_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Course(
                course_id=int(r["course_id"]),
                teacher_id=int(r["teacher_id"]) if r.get("teacher_id") is not None else None,
                code=r.get("course_code") or "",
                name=r.get("course_name") or "",
            )

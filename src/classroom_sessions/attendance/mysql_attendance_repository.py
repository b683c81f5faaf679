from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import StudentAttendanceStatus
from ..core.exceptions import DuplicateRecordError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, is_duplicate_key
from .model import AttendanceRecord, StudentRecord
from .repository import AttendanceRepository

_COLUMNS = """
    ar.attendance_id, ar.course_id, ar.attendance_date, ar.marked_at, ar.marked_by,
    ar.class_session_id, ar.session_label, ar.notes, ar.created_at, ar.updated_at
"""

_DUPLICATE_MESSAGE = "Attendance already exists for this course and date"


def _row_to_record(r: dict, student_records: Sequence[StudentRecord]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        course_id=int(r["course_id"]),
        attendance_date=r["attendance_date"],
        marked_at=r["marked_at"],
        marked_by=int(r["marked_by"]),
        student_records=tuple(student_records),
        class_session_id=int(r["class_session_id"]) if r.get("class_session_id") is not None else None,
        session_label=r.get("session_label"),
        notes=r.get("notes"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _load_student_records(cur, attendance_ids: Sequence[int]) -> dict[int, list[StudentRecord]]:
        out: dict[int, list[StudentRecord]] = {int(i): [] for i in attendance_ids}
        if not attendance_ids:
            return out

        placeholders = ",".join(["%s"] * len(attendance_ids))
        cur.execute(
            f"""
            SELECT attendance_id, student_id, status, remarks
            FROM attendance_student_records
            WHERE attendance_id IN ({placeholders})
            ORDER BY attendance_id ASC, position ASC
            """,
            tuple(int(i) for i in attendance_ids),
        )
        for r in fetchall(cur):
            out[int(r["attendance_id"])].append(
                StudentRecord(
                    student_id=int(r["student_id"]),
                    status=StudentAttendanceStatus(r["status"]),
                    remarks=r.get("remarks"),
                )
            )
        return out

    @staticmethod
    def _insert_student_records(cur, attendance_id: int, records: Sequence[StudentRecord]) -> None:
        cur.executemany(
            """
            INSERT INTO attendance_student_records(attendance_id, position, student_id, status, remarks)
            VALUES(%s,%s,%s,%s,%s)
            """,
            [
                (int(attendance_id), position, int(rec.student_id), rec.status.value, rec.remarks)
                for position, rec in enumerate(records)
            ],
        )

    def _fetch_where(self, cur, where: str, params: tuple) -> list[AttendanceRecord]:
        cur.execute(
            f"""
            SELECT {_COLUMNS}
            FROM attendance_records ar
            {where}
            ORDER BY ar.attendance_date DESC, ar.attendance_id DESC
            """,
            params,
        )
        rows = fetchall(cur)
        students = self._load_student_records(cur, [int(r["attendance_id"]) for r in rows])
        return [_row_to_record(r, students[int(r["attendance_id"])]) for r in rows]

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            found = self._fetch_where(cur, "WHERE ar.attendance_id=%s", (int(attendance_id),))
            return found[0] if found else None

    def get_for_course_and_date(self, course_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            found = self._fetch_where(
                cur,
                "WHERE ar.course_id=%s AND ar.attendance_date=%s",
                (int(course_id), attendance_date),
            )
            return found[0] if found else None

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
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        course_id, attendance_date, marked_at, session_label,
                        class_session_id, marked_by, notes
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(course_id),
                        attendance_date,
                        marked_at,
                        session_label,
                        int(class_session_id) if class_session_id is not None else None,
                        int(marked_by),
                        notes,
                    ),
                )
                attendance_id = int(cur.lastrowid)
                self._insert_student_records(cur, attendance_id, student_records)
                return self._fetch_where(cur, "WHERE ar.attendance_id=%s", (attendance_id,))[0]
        except IntegrityError as exc:
            if is_duplicate_key(exc):
                raise DuplicateRecordError(_DUPLICATE_MESSAGE) from exc
            raise

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
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE attendance_records
                    SET attendance_date=%s, marked_at=%s, session_label=%s, notes=%s
                    WHERE attendance_id=%s
                    """,
                    (attendance_date, marked_at, session_label, notes, int(attendance_id)),
                )
                if cur.rowcount <= 0:
                    return False

                if student_records is not None:
                    cur.execute(
                        "DELETE FROM attendance_student_records WHERE attendance_id=%s",
                        (int(attendance_id),),
                    )
                    self._insert_student_records(cur, int(attendance_id), student_records)
                return True
        except IntegrityError as exc:
            if is_duplicate_key(exc):
                raise DuplicateRecordError(_DUPLICATE_MESSAGE) from exc
            raise

    def delete(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0

    def list_records(
        self,
        *,
        course_id: Optional[int] = None,
        student_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        clauses: list[str] = []
        params: list[object] = []

        if course_id is not None:
            clauses.append("ar.course_id=%s")
            params.append(int(course_id))
        if student_id is not None:
            clauses.append(
                "EXISTS (SELECT 1 FROM attendance_student_records s "
                "WHERE s.attendance_id = ar.attendance_id AND s.student_id=%s)"
            )
            params.append(int(student_id))
        if start_date is not None:
            clauses.append("ar.attendance_date >= %s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("ar.attendance_date <= %s")
            params.append(end_date)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            return self._fetch_where(cur, where, tuple(params))

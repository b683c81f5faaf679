from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..core.enums import RecurrenceFrequency, SessionStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import ClassSession, NewSession, Recurrence
from .repository import SessionRepository

_COLUMNS = """
    session_id, course_id, room, start_time, end_time, status,
    recurrence_frequency, recurrence_interval, recurrence_count, recurrence_until,
    reschedule_reason, cancelled_reason, created_by, updated_by, created_at, updated_at
"""

_INSERT = """
    INSERT INTO class_sessions(
        course_id, room, start_time, end_time, status,
        recurrence_frequency, recurrence_interval, recurrence_count, recurrence_until,
        created_by
    )
    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
"""


def _row_to_session(r: dict) -> ClassSession:
    recurrence = None
    if r.get("recurrence_frequency"):
        recurrence = Recurrence(
            frequency=RecurrenceFrequency(r["recurrence_frequency"]),
            interval=int(r.get("recurrence_interval") or 1),
            count=int(r.get("recurrence_count") or 1),
            until=r.get("recurrence_until"),
        )

    return ClassSession(
        session_id=int(r["session_id"]),
        course_id=int(r["course_id"]),
        start_time=r["start_time"],
        end_time=r["end_time"],
        status=SessionStatus(r["status"]),
        created_by=int(r["created_by"]),
        room=r.get("room") or "",
        recurrence=recurrence,
        reschedule_reason=r.get("reschedule_reason") or "",
        cancelled_reason=r.get("cancelled_reason") or "",
        updated_by=int(r["updated_by"]) if r.get("updated_by") is not None else None,
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def _insert_params(new: NewSession) -> tuple:
    rec = new.recurrence
    return (
        int(new.course_id),
        new.room or "",
        new.start_time,
        new.end_time,
        new.status.value,
        rec.frequency.value if rec else None,
        rec.interval if rec else None,
        rec.count if rec else None,
        rec.until if rec else None,
        int(new.created_by),
    )


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select_ids(self, cur, ids: Sequence[int]) -> list[ClassSession]:
        placeholders = ",".join(["%s"] * len(ids))
        cur.execute(
            f"SELECT {_COLUMNS} FROM class_sessions WHERE session_id IN ({placeholders}) ORDER BY start_time ASC",
            tuple(ids),
        )
        return [_row_to_session(r) for r in fetchall(cur)]

    def get_by_id(self, session_id: int) -> Optional[ClassSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM class_sessions WHERE session_id=%s", (int(session_id),))
            r = fetchone(cur)
            return _row_to_session(r) if r else None

    def create(self, new: NewSession) -> ClassSession:
        created = self.create_many([new])
        return created[0]

    def create_many(self, items: Sequence[NewSession]) -> Sequence[ClassSession]:
        if not items:
            return []

        # One transaction: db_cursor rolls back every insert if any fails.
        with db_cursor(self._conn_factory) as (_, cur):
            ids: list[int] = []
            for new in items:
                cur.execute(_INSERT, _insert_params(new))
                ids.append(int(cur.lastrowid))
            return self._select_ids(cur, ids)

    def update_schedule(
        self,
        *,
        session_id: int,
        start_time: datetime,
        end_time: datetime,
        reschedule_reason: str,
        room: Optional[str],
        updated_by: int,
    ) -> bool:
        sets = ["start_time=%s", "end_time=%s", "reschedule_reason=%s", "updated_by=%s"]
        params: list[object] = [start_time, end_time, reschedule_reason, int(updated_by)]
        if room is not None:
            sets.append("room=%s")
            params.append(room)
        params.append(int(session_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE class_sessions SET {', '.join(sets)} WHERE session_id=%s", tuple(params))
            return cur.rowcount > 0

    def update_status(
        self,
        *,
        session_id: int,
        status: SessionStatus,
        cancelled_reason: Optional[str],
        updated_by: int,
    ) -> bool:
        sets = ["status=%s", "updated_by=%s"]
        params: list[object] = [status.value, int(updated_by)]
        if cancelled_reason is not None:
            sets.append("cancelled_reason=%s")
            params.append(cancelled_reason)
        params.append(int(session_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE class_sessions SET {', '.join(sets)} WHERE session_id=%s", tuple(params))
            return cur.rowcount > 0

    def list_sessions(
        self,
        *,
        course_id: Optional[int] = None,
        status: Optional[SessionStatus] = None,
    ) -> Sequence[ClassSession]:
        clauses: list[str] = []
        params: list[object] = []
        if course_id is not None:
            clauses.append("course_id=%s")
            params.append(int(course_id))
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM class_sessions {where} ORDER BY start_time ASC, session_id ASC",
                tuple(params),
            )
            return [_row_to_session(r) for r in fetchall(cur)]

    def find_latest_covering(
        self,
        *,
        course_id: int,
        statuses: Iterable[SessionStatus],
        starts_by: datetime,
        ends_after: datetime,
    ) -> Optional[ClassSession]:
        status_values = [s.value for s in statuses]
        if not status_values:
            return None
        placeholders = ",".join(["%s"] * len(status_values))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM class_sessions
                WHERE course_id=%s
                  AND status IN ({placeholders})
                  AND start_time <= %s
                  AND end_time >= %s
                ORDER BY start_time DESC, session_id DESC
                LIMIT 1
                """,
                (int(course_id), *status_values, starts_by, ends_after),
            )
            r = fetchone(cur)
            return _row_to_session(r) if r else None

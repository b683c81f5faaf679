from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import SessionStatus
from .model import ClassSession, NewSession


class SessionRepository(Protocol):
    def get_by_id(self, session_id: int) -> Optional[ClassSession]:
        raise NotImplementedError

    def create(self, new: NewSession) -> ClassSession:
        raise NotImplementedError

    def create_many(self, items: Sequence[NewSession]) -> Sequence[ClassSession]:
        """Insert all items as one batch: every row is stored or none is."""

        raise NotImplementedError

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
        """Overwrite the time range. `room=None` keeps the current room."""

        raise NotImplementedError

    def update_status(
        self,
        *,
        session_id: int,
        status: SessionStatus,
        cancelled_reason: Optional[str],
        updated_by: int,
    ) -> bool:
        """Set the status. `cancelled_reason=None` keeps the stored reason."""

        raise NotImplementedError

    def list_sessions(
        self,
        *,
        course_id: Optional[int] = None,
        status: Optional[SessionStatus] = None,
    ) -> Sequence[ClassSession]:
        """Sessions ordered by start_time ascending."""

        raise NotImplementedError

    def find_latest_covering(
        self,
        *,
        course_id: int,
        statuses: Iterable[SessionStatus],
        starts_by: datetime,
        ends_after: datetime,
    ) -> Optional[ClassSession]:
        """Latest-starting session with start_time <= starts_by and end_time >= ends_after.

        Ties on start_time resolve to the highest session_id.
        """

        raise NotImplementedError

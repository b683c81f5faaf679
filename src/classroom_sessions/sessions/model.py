from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import RecurrenceFrequency, SessionStatus


@dataclass(frozen=True)
class Recurrence:
    """How a batch of sessions was generated. Descriptive only, not a live group."""

    frequency: RecurrenceFrequency
    interval: int = 1
    count: int = 1
    until: Optional[datetime] = None


@dataclass(frozen=True)
class ClassSession:
    """A scheduled meeting of a course with a time range and lifecycle status."""

    session_id: int
    course_id: int
    start_time: datetime
    end_time: datetime
    status: SessionStatus
    created_by: int
    room: str = ""
    recurrence: Optional[Recurrence] = None
    reschedule_reason: str = ""
    cancelled_reason: str = ""
    updated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class NewSession:
    """Insert payload; the store assigns the id and timestamps."""

    course_id: int
    start_time: datetime
    end_time: datetime
    created_by: int
    room: str = ""
    recurrence: Optional[Recurrence] = None
    status: SessionStatus = SessionStatus.SCHEDULED

"""Expansion of a recurrence rule into concrete session time ranges."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, List, Optional, Tuple

from ..common.validators import coerce_positive_int
from ..core.constants import DEFAULT_RECURRENCE_COUNT, DEFAULT_RECURRENCE_INTERVAL, MAX_RECURRENCE_COUNT
from ..core.enums import RecurrenceFrequency
from ..core.exceptions import ValidationError
from .model import Recurrence


def parse_frequency(value: Any) -> RecurrenceFrequency:
    try:
        return RecurrenceFrequency(str(value or "").strip().lower())
    except ValueError:
        raise ValidationError("frequency must be one of: daily, weekly")


def build_recurrence(
    *,
    frequency: Any,
    interval: Any = None,
    count: Any = None,
    until: Optional[datetime] = None,
) -> Recurrence:
    """Normalize raw request values; interval/count fall back to 1 when not positive integers.

    A count above MAX_RECURRENCE_COUNT is rejected rather than truncated.
    """

    freq = parse_frequency(frequency)
    n = coerce_positive_int(count) or DEFAULT_RECURRENCE_COUNT
    if n > MAX_RECURRENCE_COUNT:
        raise ValidationError(f"count must be at most {MAX_RECURRENCE_COUNT}")

    return Recurrence(
        frequency=freq,
        interval=coerce_positive_int(interval) or DEFAULT_RECURRENCE_INTERVAL,
        count=n,
        until=until,
    )


def step_for(recurrence: Recurrence) -> timedelta:
    if recurrence.frequency == RecurrenceFrequency.WEEKLY:
        return timedelta(days=7 * recurrence.interval)
    return timedelta(days=recurrence.interval)


def expand_occurrences(
    start_time: datetime,
    end_time: datetime,
    recurrence: Recurrence,
) -> List[Tuple[datetime, datetime]]:
    """Return up to `count` (start, end) pairs.

    Generation stops at the first occurrence starting after `until`, so an
    `until` earlier than the first start yields an empty list.
    """

    step = step_for(recurrence)
    occurrences: List[Tuple[datetime, datetime]] = []

    cur_start, cur_end = start_time, end_time
    for _ in range(recurrence.count):
        if recurrence.until is not None and cur_start > recurrence.until:
            break
        occurrences.append((cur_start, cur_end))
        cur_start += step
        cur_end += step

    return occurrences

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Course:
    """Read model of a course owned by the academic records system."""

    course_id: int
    teacher_id: Optional[int]
    code: str = ""
    name: str = ""

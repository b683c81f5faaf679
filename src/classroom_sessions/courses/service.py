from __future__ import annotations

from ..core.exceptions import AuthorizationError, CourseNotFoundError
from ..users.model import Actor
from .model import Course
from .repository import CourseRepository


def is_course_teacher(course: Course, actor: Actor) -> bool:
    return actor.is_teacher and course.teacher_id is not None and int(course.teacher_id) == int(actor.user_id)


class CourseAccessService:
    """Single authorization point for course-scoped operations.

    Admins may act on any course; teachers only on courses they teach.
    """

    def __init__(self, courses: CourseRepository):
        self._courses = courses

    def ensure_access(self, course_id: int, actor: Actor) -> Course:
        course = self._courses.get_by_id(int(course_id))
        if not course:
            raise CourseNotFoundError("Course not found")

        if actor.is_admin or is_course_teacher(course, actor):
            return course

        raise AuthorizationError("Not authorized for this course")

from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class Actor:
    """The authenticated caller, as provided by the external login layer."""

    user_id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_teacher(self) -> bool:
        return self.role == Role.TEACHER

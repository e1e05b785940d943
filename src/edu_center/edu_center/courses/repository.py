from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.tenancy import TenantScope
from .model import Course


class CourseRepository(Protocol):
    def get_by_id(self, course_id: int) -> Optional[Course]:
        raise NotImplementedError

    def list_for_scope(self, scope: TenantScope) -> Sequence[Course]:
        raise NotImplementedError

    def create(self, course: Course) -> Course:
        raise NotImplementedError

    def save(self, course: Course) -> Course:
        raise NotImplementedError

    def delete_by_id(self, course_id: int) -> bool:
        raise NotImplementedError

    def rename_center(self, old_name: str, new_name: str) -> int:
        raise NotImplementedError

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.tenancy import TenantScope
from .model import Student


class StudentRepository(Protocol):
    def get_by_id(self, student_id: int) -> Optional[Student]:
        raise NotImplementedError

    def list_for_scope(self, scope: TenantScope, *, teacher_id: Optional[int] = None) -> Sequence[Student]:
        """Students of the scope's center, optionally only those of one teacher."""

        raise NotImplementedError

    def create(self, student: Student) -> Student:
        raise NotImplementedError

    def save(self, student: Student) -> Student:
        """Single-row write; bulk attendance calls this once per student."""

        raise NotImplementedError

    def delete_by_id(self, student_id: int) -> bool:
        raise NotImplementedError

    def rename_center(self, old_name: str, new_name: str) -> int:
        raise NotImplementedError

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional, Sequence

from ..common.validators import optional_text, parse_id, require_bool, require_iso_date, require_non_empty
from ..core.constants import UNKNOWN_COURSE_NAME
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import AuthorizationError, DomainError, NotFoundError, ValidationError
from ..core.tenancy import TenantScope
from ..users.model import User
from ..users.repository import UserRepository
from .model import AttendanceRecord, Student
from .repository import StudentRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BulkItemResult:
    """Outcome of one ``{id, attendance}`` item of a bulk update."""

    id: Any
    updated: bool
    reason: Optional[str] = None
    student: Optional[Student] = None

    def to_dict(self) -> dict:
        out: dict[str, Any] = {"id": self.id, "status": "updated" if self.updated else "skipped"}
        if self.reason:
            out["reason"] = self.reason
        if self.student is not None:
            out["student"] = self.student.to_dict()
        return out


def parse_attendance(value: Any) -> dict[str, AttendanceRecord]:
    """Validate a ``{date: {status, reason?}}`` map."""
    if not isinstance(value, Mapping):
        raise ValidationError("Attendance must be an object keyed by date")

    out: dict[str, AttendanceRecord] = {}
    for lesson_date, raw in value.items():
        require_iso_date(lesson_date, "Attendance date")
        if not isinstance(raw, Mapping):
            raise ValidationError(f"Attendance for {lesson_date} must be an object")
        try:
            status = AttendanceStatus(raw.get("status"))
        except ValueError:
            raise ValidationError(f"Attendance status for {lesson_date} must be 'B' or 'Y'")
        out[lesson_date] = AttendanceRecord(status=status, reason=optional_text(raw.get("reason"), "Reason"))
    return out


class StudentService:
    def __init__(self, students: StudentRepository, users: UserRepository, *, include_untagged: bool = False):
        self._students = students
        self._users = users
        self._include_untagged = include_untagged

    def _scope(self, caller: User) -> TenantScope:
        return TenantScope(caller.center_name, include_untagged=self._include_untagged)

    def _check_access(self, caller: User, student: Student) -> None:
        if not self._scope(caller).owns(student.center_name):
            logger.warning("user %s denied access to student %s (other center)", caller.user_id, student.student_id)
            raise AuthorizationError("Permission denied")
        if caller.role == Role.TEACHER and student.teacher_id != caller.user_id:
            raise AuthorizationError("Permission denied")

    def _get_for_update(self, caller: User, student_id: int) -> Student:
        student = self._students.get_by_id(student_id)
        if not student:
            raise NotFoundError("Student not found")
        self._check_access(caller, student)
        return student

    def _teacher(self, caller: User, value: Any) -> User:
        teacher_id = parse_id(value)
        teacher = self._users.get_by_id(teacher_id)
        if not teacher or not self._scope(caller).owns(teacher.center_name):
            raise ValidationError("Teacher not found")
        return teacher

    def list_students(self, caller: User) -> Sequence[Student]:
        teacher_id = caller.user_id if caller.role == Role.TEACHER else None
        return self._students.list_for_scope(self._scope(caller), teacher_id=teacher_id)

    def create_student(self, caller: User, payload: Mapping[str, Any]) -> Student:
        name = require_non_empty(payload.get("name"), "Student name")

        if caller.role == Role.TEACHER:
            if payload.get("teacherId") not in (None, "") and str(payload["teacherId"]) != str(caller.user_id):
                raise AuthorizationError("Teachers can only add their own students")
            if payload.get("paid"):
                raise AuthorizationError("Only a center admin can mark payments")
            teacher = caller
        else:
            if payload.get("teacherId") in (None, ""):
                raise ValidationError("Teacher is required")
            teacher = self._teacher(caller, payload["teacherId"])

        course_name = (payload.get("courseName") or "").strip() or teacher.course_name or UNKNOWN_COURSE_NAME
        student = Student(
            student_id=0,
            name=name,
            teacher_id=teacher.user_id,
            course_name=course_name,
            center_name=caller.center_name,
            paid=require_bool(payload.get("paid", False), "paid"),
            attendance=parse_attendance(payload.get("attendance") or {}),
        )
        return self._students.create(student)

    def update_student(self, caller: User, student_id: int, payload: Mapping[str, Any]) -> Student:
        student = self._get_for_update(caller, student_id)

        changes: dict[str, Any] = {}
        if "name" in payload:
            changes["name"] = require_non_empty(payload["name"], "Student name")
        if "courseName" in payload:
            changes["course_name"] = require_non_empty(payload["courseName"], "Course name")
        if "attendance" in payload:
            changes["attendance"] = parse_attendance(payload["attendance"])

        admin_only = [k for k in ("paid", "teacherId") if k in payload]
        if admin_only and caller.role != Role.SUPER_ADMIN:
            raise AuthorizationError(f"Only a center admin can change: {', '.join(admin_only)}")
        if "paid" in payload:
            changes["paid"] = require_bool(payload["paid"], "paid")
        if "teacherId" in payload:
            changes["teacher_id"] = self._teacher(caller, payload["teacherId"]).user_id

        return self._students.save(replace(student, **changes)) if changes else student

    def delete_student(self, caller: User, student_id: int) -> None:
        if caller.role != Role.SUPER_ADMIN:
            raise AuthorizationError("Only a center admin can delete students")

        self._get_for_update(caller, student_id)
        if not self._students.delete_by_id(student_id):
            raise NotFoundError("Student not found")

    def bulk_update_attendance(self, caller: User, updates: Any) -> list[BulkItemResult]:
        """Merge partial attendance maps into each student, one row write per item.

        Items are independent: an invalid, missing or forbidden item is
        reported as skipped and later items still run. Nothing is rolled back.
        """
        if not isinstance(updates, list):
            raise ValidationError("Updates must be an array")

        results: list[BulkItemResult] = []
        for item in updates:
            raw_id = item.get("id") if isinstance(item, Mapping) else None
            try:
                if not isinstance(item, Mapping):
                    raise ValidationError("Update must be an object")
                student = self._get_for_update(caller, parse_id(raw_id))
                changes = parse_attendance(item.get("attendance") or {})
                saved = self._students.save(replace(student, attendance=student.merged_attendance(changes)))
                results.append(BulkItemResult(id=raw_id, updated=True, student=saved))
            except DomainError as e:
                logger.info("bulk attendance: skipped student %r: %s", raw_id, e.message)
                results.append(BulkItemResult(id=raw_id, updated=False, reason=e.message))
        return results

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import now_utc, parse_timestamp, to_iso
from ..common.validators import optional_id, optional_number, require_iso_date, require_non_empty
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.tenancy import TenantScope
from ..users.model import User
from ..users.repository import UserRepository
from .model import Course, Lesson
from .repository import CourseRepository

logger = logging.getLogger(__name__)


class CourseService:
    def __init__(self, courses: CourseRepository, users: UserRepository, *, include_untagged: bool = False):
        self._courses = courses
        self._users = users
        self._include_untagged = include_untagged

    def _scope(self, caller: User) -> TenantScope:
        return TenantScope(caller.center_name, include_untagged=self._include_untagged)

    def _get_in_scope(self, caller: User, course_id: int) -> Course:
        course = self._courses.get_by_id(course_id)
        if not course:
            raise NotFoundError("Course not found")
        if not self._scope(caller).owns(course.center_name):
            logger.warning("user %s denied access to course %s (other center)", caller.user_id, course_id)
            raise AuthorizationError("Permission denied")
        return course

    def _teacher_id(self, caller: User, value: Any) -> Optional[int]:
        teacher_id = optional_id(value)
        if teacher_id is None:
            return None
        teacher = self._users.get_by_id(teacher_id)
        if not teacher or not self._scope(caller).owns(teacher.center_name):
            raise ValidationError("Teacher not found")
        return teacher_id

    @staticmethod
    def _parse_lesson(data: Any, now: datetime) -> Lesson:
        if not isinstance(data, Mapping):
            raise ValidationError("Lesson must be an object")
        created_at = data.get("createdAt")
        if created_at:
            try:
                parse_timestamp(str(created_at))
            except ValueError:
                raise ValidationError("Lesson createdAt must be an ISO timestamp")
        else:
            created_at = to_iso(now)
        return Lesson(
            date=require_iso_date(data.get("date"), "Lesson date"),
            topic=require_non_empty(data.get("topic"), "Lesson topic"),
            created_at=str(created_at),
        )

    def _parse_lessons(self, value: Any, now: datetime) -> tuple[Lesson, ...]:
        if value is None:
            return ()
        if not isinstance(value, list):
            raise ValidationError("Lessons must be a list")
        return tuple(self._parse_lesson(x, now) for x in value)

    def list_courses(self, caller: User) -> Sequence[Course]:
        return self._courses.list_for_scope(self._scope(caller))

    def create_course(self, caller: User, payload: Mapping[str, Any], *, now: Optional[datetime] = None) -> Course:
        now = now or now_utc()
        course = Course(
            course_id=0,
            name=require_non_empty(payload.get("name"), "Course name"),
            schedule=require_non_empty(payload.get("schedule"), "Schedule"),
            center_name=caller.center_name,
            teacher_id=self._teacher_id(caller, payload.get("teacherId")),
            price=optional_number(payload.get("price"), "Price"),
            lessons=self._parse_lessons(payload.get("lessons"), now),
        )
        return self._courses.create(course)

    def update_course(
        self,
        caller: User,
        course_id: int,
        payload: Mapping[str, Any],
        *,
        now: Optional[datetime] = None,
    ) -> Course:
        course = self._get_in_scope(caller, course_id)
        now = now or now_utc()

        changes: dict[str, Any] = {}
        if "name" in payload:
            changes["name"] = require_non_empty(payload["name"], "Course name")
        if "schedule" in payload:
            changes["schedule"] = require_non_empty(payload["schedule"], "Schedule")
        if "teacherId" in payload:
            changes["teacher_id"] = self._teacher_id(caller, payload["teacherId"])
        if "price" in payload:
            changes["price"] = optional_number(payload["price"], "Price")
        if "lessons" in payload:
            changes["lessons"] = self._parse_lessons(payload["lessons"], now)

        return self._courses.save(replace(course, **changes)) if changes else course

    def add_lesson(
        self,
        caller: User,
        course_id: int,
        payload: Mapping[str, Any],
        *,
        now: Optional[datetime] = None,
    ) -> Course:
        """Append one lesson; the server stamps ``createdAt``."""
        course = self._get_in_scope(caller, course_id)
        lesson = self._parse_lesson({"date": payload.get("date"), "topic": payload.get("topic")}, now or now_utc())
        return self._courses.save(replace(course, lessons=course.lessons + (lesson,)))

    def delete_course(self, caller: User, course_id: int) -> None:
        self._get_in_scope(caller, course_id)
        if not self._courses.delete_by_id(course_id):
            raise NotFoundError("Course not found")

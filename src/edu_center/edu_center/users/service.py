from __future__ import annotations

import logging
import random
from dataclasses import replace
from datetime import date
from typing import Any, Callable, Mapping, Optional, Sequence

from werkzeug.security import generate_password_hash

from ..common.validators import (
    optional_number,
    optional_text,
    require_bool,
    require_iso_date,
    require_min_length,
    require_non_empty,
)
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, UsernameTakenError, ValidationError
from ..core.tenancy import TenantScope
from ..courses.repository import CourseRepository
from ..students.repository import StudentRepository
from .model import User
from .repository import UserRepository
from .suggestions import suggest_usernames

logger = logging.getLogger(__name__)

# JSON key -> (User field, parser)
_PROFILE_FIELDS: dict[str, tuple[str, Callable[[Any, str], Any]]] = {
    "name": ("name", require_non_empty),
    "courseName": ("course_name", optional_text),
    "coursePrice": ("course_price", optional_number),
    "monthlySalary": ("monthly_salary", optional_number),
    "salaryPaid": ("salary_paid", require_bool),
    "joinDate": ("join_date", lambda v, f: None if v in (None, "") else require_iso_date(v, f)),
    "isLeft": ("is_left", require_bool),
}

# Fields a teacher may change on their own record.
_SELF_SERVICE_FIELDS = {"name", "username", "password"}


def _parse_profile(payload: Mapping[str, Any]) -> dict[str, Any]:
    changes: dict[str, Any] = {}
    for key, (attr, parser) in _PROFILE_FIELDS.items():
        if key in payload:
            changes[attr] = parser(payload[key], key)
    return changes


def _clean_center(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def _clean_password(value: Any) -> str:
    password = (value or "").strip() if isinstance(value, str) else ""
    require_non_empty(password, "Password")
    return require_min_length(password, "Password", MIN_PASSWORD_LENGTH)


class UserService:
    """Use case: register centers, manage teachers and devices."""

    def __init__(
        self,
        users: UserRepository,
        courses: CourseRepository,
        students: StudentRepository,
        *,
        include_untagged: bool = False,
        rng: Optional[random.Random] = None,
        today: Callable[[], date] = date.today,
    ):
        self._users = users
        self._courses = courses
        self._students = students
        self._include_untagged = include_untagged
        self._rng = rng
        self._today = today

    def scope_for(self, caller: User) -> TenantScope:
        return TenantScope(caller.center_name, include_untagged=self._include_untagged)

    def _check_username_free(self, username: str, *, exclude_user_id: Optional[int] = None) -> None:
        existing = self._users.get_by_username(username)
        if existing and existing.user_id != exclude_user_id:
            suggestions = suggest_usernames(
                username,
                lambda candidate: self._users.get_by_username(candidate) is not None,
                year=self._today().year,
                rng=self._rng,
            )
            raise UsernameTakenError("Username already exists", suggestions)

    def _get_in_scope(self, caller: User, user_id: int) -> User:
        target = self._users.get_by_id(user_id)
        if not target:
            raise NotFoundError("User not found")
        if not self.scope_for(caller).owns(target.center_name):
            logger.warning("user %s denied access to user %s (other center)", caller.user_id, user_id)
            raise AuthorizationError("Permission denied")
        return target

    def list_users(self, caller: User) -> Sequence[User]:
        return self._users.list_for_scope(self.scope_for(caller))

    def create_user(self, payload: Mapping[str, Any], *, caller: Optional[User] = None) -> User:
        """Registration (no caller) or an admin adding a teacher to their center."""
        raw_username = payload.get("username")
        if not isinstance(raw_username, str) or not raw_username.strip():
            raise ValidationError("Username is required")
        username = raw_username.strip()
        self._check_username_free(username)

        name = require_non_empty(payload.get("name"), "Name")
        password = _clean_password(payload.get("password"))

        if caller is None:
            role_s = payload.get("role") or Role.SUPER_ADMIN.value
            if role_s != Role.SUPER_ADMIN.value:
                raise AuthorizationError("Only a center admin can add teachers")
            role = Role.SUPER_ADMIN
            center_name = require_non_empty(payload.get("centerName"), "Center name")
            if self._users.list_for_scope(TenantScope(center_name)):
                # A new center only; joining an existing one goes through its admin.
                raise ValidationError("Center name already in use")
        else:
            if not caller.is_admin:
                raise AuthorizationError("Only a center admin can add users")
            try:
                role = Role(payload.get("role") or Role.TEACHER.value)
            except ValueError:
                raise ValidationError("Invalid role")
            center_name = caller.center_name

        user = User(
            user_id=0,
            role=role,
            name=name,
            username=username,
            password_hash=generate_password_hash(password),
            center_name=center_name,
        )
        profile = _parse_profile(payload)
        profile.pop("name", None)
        user = self._users.create(replace(user, **profile))
        logger.info("created %s user %s in center %r", user.role.value, user.user_id, user.center_name)
        return user

    def update_user(self, caller: User, user_id: int, payload: Mapping[str, Any]) -> User:
        target = self._get_in_scope(caller, user_id)
        is_self = target.user_id == caller.user_id
        if not is_self and not caller.is_admin:
            raise AuthorizationError("Permission denied")

        if not caller.is_admin:
            restricted = sorted(
                k
                for k in payload
                if (k in _PROFILE_FIELDS and k not in _SELF_SERVICE_FIELDS)
                or (k == "centerName" and _clean_center(payload[k]) != target.center_name)
            )
            if restricted:
                raise AuthorizationError(f"Only a center admin can change: {', '.join(restricted)}")

        changes = _parse_profile(payload)

        if "username" in payload:
            username = require_non_empty(payload.get("username"), "Username")
            if username != target.username:
                self._check_username_free(username, exclude_user_id=target.user_id)
            changes["username"] = username

        if payload.get("password"):
            changes["password_hash"] = generate_password_hash(_clean_password(payload["password"]))

        new_center = _clean_center(payload.get("centerName"))
        if new_center is not None and new_center != target.center_name:
            if not is_self:
                raise AuthorizationError("The center name can only be changed from the admin's own settings")
            new_center = require_non_empty(new_center, "Center name")
            self._rename_center(target.center_name, new_center)
            changes["center_name"] = new_center

        updated = replace(target, **changes) if changes else target
        return self._users.save(updated)

    def _rename_center(self, old_name: Optional[str], new_name: str) -> None:
        if self._users.list_for_scope(TenantScope(new_name)):
            raise ValidationError("Center name already in use")
        if not old_name:
            return
        self._users.rename_center(old_name, new_name)
        self._courses.rename_center(old_name, new_name)
        self._students.rename_center(old_name, new_name)
        logger.info("center %r renamed to %r", old_name, new_name)

    def delete_user(self, caller: User, user_id: int) -> None:
        if not caller.is_admin:
            raise AuthorizationError("Only a center admin can delete users")
        if caller.user_id == user_id:
            raise ValidationError("You cannot delete your own account")

        self._get_in_scope(caller, user_id)
        if not self._users.delete_by_id(user_id):
            raise NotFoundError("User not found")

    def remove_device(self, caller: User, user_id: int, device_id: str) -> User:
        if caller.user_id != user_id and not caller.is_admin:
            raise AuthorizationError("Permission denied")

        target = self._users.get_by_id(user_id)
        if not target or not self.scope_for(caller).owns(target.center_name):
            raise NotFoundError("User not found")

        devices = tuple(d for d in target.devices if d.id != device_id)
        return self._users.save(replace(target, devices=devices))

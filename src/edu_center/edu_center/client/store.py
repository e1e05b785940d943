from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Iterator, Optional

from ..common.datetime_utils import now_utc
from ..core.enums import AttendanceStatus, Role
from ..courses.model import Course
from ..students.model import AttendanceRecord, Student
from ..users.model import User
from .api import ApiClient, ApiError
from .notifications import Notification, derive_salary_notifications
from .storage import CURRENT_DEVICE_ID, THEME, THEMES, TOKEN, LocalStorage

logger = logging.getLogger(__name__)


class ClientError(Exception):
    """Base class for errors raised by the client before anything is sent."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BusyError(ClientError):
    pass


class LessonLockedError(ClientError):
    pass


class LoginRejectedError(ClientError):
    pass


class ClientStore:
    """In-memory cache of users, courses and students for the signed-in user.

    The cache is only ever replaced by ``refresh()``; every server mutation
    calls it afterwards. Salary and payment toggles patch the cache first and
    roll back if the request fails.
    """

    def __init__(
        self,
        api: ApiClient,
        storage: LocalStorage,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.api = api
        self.storage = storage
        self._clock = clock

        self.current_user: Optional[User] = None
        self.needs_setup = False
        self.users: list[User] = []
        self.courses: list[Course] = []
        self.students: list[Student] = []
        self._notifications: list[Notification] = []

        self.staged_attendance: dict[int, dict[str, AttendanceRecord]] = {}
        self.pending_absence: Optional[tuple[int, str]] = None

        self.in_flight = False

    # ---- plumbing ----

    @contextmanager
    def _busy(self) -> Iterator[None]:
        if self.in_flight:
            raise BusyError("Another request is still running")
        self.in_flight = True
        try:
            yield
        finally:
            self.in_flight = False

    def _reload(self) -> None:
        self.users = [User.from_dict(u) for u in self.api.get_users()]
        self.courses = [Course.from_dict(c) for c in self.api.get_courses()]
        self.students = [Student.from_dict(s) for s in self.api.get_students()]
        self.recompute_notifications()

    def _replace_user(self, user: User) -> None:
        self.users = [user if u.user_id == user.user_id else u for u in self.users]
        if self.current_user and self.current_user.user_id == user.user_id:
            self.current_user = user

    def _replace_student(self, student: Student) -> None:
        self.students = [student if s.student_id == student.student_id else s for s in self.students]

    def _find_user(self, user_id: int) -> User:
        for u in self.users:
            if u.user_id == user_id:
                return u
        raise ClientError("User not found")

    def _find_student(self, student_id: int) -> Student:
        for s in self.students:
            if s.student_id == student_id:
                return s
        raise ClientError("Student not found")

    def _clear_session(self) -> None:
        self.storage.remove(TOKEN)
        self.storage.remove(CURRENT_DEVICE_ID)
        self.current_user = None
        self.users, self.courses, self.students = [], [], []
        self._notifications = []
        self.staged_attendance.clear()
        self.pending_absence = None

    @property
    def is_admin(self) -> bool:
        return bool(self.current_user and self.current_user.is_admin)

    @property
    def teachers(self) -> list[User]:
        return [u for u in self.users if u.role == Role.TEACHER]

    @property
    def visible_students(self) -> list[Student]:
        if self.current_user is None:
            return []
        if self.is_admin:
            return list(self.students)
        return [s for s in self.students if s.teacher_id == self.current_user.user_id]

    @property
    def notifications(self) -> list[Notification]:
        return list(self._notifications)

    # ---- session ----

    def check_system(self) -> bool:
        """Ask whether any account exists yet; an empty system offers center setup."""
        with self._busy():
            status = self.api.system_status()
        self.needs_setup = not status.get("hasUsers", False)
        return self.needs_setup

    def restore_session(self) -> Optional[User]:
        if not self.storage.get(TOKEN):
            return None
        with self._busy():
            try:
                self.current_user = User.from_dict(self.api.get_me()["user"])
                self._reload()
            except ApiError as e:
                logger.info("stored session rejected: %s", e.message)
                self._clear_session()
                return None
        return self.current_user

    def login(self, username: str, password: str) -> User:
        with self._busy():
            result = self.api.login(username.strip(), password.strip())
            user = User.from_dict(result["user"])
            if user.role == Role.TEACHER and user.is_left:
                # The device entry the server just created stays until an admin revokes it.
                raise LoginRejectedError("This account has been deactivated")

            self.storage.set(TOKEN, result["token"])
            self.storage.set(CURRENT_DEVICE_ID, result["currentDeviceId"])
            self.current_user = user
            self._reload()
        self.needs_setup = False
        return user

    def register_center(self, center_name: str, full_name: str, username: str, password: str) -> User:
        with self._busy():
            self.api.create_user(
                {
                    "centerName": center_name.strip(),
                    "name": full_name.strip(),
                    "username": username.strip(),
                    "password": password.strip(),
                    "role": Role.SUPER_ADMIN.value,
                }
            )
        return self.login(username, password)

    def logout(self) -> None:
        device_id = self.storage.get(CURRENT_DEVICE_ID)
        if self.current_user and device_id:
            try:
                self.api.logout_device(self.current_user.user_id, device_id)
            except ApiError as e:
                logger.warning("could not revoke device %s: %s", device_id, e.message)
        self._clear_session()

    def refresh(self) -> None:
        """Drop the cached lists and fetch all three again."""
        with self._busy():
            self._reload()

    def recompute_notifications(self, today: Optional[date] = None) -> list[Notification]:
        if not self.is_admin:
            self._notifications = []
            return []
        now = self._clock()
        self._notifications = derive_salary_notifications(
            self.teachers,
            self._notifications,
            admin_id=self.current_user.user_id,
            today=today or now.date(),
            now=now,
        )
        return self.notifications

    def set_theme(self, theme: str) -> None:
        if theme not in THEMES:
            raise ClientError(f"Unknown theme: {theme}")
        self.storage.set(THEME, theme)

    # ---- teachers / settings ----

    def add_teacher(self, payload: dict) -> User:
        data = {k: v.strip() if isinstance(v, str) else v for k, v in payload.items()}
        data["role"] = Role.TEACHER.value
        with self._busy():
            created = User.from_dict(self.api.create_user(data))
            self._reload()
        return created

    def update_teacher(self, teacher_id: int, changes: dict) -> User:
        with self._busy():
            updated = User.from_dict(self.api.update_user(teacher_id, changes))
            self._reload()
        return updated

    def set_teacher_left(self, teacher_id: int, is_left: bool) -> User:
        return self.update_teacher(teacher_id, {"isLeft": is_left})

    def remove_teacher(self, teacher_id: int) -> None:
        with self._busy():
            self.api.delete_user(teacher_id)
            self._reload()

    def _patch_user(self, user_id: int, changes: dict, local: dict) -> User:
        before = self._find_user(user_id)
        patched = replace(before, **local)
        self._replace_user(patched)
        self.recompute_notifications()
        try:
            with self._busy():
                saved = User.from_dict(self.api.update_user(user_id, changes))
        except (ApiError, BusyError):
            self._replace_user(before)
            self.recompute_notifications()
            raise
        self._replace_user(saved)
        return saved

    def toggle_salary_paid(self, teacher_id: int) -> User:
        paid = not self._find_user(teacher_id).salary_paid
        return self._patch_user(teacher_id, {"salaryPaid": paid}, {"salary_paid": paid})

    def update_salary(self, teacher_id: int, amount: float) -> User:
        return self._patch_user(teacher_id, {"monthlySalary": amount}, {"monthly_salary": amount})

    def update_settings(
        self,
        *,
        center_name: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> User:
        if self.current_user is None:
            raise ClientError("Not signed in")
        changes: dict = {}
        if center_name and self.is_admin:
            changes["centerName"] = center_name.strip()
        if username:
            changes["username"] = username.strip()
        if password:
            changes["password"] = password.strip()
        with self._busy():
            self.current_user = User.from_dict(self.api.update_user(self.current_user.user_id, changes))
            self._reload()
        return self.current_user

    def remote_logout(self, user_id: int, device_id: str) -> None:
        """Revoke a device; revoking this device ends the local session."""
        if self.current_user and user_id == self.current_user.user_id and device_id == self.storage.get(CURRENT_DEVICE_ID):
            self.logout()
            return
        with self._busy():
            result = self.api.logout_device(user_id, device_id)
            if self.current_user and user_id == self.current_user.user_id:
                self.current_user = User.from_dict(result["user"])
            if self.is_admin:
                self._reload()

    # ---- courses ----

    def add_course(self, payload: dict) -> Course:
        with self._busy():
            created = Course.from_dict(self.api.create_course(payload))
            self._reload()
        return created

    def update_course(self, course_id: int, changes: dict) -> Course:
        with self._busy():
            updated = Course.from_dict(self.api.update_course(course_id, changes))
            self._reload()
        return updated

    def add_lesson(self, course_id: int, lesson_date: str, topic: str) -> Course:
        with self._busy():
            updated = Course.from_dict(self.api.add_lesson(course_id, {"date": lesson_date, "topic": topic.strip()}))
            self._reload()
        return updated

    def remove_course(self, course_id: int) -> None:
        with self._busy():
            self.api.delete_course(course_id)
            self._reload()

    # ---- students ----

    def add_student(self, name: str, teacher_id: Optional[int] = None, *, paid: bool = False) -> Student:
        if self.current_user is None:
            raise ClientError("Not signed in")
        payload: dict = {"name": name.strip(), "teacherId": teacher_id or self.current_user.user_id}
        if self.is_admin:
            payload["paid"] = paid
        with self._busy():
            created = Student.from_dict(self.api.create_student(payload))
            self._reload()
        return created

    def remove_student(self, student_id: int) -> None:
        with self._busy():
            self.api.delete_student(student_id)
            self._reload()

    def toggle_student_paid(self, student_id: int) -> Student:
        if not self.is_admin:
            raise ClientError("Only the center admin can change payments")
        before = self._find_student(student_id)
        self._replace_student(replace(before, paid=not before.paid))
        try:
            with self._busy():
                saved = Student.from_dict(self.api.update_student(student_id, {"paid": not before.paid}))
        except (ApiError, BusyError):
            self._replace_student(before)
            raise
        self._replace_student(saved)
        return saved

    # ---- attendance staging ----

    def _check_lesson_open(self, student: Student, lesson_date: str) -> None:
        for course in self.courses:
            if course.name != student.course_name:
                continue
            lesson = course.find_lesson(lesson_date)
            if lesson and lesson.is_locked(self._clock()):
                raise LessonLockedError("Attendance for this lesson is locked")
            return

    def attendance_for(self, student_id: int, lesson_date: str) -> Optional[AttendanceRecord]:
        """Staged mark if any, otherwise the saved one."""
        staged = self.staged_attendance.get(student_id, {})
        if lesson_date in staged:
            return staged[lesson_date]
        return self._find_student(student_id).attendance.get(lesson_date)

    def _stage(self, student_id: int, lesson_date: str, record: AttendanceRecord) -> None:
        self.staged_attendance.setdefault(student_id, {})[lesson_date] = record

    def mark_attendance(self, student_id: int, lesson_date: str, status: AttendanceStatus | str) -> bool:
        """Stage a mark. Returns False when an absence still needs its reason."""
        status = AttendanceStatus(status)
        self._check_lesson_open(self._find_student(student_id), lesson_date)
        if status == AttendanceStatus.ABSENT:
            self.pending_absence = (student_id, lesson_date)
            return False
        self._stage(student_id, lesson_date, AttendanceRecord(status=AttendanceStatus.PRESENT))
        return True

    def confirm_absent(self, reason: str) -> None:
        if self.pending_absence is None:
            raise ClientError("No absence is waiting for a reason")
        student_id, lesson_date = self.pending_absence
        self._stage(student_id, lesson_date, AttendanceRecord(status=AttendanceStatus.ABSENT, reason=reason.strip()))
        self.pending_absence = None

    def cancel_absent(self) -> None:
        self.pending_absence = None

    @property
    def has_unsaved_attendance(self) -> bool:
        return any(self.staged_attendance.values())

    def save_attendance(self) -> list[dict]:
        """Send all staged marks in one bulk call and return the per-item results."""
        if not self.has_unsaved_attendance:
            return []
        updates = [
            {"id": student_id, "attendance": {d: rec.to_dict() for d, rec in marks.items()}}
            for student_id, marks in self.staged_attendance.items()
            if marks
        ]
        with self._busy():
            results = self.api.bulk_update_students(updates).get("results", [])
            self.staged_attendance.clear()
            self._reload()
        skipped = [r for r in results if r.get("status") == "skipped"]
        if skipped:
            logger.warning("bulk attendance skipped %d of %d students", len(skipped), len(results))
        return results

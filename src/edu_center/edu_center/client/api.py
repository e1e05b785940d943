from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from .storage import TOKEN, LocalStorage

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """A non-2xx answer (or no answer) from the server."""

    def __init__(self, message: str, status: int = 0, data: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.data = data or {}

    @property
    def suggestions(self) -> list[str]:
        return list(self.data.get("suggestions") or [])


class ApiClient:
    """Thin REST client: one method per endpoint, bearer token from storage.

    Failures are raised as ``ApiError`` and never retried.
    """

    def __init__(
        self,
        base_url: str,
        storage: LocalStorage,
        *,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._storage = storage
        self._session = session or requests.Session()
        self._timeout = timeout

    def _request(self, method: str, endpoint: str, payload: Any = None) -> Any:
        headers = {"Content-Type": "application/json"}
        token = self._storage.get(TOKEN)
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = self._session.request(
                method,
                f"{self._base_url}{endpoint}",
                json=payload,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.error("API error (%s): %s", endpoint, e)
            raise ApiError(f"Cannot reach server: {e}") from e

        data: Any = None
        if "application/json" in response.headers.get("Content-Type", ""):
            data = response.json()

        if not response.ok:
            message = data.get("message") if isinstance(data, dict) else None
            error = ApiError(message or f"Server error: {response.status_code}", response.status_code,
                             data if isinstance(data, dict) else None)
            logger.error("API error (%s): %s", endpoint, error.message)
            raise error

        return data

    # Auth
    def login(self, username: str, password: str) -> dict:
        return self._request("POST", "/auth/login", {"username": username, "password": password})

    def get_me(self) -> dict:
        return self._request("GET", "/auth/me")

    def system_status(self) -> dict:
        return self._request("GET", "/system/status")

    # Users (teachers/admins)
    def get_users(self) -> list:
        return self._request("GET", "/users")

    def create_user(self, user: dict) -> dict:
        return self._request("POST", "/users", user)

    def update_user(self, user_id: int, updates: dict) -> dict:
        return self._request("PUT", f"/users/{user_id}", updates)

    def delete_user(self, user_id: int) -> dict:
        return self._request("DELETE", f"/users/{user_id}")

    def logout_device(self, user_id: int, device_id: str) -> dict:
        return self._request("DELETE", f"/users/{user_id}/devices/{device_id}")

    # Courses
    def get_courses(self) -> list:
        return self._request("GET", "/courses")

    def create_course(self, course: dict) -> dict:
        return self._request("POST", "/courses", course)

    def update_course(self, course_id: int, updates: dict) -> dict:
        return self._request("PUT", f"/courses/{course_id}", updates)

    def delete_course(self, course_id: int) -> dict:
        return self._request("DELETE", f"/courses/{course_id}")

    def add_lesson(self, course_id: int, lesson: dict) -> dict:
        return self._request("POST", f"/courses/{course_id}/lessons", lesson)

    # Students
    def get_students(self) -> list:
        return self._request("GET", "/students")

    def create_student(self, student: dict) -> dict:
        return self._request("POST", "/students", student)

    def update_student(self, student_id: int, updates: dict) -> dict:
        return self._request("PUT", f"/students/{student_id}", updates)

    def delete_student(self, student_id: int) -> dict:
        return self._request("DELETE", f"/students/{student_id}")

    def bulk_update_students(self, updates: list) -> dict:
        return self._request("PUT", "/students/bulk", {"updates": updates})

from __future__ import annotations

from dataclasses import replace
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from src.edu_center.edu_center.container import assemble_container
from src.edu_center.edu_center.core.enums import Role
from src.edu_center.edu_center.core.tenancy import TenantScope
from src.edu_center.edu_center.main import create_app
from src.edu_center.edu_center.users.model import User


class _InMemoryTable:
    id_attr = ""

    def __init__(self):
        self.rows: dict[int, object] = {}
        self._next_id = 0
        self.saves = 0

    def get_by_id(self, entity_id: int):
        return self.rows.get(entity_id)

    def list_for_scope(self, scope: TenantScope):
        return [e for e in self.rows.values() if scope.owns(e.center_name)]

    def create(self, entity):
        self._next_id += 1
        entity = replace(entity, **{self.id_attr: self._next_id})
        self.rows[self._next_id] = entity
        return entity

    def save(self, entity):
        self.saves += 1
        self.rows[getattr(entity, self.id_attr)] = entity
        return entity

    def delete_by_id(self, entity_id: int) -> bool:
        return self.rows.pop(entity_id, None) is not None

    def rename_center(self, old_name: str, new_name: str) -> int:
        n = 0
        for key, entity in list(self.rows.items()):
            if entity.center_name == old_name:
                self.rows[key] = replace(entity, center_name=new_name)
                n += 1
        return n


class InMemoryUsers(_InMemoryTable):
    id_attr = "user_id"

    def get_by_username(self, username: str) -> Optional[User]:
        for user in self.rows.values():
            if user.username == username:
                return user
        return None

    def count(self) -> int:
        return len(self.rows)


class InMemoryCourses(_InMemoryTable):
    id_attr = "course_id"


class InMemoryStudents(_InMemoryTable):
    id_attr = "student_id"

    def list_for_scope(self, scope: TenantScope, *, teacher_id: Optional[int] = None):
        items = super().list_for_scope(scope)
        if teacher_id is not None:
            items = [s for s in items if s.teacher_id == teacher_id]
        return items


@pytest.fixture
def container():
    return assemble_container(
        users_repo=InMemoryUsers(),
        courses_repo=InMemoryCourses(),
        students_repo=InMemoryStudents(),
        secret_key="test-secret",
    )


@pytest.fixture
def app(container):
    return create_app(container, settings_module="config.testing")


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(container):
    """Insert a user straight into the repository (password stored hashed)."""

    def _make(username, *, role=Role.TEACHER, center="Alpha", password="secret", **fields) -> User:
        user = User(
            user_id=0,
            role=role,
            name=fields.pop("name", username.title()),
            username=username,
            password_hash=generate_password_hash(password),
            center_name=center,
            **fields,
        )
        return container.users_repo.create(user)

    return _make


@pytest.fixture
def two_centers(make_user):
    return {
        "alpha_admin": make_user("alpha", role=Role.SUPER_ADMIN, center="Alpha"),
        "alpha_teacher": make_user("aziz", center="Alpha", course_name="Frontend React"),
        "alpha_teacher2": make_user("malika", center="Alpha", course_name="General English"),
        "beta_admin": make_user("beta", role=Role.SUPER_ADMIN, center="Beta"),
        "beta_teacher": make_user("bobur", center="Beta", course_name="Math"),
    }


@pytest.fixture
def auth_headers(client):
    def _login(username: str, password: str = "secret") -> dict:
        resp = client.post("/api/auth/login", json={"username": username, "password": password})
        assert resp.status_code == 200, resp.get_json()
        return {"Authorization": f"Bearer {resp.get_json()['token']}"}

    return _login

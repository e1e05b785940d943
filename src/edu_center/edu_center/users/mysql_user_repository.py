from __future__ import annotations

from dataclasses import replace
from typing import Optional, Sequence

from ..core.enums import Role
from ..core.tenancy import TenantScope
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json, tenant_clause
from .model import Device, User
from .repository import UserRepository

_COLUMNS = """
    user_id, role, name, username, password_hash, center_name, course_name,
    course_price, monthly_salary, salary_paid, join_date, is_left, devices
"""


def _row_to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        role=Role(row["role"]),
        name=row["name"],
        username=row["username"],
        password_hash=row["password_hash"],
        center_name=row.get("center_name"),
        course_name=row.get("course_name"),
        course_price=row.get("course_price"),
        monthly_salary=row.get("monthly_salary"),
        salary_paid=bool(row.get("salary_paid")),
        join_date=row.get("join_date"),
        is_left=bool(row.get("is_left")),
        devices=tuple(Device.from_dict(d) for d in load_json(row.get("devices"), [])),
    )


def _user_params(user: User) -> tuple:
    return (
        user.role.value,
        user.name,
        user.username,
        user.password_hash,
        user.center_name,
        user.course_name,
        user.course_price,
        user.monthly_salary,
        int(user.salary_paid),
        user.join_date,
        int(user.is_left),
        dump_json([d.to_dict() for d in user.devices]),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def get_by_username(self, username: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE username=%s", (username,))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def count(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM users")
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def list_for_scope(self, scope: TenantScope) -> Sequence[User]:
        where, params = tenant_clause("center_name", scope.center_name, scope.include_untagged)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE {where} ORDER BY user_id", tuple(params))
            return [_row_to_user(r) for r in fetchall(cur)]

    def create(self, user: User) -> User:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(role, name, username, password_hash, center_name, course_name,
                                  course_price, monthly_salary, salary_paid, join_date, is_left, devices)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                _user_params(user),
            )
            return replace(user, user_id=int(cur.lastrowid))

    def save(self, user: User) -> User:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE users
                SET role=%s, name=%s, username=%s, password_hash=%s, center_name=%s, course_name=%s,
                    course_price=%s, monthly_salary=%s, salary_paid=%s, join_date=%s, is_left=%s, devices=%s
                WHERE user_id=%s
                """,
                _user_params(user) + (user.user_id,),
            )
            return user

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0

    def rename_center(self, old_name: str, new_name: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET center_name=%s WHERE center_name=%s", (new_name, old_name))
            return cur.rowcount

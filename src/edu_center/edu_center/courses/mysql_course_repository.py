from __future__ import annotations

from dataclasses import replace
from typing import Optional, Sequence

from ..core.tenancy import TenantScope
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json, tenant_clause
from .model import Course, Lesson
from .repository import CourseRepository

_COLUMNS = "course_id, name, teacher_id, schedule, price, center_name, lessons"


def _row_to_course(row: dict) -> Course:
    return Course(
        course_id=int(row["course_id"]),
        name=row["name"],
        schedule=row["schedule"],
        center_name=row.get("center_name"),
        teacher_id=int(row["teacher_id"]) if row.get("teacher_id") else None,
        price=row.get("price"),
        lessons=tuple(Lesson.from_dict(x) for x in load_json(row.get("lessons"), [])),
    )


def _course_params(course: Course) -> tuple:
    return (
        course.name,
        course.teacher_id,
        course.schedule,
        course.price,
        course.center_name,
        dump_json([lesson.to_dict() for lesson in course.lessons]),
    )


class MySQLCourseRepository(CourseRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, course_id: int) -> Optional[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM courses WHERE course_id=%s", (int(course_id),))
            row = fetchone(cur)
            return _row_to_course(row) if row else None

    def list_for_scope(self, scope: TenantScope) -> Sequence[Course]:
        where, params = tenant_clause("center_name", scope.center_name, scope.include_untagged)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM courses WHERE {where} ORDER BY course_id", tuple(params))
            return [_row_to_course(r) for r in fetchall(cur)]

    def create(self, course: Course) -> Course:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO courses(name, teacher_id, schedule, price, center_name, lessons)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                _course_params(course),
            )
            return replace(course, course_id=int(cur.lastrowid))

    def save(self, course: Course) -> Course:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE courses
                SET name=%s, teacher_id=%s, schedule=%s, price=%s, center_name=%s, lessons=%s
                WHERE course_id=%s
                """,
                _course_params(course) + (course.course_id,),
            )
            return course

    def delete_by_id(self, course_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM courses WHERE course_id=%s", (int(course_id),))
            return cur.rowcount > 0

    def rename_center(self, old_name: str, new_name: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE courses SET center_name=%s WHERE center_name=%s", (new_name, old_name))
            return cur.rowcount

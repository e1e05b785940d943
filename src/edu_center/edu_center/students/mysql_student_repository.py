from __future__ import annotations

from dataclasses import replace
from typing import Optional, Sequence

from ..core.tenancy import TenantScope
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json, tenant_clause
from .model import AttendanceRecord, Student
from .repository import StudentRepository

_COLUMNS = "student_id, name, teacher_id, course_name, paid, center_name, attendance"


def _row_to_student(row: dict) -> Student:
    attendance = load_json(row.get("attendance"), {})
    return Student(
        student_id=int(row["student_id"]),
        name=row["name"],
        teacher_id=int(row["teacher_id"]),
        course_name=row.get("course_name") or "",
        center_name=row.get("center_name"),
        paid=bool(row.get("paid")),
        attendance={d: AttendanceRecord.from_dict(r) for d, r in attendance.items()},
    )


def _student_params(student: Student) -> tuple:
    return (
        student.name,
        student.teacher_id,
        student.course_name,
        int(student.paid),
        student.center_name,
        dump_json({d: rec.to_dict() for d, rec in student.attendance.items()}),
    )


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, student_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM students WHERE student_id=%s", (int(student_id),))
            row = fetchone(cur)
            return _row_to_student(row) if row else None

    def list_for_scope(self, scope: TenantScope, *, teacher_id: Optional[int] = None) -> Sequence[Student]:
        where, params = tenant_clause("center_name", scope.center_name, scope.include_untagged)
        if teacher_id is not None:
            where += " AND teacher_id=%s"
            params.append(int(teacher_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM students WHERE {where} ORDER BY student_id", tuple(params))
            return [_row_to_student(r) for r in fetchall(cur)]

    def create(self, student: Student) -> Student:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO students(name, teacher_id, course_name, paid, center_name, attendance)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                _student_params(student),
            )
            return replace(student, student_id=int(cur.lastrowid))

    def save(self, student: Student) -> Student:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE students
                SET name=%s, teacher_id=%s, course_name=%s, paid=%s, center_name=%s, attendance=%s
                WHERE student_id=%s
                """,
                _student_params(student) + (student.student_id,),
            )
            return student

    def delete_by_id(self, student_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM students WHERE student_id=%s", (int(student_id),))
            return cur.rowcount > 0

    def rename_center(self, old_name: str, new_name: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE students SET center_name=%s WHERE center_name=%s", (new_name, old_name))
            return cur.rowcount

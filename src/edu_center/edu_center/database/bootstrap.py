from __future__ import annotations

import logging
import re
from dataclasses import replace
from pathlib import Path
from typing import Iterable

from werkzeug.security import generate_password_hash

from ..core.enums import AttendanceStatus, Role
from ..core.tenancy import TenantScope
from ..courses.model import Course, Lesson
from ..courses.repository import CourseRepository
from ..students.model import AttendanceRecord, Student
from ..students.repository import StudentRepository
from ..users.model import User
from ..users.repository import UserRepository
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)

DEMO_CENTER = "Kelajak Academy"


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql usable whatever DB_NAME is configured.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_comments(sql: str) -> str:
    return "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))


def iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal splitter for schema/seed files (a ';' inside quotes does not split).
    buf: list[str] = []
    quote = ""
    escape = False

    for ch in sql:
        if escape:
            buf.append(ch)
            escape = False
            continue

        if ch == "\\" and quote:
            buf.append(ch)
            escape = True
            continue

        if ch in ("'", '"'):
            if not quote:
                quote = ch
            elif quote == ch:
                quote = ""
            buf.append(ch)
            continue

        if ch == ";" and not quote:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _run_sql_file(conn_factory: DatabaseConnection, path: Path) -> int:
    sql = _strip_comments(_strip_create_db_and_use(path.read_text(encoding="utf-8")))
    conn = conn_factory.connect()
    count = 0
    try:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
            count += 1
        conn.commit()
    finally:
        conn.close()
    return count


def ensure_database_exists(conn_factory: DatabaseConnection) -> None:
    conn = conn_factory.connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{conn_factory.config.database}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(conn_factory: DatabaseConnection, *, schema_path: str | Path) -> None:
    ensure_database_exists(conn_factory)
    n = _run_sql_file(conn_factory, Path(schema_path))
    logger.info("schema applied to %s (%d statements)", conn_factory.config.describe(), n)


def apply_seed_sql(conn_factory: DatabaseConnection, *, seed_path: str | Path) -> None:
    n = _run_sql_file(conn_factory, Path(seed_path))
    logger.info("seed sql applied (%d statements)", n)


def list_tables(conn_factory: DatabaseConnection) -> list[str]:
    conn = conn_factory.connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()


def ensure_demo_center(
    users: UserRepository,
    courses: CourseRepository,
    students: StudentRepository,
    *,
    created_at: str = "2023-10-25T09:00:00.000Z",
) -> None:
    """Upsert the demo center: one admin, two teachers, three courses, three students."""

    def upsert_user(user: User, password: str) -> User:
        user = replace(user, password_hash=generate_password_hash(password))
        existing = users.get_by_username(user.username)
        if existing:
            return users.save(replace(user, user_id=existing.user_id, devices=existing.devices))
        return users.create(user)

    upsert_user(
        User(user_id=0, role=Role.SUPER_ADMIN, name="Director Admin", username="admin",
             password_hash="", center_name=DEMO_CENTER),
        "admin123",
    )
    aziz = upsert_user(
        User(user_id=0, role=Role.TEACHER, name="Azizbek Tursunov", username="aziz", password_hash="",
             center_name=DEMO_CENTER, course_name="Frontend React", course_price=800000,
             monthly_salary=5000000, salary_paid=False, join_date="2023-10-15"),
        "teacher123",
    )
    malika = upsert_user(
        User(user_id=0, role=Role.TEACHER, name="Malika Karimova", username="malika", password_hash="",
             center_name=DEMO_CENTER, course_name="General English", course_price=600000,
             monthly_salary=4000000, salary_paid=True, join_date="2023-09-01"),
        "teacher123",
    )

    if courses.list_for_scope(TenantScope(DEMO_CENTER)):
        logger.info("demo center %r already has courses, users refreshed only", DEMO_CENTER)
        return

    courses.create(Course(course_id=0, name="Frontend React", schedule="Mon-Wed-Fri 14:00",
                          center_name=DEMO_CENTER, teacher_id=aziz.user_id, price=800000,
                          lessons=(Lesson("2023-10-25", "JSX basics", created_at),
                                   Lesson("2023-10-27", "Components", created_at))))
    courses.create(Course(course_id=0, name="General English", schedule="Tue-Thu-Sat 10:00",
                          center_name=DEMO_CENTER, teacher_id=malika.user_id, price=600000,
                          lessons=(Lesson("2023-10-26", "Present Simple", created_at),)))
    courses.create(Course(course_id=0, name="Foundation Math", schedule="Mon-Wed-Fri 16:00",
                          center_name=DEMO_CENTER, price=500000))

    present = AttendanceRecord(AttendanceStatus.PRESENT)
    students.create(Student(student_id=0, name="Otabek Nurmatov", teacher_id=aziz.user_id,
                            course_name="Frontend React", center_name=DEMO_CENTER, paid=True,
                            attendance={"2023-10-25": present, "2023-10-27": present}))
    students.create(Student(student_id=0, name="Sardor Rahimov", teacher_id=aziz.user_id,
                            course_name="Frontend React", center_name=DEMO_CENTER, paid=False,
                            attendance={"2023-10-25": AttendanceRecord(AttendanceStatus.ABSENT, "Kasal"),
                                        "2023-10-27": present}))
    students.create(Student(student_id=0, name="Zarina Aliyeva", teacher_id=malika.user_id,
                            course_name="General English", center_name=DEMO_CENTER, paid=True,
                            attendance={"2023-10-26": present}))
    logger.info("demo center %r ready", DEMO_CENTER)

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .auth.service import AuthService
from .auth.tokens import TokenService
from .courses.mysql_course_repository import MySQLCourseRepository
from .courses.repository import CourseRepository
from .courses.service import CourseService
from .database.connection import DBConfig, DatabaseConnection
from .students.mysql_student_repository import MySQLStudentRepository
from .students.repository import StudentRepository
from .students.service import StudentService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import UserService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    courses_repo: CourseRepository
    students_repo: StudentRepository

    token_service: TokenService
    auth_service: AuthService
    user_service: UserService
    course_service: CourseService
    student_service: StudentService

    conn: Optional[DatabaseConnection] = None


def assemble_container(
    *,
    users_repo: UserRepository,
    courses_repo: CourseRepository,
    students_repo: StudentRepository,
    secret_key: str,
    token_max_age: Optional[int] = None,
    include_untagged: bool = False,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services over any repository implementation (MySQL or in-memory)."""
    token_service = TokenService(secret_key, max_age=token_max_age)

    return Container(
        users_repo=users_repo,
        courses_repo=courses_repo,
        students_repo=students_repo,
        token_service=token_service,
        auth_service=AuthService(users_repo, token_service),
        user_service=UserService(users_repo, courses_repo, students_repo, include_untagged=include_untagged),
        course_service=CourseService(courses_repo, users_repo, include_untagged=include_untagged),
        student_service=StudentService(students_repo, users_repo, include_untagged=include_untagged),
        conn=conn,
    )


def build_container(
    *,
    db_config: dict,
    secret_key: str,
    token_max_age: Optional[int] = None,
    include_untagged: bool = False,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    return assemble_container(
        users_repo=MySQLUserRepository(conn),
        courses_repo=MySQLCourseRepository(conn),
        students_repo=MySQLStudentRepository(conn),
        secret_key=secret_key,
        token_max_age=token_max_age,
        include_untagged=include_untagged,
        conn=conn,
    )

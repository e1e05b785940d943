from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.edu_center.edu_center.courses.mysql_course_repository import MySQLCourseRepository
from src.edu_center.edu_center.database.bootstrap import apply_seed_sql, ensure_demo_center
from src.edu_center.edu_center.database.connection import DBConfig, DatabaseConnection
from src.edu_center.edu_center.students.mysql_student_repository import MySQLStudentRepository
from src.edu_center.edu_center.users.mysql_user_repository import MySQLUserRepository


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(settings.DB_CONFIG))

    apply_seed_sql(conn, seed_path=REPO_ROOT / "database" / "seed.sql")
    ensure_demo_center(MySQLUserRepository(conn), MySQLCourseRepository(conn), MySQLStudentRepository(conn))

    print(f"OK: Seeded demo center -> {conn.config.describe()} (login admin / admin123)")


if __name__ == "__main__":
    main()

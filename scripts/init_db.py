from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.edu_center.edu_center.database.bootstrap import apply_schema, list_tables
from src.edu_center.edu_center.database.connection import DBConfig, DatabaseConnection


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(settings.DB_CONFIG))

    apply_schema(conn, schema_path=REPO_ROOT / "database" / "schema.sql")
    tables = list_tables(conn)
    print(f"OK: Applied schema.sql -> {conn.config.describe()} (tables={len(tables)})")


if __name__ == "__main__":
    main()

from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def load_json(value: Any, default: Any) -> Any:
    """Decode a MySQL JSON column.

    mysql-connector can return JSON as:
    - str
    - bytes / bytearray
    - an already decoded object (C extension with some server versions)
    """

    if value is None:
        return default
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        if not value.strip():
            return default
        return json.loads(value)
    return value


def dump_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def tenant_clause(column: str, center_name: Optional[str], include_untagged: bool) -> tuple[str, list[Any]]:
    """WHERE fragment for tenant scoping (see ``TenantScope``)."""
    if include_untagged:
        return f"({column}=%s OR {column} IS NULL OR {column}='')", [center_name]
    return f"{column}=%s", [center_name]

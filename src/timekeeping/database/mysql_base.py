from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    pinned = conn_factory.current()
    if pinned is not None:
        # Inside DatabaseConnection.transaction(): commit/rollback belong to it.
        cur = pinned.cursor(dictionary=dictionary)
        try:
            yield pinned, cur
        finally:
            cur.close()
        return

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


def count_value(row: Optional[Dict[str, Any]], key: str = "total") -> int:
    if not row or row.get(key) is None:
        return 0
    return int(row[key])

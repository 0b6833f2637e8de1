from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .authority import ApprovalAuthority


class MySQLApprovalAuthority(ApprovalAuthority):
    """Reads the approving manager from ``employees.manager_id``."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def manager_of(self, employee_id: int) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT e.manager_id
                FROM employees e
                JOIN employees m ON m.employee_id = e.manager_id AND m.is_active = 1
                WHERE e.employee_id=%s
                """,
                (int(employee_id),),
            )
            r = fetchone(cur)
            if not r or r.get("manager_id") is None:
                return None
            return int(r["manager_id"])

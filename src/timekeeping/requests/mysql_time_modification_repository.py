from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import count_value, db_cursor, fetchall, fetchone
from .model import TimeModificationRequest
from .repository import TimeModificationRequestRepository

_COLUMNS = """
    r.request_id, r.employee_id, r.work_date,
    r.original_clock_in, r.original_clock_out,
    r.requested_clock_in, r.requested_clock_out,
    r.reason, r.status, r.created_at,
    r.approver_id, r.approved_at, r.rejection_reason
"""


def _to_request(r: Dict[str, Any]) -> TimeModificationRequest:
    return TimeModificationRequest(
        request_id=int(r["request_id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["work_date"],
        original_clock_in=r.get("original_clock_in"),
        original_clock_out=r.get("original_clock_out"),
        requested_clock_in=r.get("requested_clock_in"),
        requested_clock_out=r.get("requested_clock_out"),
        reason=r["reason"],
        status=RequestStatus(r["status"]),
        created_at=r["created_at"],
        approver_id=r.get("approver_id"),
        approved_at=r.get("approved_at"),
        rejection_reason=r.get("rejection_reason"),
    )


class MySQLTimeModificationRequestRepository(TimeModificationRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, request_id: int) -> Optional[TimeModificationRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM time_modification_requests r WHERE r.request_id=%s",
                (int(request_id),),
            )
            r = fetchone(cur)
            return _to_request(r) if r else None

    def list_for_date(
        self,
        employee_id: int,
        work_date: date,
        *,
        statuses: Sequence[RequestStatus],
    ) -> Sequence[TimeModificationRequest]:
        if not statuses:
            return []
        status_values = [s.value for s in statuses]
        placeholders = ",".join(["%s"] * len(status_values))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM time_modification_requests r
                WHERE r.employee_id=%s AND r.work_date=%s AND r.status IN ({placeholders})
                """,
                tuple([int(employee_id), work_date] + status_values),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def list_for_employee(
        self,
        employee_id: int,
        *,
        status: Optional[RequestStatus] = None,
        limit: int = 200,
    ) -> Sequence[TimeModificationRequest]:
        clauses = ["r.employee_id=%s"]
        params: list[object] = [int(employee_id)]
        if status is not None:
            clauses.append("r.status=%s")
            params.append(status.value)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM time_modification_requests r
                WHERE {where}
                ORDER BY r.created_at DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def list_for_manager(
        self,
        manager_id: int,
        *,
        status: Optional[RequestStatus] = None,
        limit: int = 200,
    ) -> Sequence[TimeModificationRequest]:
        clauses = ["e.manager_id=%s"]
        params: list[object] = [int(manager_id)]
        if status is not None:
            clauses.append("r.status=%s")
            params.append(status.value)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM time_modification_requests r
                JOIN employees e ON e.employee_id = r.employee_id
                WHERE {where}
                ORDER BY r.created_at DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def count_for_manager(self, manager_id: int, *, status: RequestStatus) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS total
                FROM time_modification_requests r
                JOIN employees e ON e.employee_id = r.employee_id
                WHERE e.manager_id=%s AND r.status=%s
                """,
                (int(manager_id), status.value),
            )
            return count_value(fetchone(cur))

    def create(
        self,
        *,
        employee_id: int,
        work_date: date,
        original_clock_in: Optional[datetime],
        original_clock_out: Optional[datetime],
        requested_clock_in: Optional[datetime],
        requested_clock_out: Optional[datetime],
        reason: str,
        created_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO time_modification_requests(
                    employee_id, work_date, original_clock_in, original_clock_out,
                    requested_clock_in, requested_clock_out, reason, status, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(employee_id),
                    work_date,
                    original_clock_in,
                    original_clock_out,
                    requested_clock_in,
                    requested_clock_out,
                    reason,
                    RequestStatus.PENDING.value,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def update(self, request: TimeModificationRequest) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE time_modification_requests
                SET requested_clock_in=%s, requested_clock_out=%s, reason=%s, status=%s,
                    approver_id=%s, approved_at=%s, rejection_reason=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    request.requested_clock_in,
                    request.requested_clock_out,
                    request.reason,
                    request.status.value,
                    request.approver_id,
                    request.approved_at,
                    request.rejection_reason,
                    int(request.request_id),
                    RequestStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def delete(self, request_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM time_modification_requests WHERE request_id=%s AND status=%s",
                (int(request_id), RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0

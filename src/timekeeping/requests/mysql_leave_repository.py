from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import LeaveType, RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import count_value, db_cursor, fetchall, fetchone
from .model import LeaveRequest
from .repository import LeaveRequestRepository

_COLUMNS = """
    r.request_id, r.employee_id, r.leave_type, r.start_date, r.end_date, r.reason,
    r.status, r.created_at, r.approver_id, r.approved_at, r.rejection_reason
"""


def _to_request(r: Dict[str, Any]) -> LeaveRequest:
    return LeaveRequest(
        request_id=int(r["request_id"]),
        employee_id=int(r["employee_id"]),
        leave_type=LeaveType(r["leave_type"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        reason=r["reason"],
        status=RequestStatus(r["status"]),
        created_at=r["created_at"],
        approver_id=r.get("approver_id"),
        approved_at=r.get("approved_at"),
        rejection_reason=r.get("rejection_reason"),
    )


def _in_clause(values: Sequence[object]) -> str:
    return ",".join(["%s"] * len(values))


class MySQLLeaveRequestRepository(LeaveRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM leave_requests r WHERE r.request_id=%s",
                (int(request_id),),
            )
            r = fetchone(cur)
            return _to_request(r) if r else None

    def list_overlapping(
        self,
        employee_id: int,
        *,
        start_date: date,
        end_date: date,
        statuses: Sequence[RequestStatus],
    ) -> Sequence[LeaveRequest]:
        if not statuses:
            return []
        status_values = [s.value for s in statuses]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests r
                WHERE r.employee_id=%s
                  AND r.start_date <= %s AND r.end_date >= %s
                  AND r.status IN ({_in_clause(status_values)})
                ORDER BY r.start_date
                """,
                tuple([int(employee_id), end_date, start_date] + status_values),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def list_for_employee(
        self,
        employee_id: int,
        *,
        status: Optional[RequestStatus] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
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
                FROM leave_requests r
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
    ) -> Sequence[LeaveRequest]:
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
                FROM leave_requests r
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
                FROM leave_requests r
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
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        reason: str,
        created_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(employee_id, leave_type, start_date, end_date, reason, status, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(employee_id),
                    leave_type.value,
                    start_date,
                    end_date,
                    reason,
                    RequestStatus.PENDING.value,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def update(self, request: LeaveRequest) -> bool:
        # Only PENDING rows are mutable; a decided request never changes again.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET leave_type=%s, start_date=%s, end_date=%s, reason=%s, status=%s,
                    approver_id=%s, approved_at=%s, rejection_reason=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    request.leave_type.value,
                    request.start_date,
                    request.end_date,
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
                "DELETE FROM leave_requests WHERE request_id=%s AND status=%s",
                (int(request_id), RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0

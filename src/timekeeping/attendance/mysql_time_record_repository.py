from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus
from ..core.exceptions import StateConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import TimeRecord
from .repository import TimeRecordRepository

_COLUMNS = """
    t.record_id, t.employee_id, t.work_date, t.clock_in, t.clock_out,
    t.break_start, t.break_end, t.status, t.notes
"""


def _to_record(r: Dict[str, Any]) -> TimeRecord:
    return TimeRecord(
        record_id=int(r["record_id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["work_date"],
        clock_in=r.get("clock_in"),
        clock_out=r.get("clock_out"),
        break_start=r.get("break_start"),
        break_end=r.get("break_end"),
        status=AttendanceStatus(r["status"]),
        notes=r.get("notes"),
    )


class MySQLTimeRecordRepository(TimeRecordRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[TimeRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM time_records t
                WHERE t.employee_id=%s AND t.work_date=%s
                """,
                (int(employee_id), work_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def list_for_employee(self, employee_id: int, *, start_date: date, end_date: date) -> Sequence[TimeRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM time_records t
                WHERE t.employee_id=%s AND t.work_date BETWEEN %s AND %s
                ORDER BY t.work_date DESC
                """,
                (int(employee_id), start_date, end_date),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_for_manager(self, manager_id: int, *, start_date: date, end_date: date) -> Sequence[TimeRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM time_records t
                JOIN employees e ON e.employee_id = t.employee_id
                WHERE e.manager_id=%s AND t.work_date BETWEEN %s AND %s
                ORDER BY t.work_date DESC, t.employee_id
                """,
                (int(manager_id), start_date, end_date),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def create(self, record: TimeRecord) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO time_records(
                        employee_id, work_date, clock_in, clock_out,
                        break_start, break_end, total_hours, status, notes
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(record.employee_id),
                        record.work_date,
                        record.clock_in,
                        record.clock_out,
                        record.break_start,
                        record.break_end,
                        record.total_hours,
                        record.status.value,
                        record.notes,
                    ),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError as e:
            # uq_time_records_employee_date: a concurrent first clock-in won.
            raise StateConflictError("A time record already exists for this date") from e

    def update(self, record: TimeRecord, *, previous: TimeRecord) -> bool:
        # <=> is NULL-safe, so an unset timestamp only matches an unset column.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE time_records
                SET clock_in=%s, clock_out=%s, break_start=%s, break_end=%s,
                    total_hours=%s, status=%s, notes=%s
                WHERE employee_id=%s AND work_date=%s
                  AND clock_in <=> %s AND clock_out <=> %s
                  AND break_start <=> %s AND break_end <=> %s
                """,
                (
                    record.clock_in,
                    record.clock_out,
                    record.break_start,
                    record.break_end,
                    record.total_hours,
                    record.status.value,
                    record.notes,
                    int(record.employee_id),
                    record.work_date,
                    previous.clock_in,
                    previous.clock_out,
                    previous.break_start,
                    previous.break_end,
                ),
            )
            return cur.rowcount > 0

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from ..attendance.model import TimeRecord
from ..attendance.repository import TimeRecordRepository
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError

_CENTS = Decimal("0.01")


@dataclass(frozen=True)
class AttendanceSummary:
    employee_id: int
    start_date: date
    end_date: date
    recorded_days: int
    total_hours: Decimal
    average_hours: Decimal
    present_days: int
    late_days: int
    absent_days: int


@dataclass(frozen=True)
class TeamAttendanceSummary:
    """Totals over a manager's direct reports; ``members`` holds one entry per employee with records."""

    manager_id: int
    start_date: date
    end_date: date
    recorded_days: int
    total_hours: Decimal
    average_hours: Decimal
    present_days: int
    late_days: int
    absent_days: int
    members: tuple[AttendanceSummary, ...]

    @property
    def employee_count(self) -> int:
        return len(self.members)


def _totals(rows: Sequence[TimeRecord]) -> dict:
    total = sum((r.total_hours for r in rows), Decimal("0"))
    average = total / len(rows) if rows else Decimal("0")
    by_status = {s: 0 for s in AttendanceStatus}
    for r in rows:
        by_status[r.status] += 1

    return {
        "recorded_days": len(rows),
        "total_hours": total.quantize(_CENTS, rounding=ROUND_HALF_UP),
        "average_hours": average.quantize(_CENTS, rounding=ROUND_HALF_UP),
        "present_days": by_status[AttendanceStatus.PRESENT],
        "late_days": by_status[AttendanceStatus.LATE],
        "absent_days": by_status[AttendanceStatus.ABSENT],
    }


def _check_range(start: date, end: date) -> None:
    if start > end:
        raise ValidationError("Start date must not be after end date")


class AttendanceReportService:
    """Read projections over time records, per employee or per manager's team."""

    def __init__(self, records: TimeRecordRepository):
        self._records = records

    def summarize(self, employee_id: int, *, start: date, end: date) -> AttendanceSummary:
        _check_range(start, end)
        rows = self._records.list_for_employee(int(employee_id), start_date=start, end_date=end)
        return AttendanceSummary(employee_id=int(employee_id), start_date=start, end_date=end, **_totals(rows))

    def summarize_team(self, manager_id: int, *, start: date, end: date) -> TeamAttendanceSummary:
        _check_range(start, end)
        rows = self._records.list_for_manager(int(manager_id), start_date=start, end_date=end)

        by_employee: dict[int, list[TimeRecord]] = {}
        for r in rows:
            by_employee.setdefault(r.employee_id, []).append(r)

        members = tuple(
            AttendanceSummary(employee_id=employee_id, start_date=start, end_date=end, **_totals(items))
            for employee_id, items in sorted(by_employee.items())
        )
        return TeamAttendanceSummary(
            manager_id=int(manager_id),
            start_date=start,
            end_date=end,
            members=members,
            **_totals(rows),
        )

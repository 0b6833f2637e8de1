from __future__ import annotations

from dataclasses import InitVar, dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..common.datetime_utils import now_local
from ..core.enums import AttendancePhase, AttendanceStatus

_CENTS = Decimal("0.01")


def compute_total_hours(
    clock_in: Optional[datetime],
    clock_out: Optional[datetime],
    break_start: Optional[datetime],
    break_end: Optional[datetime],
    *,
    now: datetime,
) -> Decimal:
    """Worked hours for a session.

    (clock_out or now) - clock_in, minus the break when both ends are known,
    counted in whole minutes, never below zero, rounded half-up to 2 places.
    """
    if clock_in is None:
        return Decimal("0.00")

    worked = (clock_out or now) - clock_in
    if break_start is not None and break_end is not None:
        worked -= break_end - break_start

    minutes = max(int(worked.total_seconds() // 60), 0)
    return (Decimal(minutes) / Decimal(60)).quantize(_CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class TimeRecord:
    """Domain entity: one employee's attendance for one day.

    ``total_hours`` cannot be passed in; it is derived from the four timestamps
    every time an instance is built (including via ``dataclasses.replace``).
    ``as_of`` stands in for a missing clock-out and defaults to the current time.
    """

    employee_id: int
    work_date: date
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    break_start: Optional[datetime] = None
    break_end: Optional[datetime] = None
    status: AttendanceStatus = AttendanceStatus.ABSENT
    notes: Optional[str] = None
    record_id: Optional[int] = None
    total_hours: Decimal = field(init=False)
    as_of: InitVar[Optional[datetime]] = None

    def __post_init__(self, as_of: Optional[datetime]) -> None:
        hours = compute_total_hours(
            self.clock_in,
            self.clock_out,
            self.break_start,
            self.break_end,
            now=as_of or now_local(),
        )
        object.__setattr__(self, "total_hours", hours)

    @property
    def on_break(self) -> bool:
        return self.break_start is not None and self.break_end is None

    @property
    def phase(self) -> AttendancePhase:
        if self.clock_in is None:
            return AttendancePhase.NOT_STARTED
        if self.clock_out is not None:
            return AttendancePhase.DONE
        if self.on_break:
            return AttendancePhase.ON_BREAK
        return AttendancePhase.WORKING

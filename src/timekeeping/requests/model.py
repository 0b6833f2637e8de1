from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import ClassVar, Optional

from ..core.enums import LeaveType, RequestKind, RequestStatus


@dataclass(frozen=True)
class LeaveRequest:
    """Employee request for approved absence over an inclusive date range."""

    kind: ClassVar[RequestKind] = RequestKind.LEAVE

    request_id: int
    employee_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str
    status: RequestStatus
    created_at: datetime
    approver_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING


@dataclass(frozen=True)
class TimeModificationRequest:
    """Employee request to retroactively correct one day's clock-in/out.

    ``original_clock_in``/``original_clock_out`` are the record's values when
    the request was created, kept for audit.
    """

    kind: ClassVar[RequestKind] = RequestKind.TIME_MODIFICATION

    request_id: int
    employee_id: int
    work_date: date
    original_clock_in: Optional[datetime]
    original_clock_out: Optional[datetime]
    requested_clock_in: Optional[datetime]
    requested_clock_out: Optional[datetime]
    reason: str
    status: RequestStatus
    created_at: datetime
    approver_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING


@dataclass(frozen=True)
class LeaveChanges:
    """Fields an employee may change on a pending leave request (None = keep)."""

    leave_type: Optional[LeaveType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class TimeModificationChanges:
    requested_clock_in: Optional[datetime] = None
    requested_clock_out: Optional[datetime] = None
    reason: Optional[str] = None

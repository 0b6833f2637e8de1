from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import LeaveType, RequestStatus
from .model import LeaveRequest, TimeModificationRequest


class LeaveRequestRepository(Protocol):
    def get(self, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def list_overlapping(
        self,
        employee_id: int,
        *,
        start_date: date,
        end_date: date,
        statuses: Sequence[RequestStatus],
    ) -> Sequence[LeaveRequest]:
        """Requests of the employee whose [start, end] intersects the given span."""

        raise NotImplementedError

    def list_for_employee(
        self,
        employee_id: int,
        *,
        status: Optional[RequestStatus] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def list_for_manager(
        self,
        manager_id: int,
        *,
        status: Optional[RequestStatus] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def count_for_manager(self, manager_id: int, *, status: RequestStatus) -> int:
        raise NotImplementedError

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
        raise NotImplementedError

    def update(self, request: LeaveRequest) -> bool:
        raise NotImplementedError

    def delete(self, request_id: int) -> bool:
        raise NotImplementedError


class TimeModificationRequestRepository(Protocol):
    def get(self, request_id: int) -> Optional[TimeModificationRequest]:
        raise NotImplementedError

    def list_for_date(
        self,
        employee_id: int,
        work_date: date,
        *,
        statuses: Sequence[RequestStatus],
    ) -> Sequence[TimeModificationRequest]:
        raise NotImplementedError

    def list_for_employee(
        self,
        employee_id: int,
        *,
        status: Optional[RequestStatus] = None,
        limit: int = 200,
    ) -> Sequence[TimeModificationRequest]:
        raise NotImplementedError

    def list_for_manager(
        self,
        manager_id: int,
        *,
        status: Optional[RequestStatus] = None,
        limit: int = 200,
    ) -> Sequence[TimeModificationRequest]:
        raise NotImplementedError

    def count_for_manager(self, manager_id: int, *, status: RequestStatus) -> int:
        raise NotImplementedError

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
        raise NotImplementedError

    def update(self, request: TimeModificationRequest) -> bool:
        raise NotImplementedError

    def delete(self, request_id: int) -> bool:
        raise NotImplementedError

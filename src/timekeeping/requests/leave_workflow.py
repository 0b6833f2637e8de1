from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_local, overlap_days
from ..common.validators import require_non_empty
from ..core.enums import ACTIVE_REQUEST_STATUSES, LeaveType, RequestKind, RequestStatus
from ..core.exceptions import BusinessRuleViolation, StateConflictError
from ..core.policy import RulePolicy
from ..employees.authority import ApprovalAuthority
from ..validation.rules import validate_leave_input, validate_leave_request
from .guards import require_authority, require_found, require_owner, require_pending, require_rejection_reason
from .model import LeaveChanges, LeaveRequest
from .repository import LeaveRequestRepository

logger = logging.getLogger(__name__)


class LeaveRequestWorkflow:
    kind = RequestKind.LEAVE

    def __init__(
        self,
        leaves: LeaveRequestRepository,
        authority: ApprovalAuthority,
        *,
        policy: Optional[RulePolicy] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._leaves = leaves
        self._authority = authority
        self._policy = policy or RulePolicy()
        self._clock = clock

    def create(
        self,
        employee_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        reason: str,
    ) -> LeaveRequest:
        reason = validate_leave_input(leave_type=leave_type, start_date=start_date, end_date=end_date, reason=reason)
        self._check_rules(employee_id, leave_type, start_date, end_date)

        created_at = self._clock()
        request_id = self._leaves.create(
            employee_id=int(employee_id),
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            created_at=created_at,
        )
        logger.info("Created leave request %s for employee %s (%s to %s)", request_id, employee_id, start_date, end_date)
        return LeaveRequest(
            request_id=request_id,
            employee_id=int(employee_id),
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            status=RequestStatus.PENDING,
            created_at=created_at,
        )

    def approve(self, request_id: int, approver_id: int) -> LeaveRequest:
        request = self.get(request_id)
        require_pending(request)
        require_authority(self._authority, request, approver_id)

        now = self._clock()
        if request.start_date < now.date():
            raise BusinessRuleViolation("Cannot approve leave that has already started", rule="leave.approval_past")

        approved = replace(
            request,
            status=RequestStatus.APPROVED,
            approver_id=int(approver_id),
            approved_at=now,
            rejection_reason=None,
        )
        self._save(approved)
        logger.info("Approved leave request %s by %s", request_id, approver_id)
        return approved

    def reject(self, request_id: int, approver_id: int, reason: str) -> LeaveRequest:
        request = self.get(request_id)
        require_pending(request)
        require_authority(self._authority, request, approver_id)
        reason = require_rejection_reason(reason)

        rejected = replace(
            request,
            status=RequestStatus.REJECTED,
            approver_id=int(approver_id),
            approved_at=self._clock(),
            rejection_reason=reason,
        )
        self._save(rejected)
        logger.info("Rejected leave request %s by %s: %s", request_id, approver_id, reason)
        return rejected

    def update(self, request_id: int, employee_id: int, changes: LeaveChanges) -> LeaveRequest:
        request = self.get(request_id)
        require_owner(request, employee_id)
        require_pending(request)

        leave_type = changes.leave_type or request.leave_type
        start_date = changes.start_date or request.start_date
        end_date = changes.end_date or request.end_date
        reason = request.reason
        if changes.reason is not None:
            reason = require_non_empty(changes.reason, "Reason")

        if (leave_type, start_date, end_date) != (request.leave_type, request.start_date, request.end_date):
            validate_leave_input(leave_type=leave_type, start_date=start_date, end_date=end_date, reason=reason)
            self._check_rules(request.employee_id, leave_type, start_date, end_date, exclude_id=request.request_id)

        updated = replace(request, leave_type=leave_type, start_date=start_date, end_date=end_date, reason=reason)
        self._save(updated)
        logger.info("Updated leave request %s by %s", request_id, employee_id)
        return updated

    def cancel(self, request_id: int, employee_id: int) -> None:
        request = self.get(request_id)
        require_owner(request, employee_id)
        require_pending(request)

        if not self._leaves.delete(request.request_id):
            raise StateConflictError("Request is no longer pending")
        logger.info("Cancelled leave request %s by %s", request_id, employee_id)

    # -------- Reads --------
    def get(self, request_id: int) -> LeaveRequest:
        return require_found(self._leaves.get(int(request_id)), request_id)

    def list_for_employee(self, employee_id: int, *, status: Optional[RequestStatus] = None) -> Sequence[LeaveRequest]:
        return self._leaves.list_for_employee(int(employee_id), status=status)

    def list_pending_for_manager(self, manager_id: int) -> Sequence[LeaveRequest]:
        return self._leaves.list_for_manager(int(manager_id), status=RequestStatus.PENDING)

    def count_pending_for_manager(self, manager_id: int) -> int:
        return self._leaves.count_for_manager(int(manager_id), status=RequestStatus.PENDING)

    # -------- Helpers --------
    def _check_rules(
        self,
        employee_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        *,
        exclude_id: Optional[int] = None,
    ) -> None:
        overlapping = [
            r
            for r in self._leaves.list_overlapping(
                int(employee_id),
                start_date=start_date,
                end_date=end_date,
                statuses=ACTIVE_REQUEST_STATUSES,
            )
            if r.request_id != exclude_id
        ]
        validate_leave_request(
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            overlapping=overlapping,
            used_annual_days=self._used_annual_days(int(employee_id), start_date.year),
            today=self._clock().date(),
            policy=self._policy,
        )

    def _used_annual_days(self, employee_id: int, year: int) -> int:
        year_start, year_end = date(year, 1, 1), date(year, 12, 31)
        approved = self._leaves.list_overlapping(
            employee_id,
            start_date=year_start,
            end_date=year_end,
            statuses=(RequestStatus.APPROVED,),
        )
        return sum(
            overlap_days(r.start_date, r.end_date, year_start, year_end)
            for r in approved
            if r.leave_type == LeaveType.ANNUAL
        )

    def _save(self, request: LeaveRequest) -> None:
        # Repositories only update rows that are still PENDING.
        if not self._leaves.update(request):
            raise StateConflictError("Request is no longer pending")

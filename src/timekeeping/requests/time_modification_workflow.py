from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Optional, Sequence

from ..attendance.engine import TimeRecordEngine
from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.enums import ACTIVE_REQUEST_STATUSES, RequestKind, RequestStatus
from ..core.exceptions import StateConflictError
from ..core.policy import RulePolicy
from ..core.transaction import TransactionManager
from ..employees.authority import ApprovalAuthority
from ..validation.rules import validate_time_modification, validate_time_modification_input
from .guards import require_authority, require_found, require_owner, require_pending, require_rejection_reason
from .model import TimeModificationChanges, TimeModificationRequest
from .repository import LeaveRequestRepository, TimeModificationRequestRepository

logger = logging.getLogger(__name__)


class TimeModificationWorkflow:
    """Lifecycle of retroactive clock-in/out corrections.

    Approval applies the correction through the TimeRecordEngine and marks the
    request APPROVED inside one transaction.
    """

    kind = RequestKind.TIME_MODIFICATION

    def __init__(
        self,
        requests: TimeModificationRequestRepository,
        leaves: LeaveRequestRepository,
        authority: ApprovalAuthority,
        engine: TimeRecordEngine,
        transactions: TransactionManager,
        *,
        policy: Optional[RulePolicy] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._requests = requests
        self._leaves = leaves
        self._authority = authority
        self._engine = engine
        self._transactions = transactions
        self._policy = policy or RulePolicy()
        self._clock = clock

    def create(
        self,
        employee_id: int,
        work_date: date,
        requested_clock_in: Optional[datetime],
        requested_clock_out: Optional[datetime],
        reason: str,
    ) -> TimeModificationRequest:
        reason = validate_time_modification_input(
            work_date=work_date,
            requested_clock_in=requested_clock_in,
            requested_clock_out=requested_clock_out,
            reason=reason,
        )
        self._check_rules(int(employee_id), work_date, requested_clock_in, requested_clock_out)

        current = self._engine.get_record(int(employee_id), work_date)
        original_in = current.clock_in if current else None
        original_out = current.clock_out if current else None

        created_at = self._clock()
        request_id = self._requests.create(
            employee_id=int(employee_id),
            work_date=work_date,
            original_clock_in=original_in,
            original_clock_out=original_out,
            requested_clock_in=requested_clock_in,
            requested_clock_out=requested_clock_out,
            reason=reason,
            created_at=created_at,
        )
        logger.info("Created time modification request %s for employee %s on %s", request_id, employee_id, work_date)
        return TimeModificationRequest(
            request_id=request_id,
            employee_id=int(employee_id),
            work_date=work_date,
            original_clock_in=original_in,
            original_clock_out=original_out,
            requested_clock_in=requested_clock_in,
            requested_clock_out=requested_clock_out,
            reason=reason,
            status=RequestStatus.PENDING,
            created_at=created_at,
        )

    def approve(self, request_id: int, approver_id: int) -> TimeModificationRequest:
        request = self.get(request_id)
        require_pending(request)
        require_authority(self._authority, request, approver_id)

        now = self._clock()
        approved = replace(
            request,
            status=RequestStatus.APPROVED,
            approver_id=int(approver_id),
            approved_at=now,
            rejection_reason=None,
        )

        try:
            with self._transactions.transaction():
                self._engine.apply_correction(
                    request.employee_id,
                    request.work_date,
                    clock_in=request.requested_clock_in,
                    clock_out=request.requested_clock_out,
                    as_of=now,
                )
                self._save(approved)
        except Exception:
            logger.exception("Approval of time modification request %s rolled back", request_id)
            raise

        logger.info("Approved time modification request %s by %s", request_id, approver_id)
        return approved

    def reject(self, request_id: int, approver_id: int, reason: str) -> TimeModificationRequest:
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
        logger.info("Rejected time modification request %s by %s: %s", request_id, approver_id, reason)
        return rejected

    def update(self, request_id: int, employee_id: int, changes: TimeModificationChanges) -> TimeModificationRequest:
        request = self.get(request_id)
        require_owner(request, employee_id)
        require_pending(request)

        requested_in = changes.requested_clock_in or request.requested_clock_in
        requested_out = changes.requested_clock_out or request.requested_clock_out
        reason = request.reason
        if changes.reason is not None:
            reason = require_non_empty(changes.reason, "Reason")

        validate_time_modification_input(
            work_date=request.work_date,
            requested_clock_in=requested_in,
            requested_clock_out=requested_out,
            reason=reason,
        )
        self._check_rules(request.employee_id, request.work_date, requested_in, requested_out, exclude_id=request.request_id)

        updated = replace(request, requested_clock_in=requested_in, requested_clock_out=requested_out, reason=reason)
        self._save(updated)
        logger.info("Updated time modification request %s by %s", request_id, employee_id)
        return updated

    def cancel(self, request_id: int, employee_id: int) -> None:
        request = self.get(request_id)
        require_owner(request, employee_id)
        require_pending(request)

        if not self._requests.delete(request.request_id):
            raise StateConflictError("Request is no longer pending")
        logger.info("Cancelled time modification request %s by %s", request_id, employee_id)

    # -------- Reads --------
    def get(self, request_id: int) -> TimeModificationRequest:
        return require_found(self._requests.get(int(request_id)), request_id)

    def list_for_employee(
        self,
        employee_id: int,
        *,
        status: Optional[RequestStatus] = None,
    ) -> Sequence[TimeModificationRequest]:
        return self._requests.list_for_employee(int(employee_id), status=status)

    def list_pending_for_manager(self, manager_id: int) -> Sequence[TimeModificationRequest]:
        return self._requests.list_for_manager(int(manager_id), status=RequestStatus.PENDING)

    def count_pending_for_manager(self, manager_id: int) -> int:
        return self._requests.count_for_manager(int(manager_id), status=RequestStatus.PENDING)

    # -------- Helpers --------
    def _check_rules(
        self,
        employee_id: int,
        work_date: date,
        requested_clock_in: Optional[datetime],
        requested_clock_out: Optional[datetime],
        *,
        exclude_id: Optional[int] = None,
    ) -> None:
        active = [
            r
            for r in self._requests.list_for_date(employee_id, work_date, statuses=ACTIVE_REQUEST_STATUSES)
            if r.request_id != exclude_id
        ]
        on_leave = bool(
            self._leaves.list_overlapping(
                employee_id,
                start_date=work_date,
                end_date=work_date,
                statuses=(RequestStatus.APPROVED,),
            )
        )
        validate_time_modification(
            work_date=work_date,
            requested_clock_in=requested_clock_in,
            requested_clock_out=requested_clock_out,
            active_requests=active,
            on_approved_leave=on_leave,
            today=self._clock().date(),
            policy=self._policy,
        )

    def _save(self, request: TimeModificationRequest) -> None:
        if not self._requests.update(request):
            raise StateConflictError("Request is no longer pending")

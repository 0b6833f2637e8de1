from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Protocol, Sequence, Union

from ..core.enums import RequestKind
from ..core.exceptions import DomainError, ValidationError
from ..requests.model import LeaveRequest, TimeModificationRequest

logger = logging.getLogger(__name__)

ApprovableRequest = Union[LeaveRequest, TimeModificationRequest]


class ApprovableWorkflow(Protocol):
    """Capability shared by every request workflow that a manager decides on."""

    kind: RequestKind

    def approve(self, request_id: int, approver_id: int) -> ApprovableRequest:
        raise NotImplementedError

    def reject(self, request_id: int, approver_id: int, reason: str) -> ApprovableRequest:
        raise NotImplementedError

    def list_pending_for_manager(self, manager_id: int) -> Sequence[ApprovableRequest]:
        raise NotImplementedError

    def count_pending_for_manager(self, manager_id: int) -> int:
        raise NotImplementedError


@dataclass(frozen=True)
class RequestRef:
    kind: RequestKind
    request_id: int

    @classmethod
    def of(cls, request: ApprovableRequest) -> "RequestRef":
        return cls(kind=request.kind, request_id=request.request_id)


@dataclass(frozen=True)
class Rejection:
    ref: RequestRef
    reason: str


@dataclass(frozen=True)
class BulkFailure:
    ref: RequestRef
    message: str


@dataclass
class BulkResult:
    succeeded: list[RequestRef] = field(default_factory=list)
    failed: list[BulkFailure] = field(default_factory=list)


@dataclass(frozen=True)
class ApprovalStatistics:
    pending_leave_requests: int
    pending_time_modification_requests: int

    @property
    def total_pending_requests(self) -> int:
        return self.pending_leave_requests + self.pending_time_modification_requests


class ApprovalService:
    """Single entry point for managers deciding on any kind of request."""

    def __init__(self, workflows: Iterable[ApprovableWorkflow]):
        self._workflows: dict[RequestKind, ApprovableWorkflow] = {wf.kind: wf for wf in workflows}

    def _workflow(self, kind: RequestKind) -> ApprovableWorkflow:
        workflow = self._workflows.get(kind)
        if workflow is None:
            raise ValidationError(f"Unsupported request kind: {kind}")
        return workflow

    def approve(self, ref: RequestRef, approver_id: int) -> ApprovableRequest:
        return self._workflow(ref.kind).approve(ref.request_id, approver_id)

    def reject(self, ref: RequestRef, approver_id: int, reason: str) -> ApprovableRequest:
        return self._workflow(ref.kind).reject(ref.request_id, approver_id, reason)

    def bulk_approve(self, refs: Iterable[RequestRef], approver_id: int) -> BulkResult:
        """Approve each request independently; domain failures do not stop the batch."""
        result = BulkResult()
        for ref in refs:
            try:
                self.approve(ref, approver_id)
            except DomainError as e:
                logger.warning("Bulk approve skipped %s %s: %s", ref.kind.value, ref.request_id, e)
                result.failed.append(BulkFailure(ref=ref, message=str(e)))
            else:
                result.succeeded.append(ref)
        logger.info("Bulk approved %s of %s requests by %s", len(result.succeeded), len(result.succeeded) + len(result.failed), approver_id)
        return result

    def bulk_reject(self, rejections: Iterable[Rejection], approver_id: int) -> BulkResult:
        result = BulkResult()
        for item in rejections:
            try:
                self.reject(item.ref, approver_id, item.reason)
            except DomainError as e:
                logger.warning("Bulk reject skipped %s %s: %s", item.ref.kind.value, item.ref.request_id, e)
                result.failed.append(BulkFailure(ref=item.ref, message=str(e)))
            else:
                result.succeeded.append(item.ref)
        logger.info("Bulk rejected %s of %s requests by %s", len(result.succeeded), len(result.succeeded) + len(result.failed), approver_id)
        return result

    def pending_for_manager(self, manager_id: int) -> list[ApprovableRequest]:
        pending: list[ApprovableRequest] = []
        for workflow in self._workflows.values():
            pending.extend(workflow.list_pending_for_manager(manager_id))
        pending.sort(key=lambda r: r.created_at, reverse=True)
        return pending

    def statistics_for_manager(self, manager_id: int) -> ApprovalStatistics:
        return ApprovalStatistics(
            pending_leave_requests=self._count(RequestKind.LEAVE, manager_id),
            pending_time_modification_requests=self._count(RequestKind.TIME_MODIFICATION, manager_id),
        )

    def _count(self, kind: RequestKind, manager_id: int) -> int:
        workflow = self._workflows.get(kind)
        return workflow.count_pending_for_manager(manager_id) if workflow else 0

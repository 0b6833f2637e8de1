"""Checks shared by the leave and time modification workflows."""

from __future__ import annotations

from typing import Optional, Protocol, Union

from ..common.validators import require_non_empty
from ..core.exceptions import AuthorizationError, NotFoundError, StateConflictError
from ..employees.authority import ApprovalAuthority
from .model import LeaveRequest, TimeModificationRequest

AnyRequest = Union[LeaveRequest, TimeModificationRequest]


class _Owned(Protocol):
    employee_id: int


def require_found(request: Optional[AnyRequest], request_id: int) -> AnyRequest:
    if request is None:
        raise NotFoundError(f"Request {request_id} not found")
    return request


def require_pending(request: AnyRequest) -> None:
    if not request.is_pending:
        raise StateConflictError(f"Request is not pending (status: {request.status.value})")


def require_owner(request: _Owned, employee_id: int) -> None:
    if int(request.employee_id) != int(employee_id):
        raise AuthorizationError("Only the requesting employee can change this request")


def require_authority(authority: ApprovalAuthority, request: _Owned, approver_id: int) -> None:
    """Approver must be the requester's manager.

    A missing manager and a different manager fail identically so the error
    never reveals who the correct approver is.
    """
    manager_id = authority.manager_of(int(request.employee_id))
    if manager_id is None or int(manager_id) != int(approver_id):
        raise AuthorizationError("Not authorized to decide this request")


def require_rejection_reason(reason: Optional[str]) -> str:
    return require_non_empty(reason, "Rejection reason")

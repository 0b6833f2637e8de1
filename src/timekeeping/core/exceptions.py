from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for expected, deterministic failures of a core operation."""


class ValidationError(DomainError):
    """Raised when input data is malformed or missing."""


class StateConflictError(DomainError):
    """Raised when an action is invalid for the entity's current state."""


class AuthorizationError(DomainError):
    """Raised when the acting employee lacks authority for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""


class BusinessRuleViolation(DomainError):
    """Raised when a specific policy rule rejects an action.

    ``rule`` is a stable identifier of the rule that failed (e.g.
    ``"leave.weekend"``) so callers can react without parsing the message.
    """

    def __init__(self, message: str, *, rule: Optional[str] = None):
        super().__init__(message)
        self.rule = rule

from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Attendance status stored on a time record."""

    PRESENT = "PRESENT"
    LATE = "LATE"
    ABSENT = "ABSENT"
    EARLY_LEAVE = "EARLY_LEAVE"


class AttendancePhase(str, Enum):
    """Position of a time record in the daily session state machine."""

    NOT_STARTED = "NOT_STARTED"
    WORKING = "WORKING"
    ON_BREAK = "ON_BREAK"
    DONE = "DONE"


class RequestStatus(str, Enum):
    """Approval status of leave and time modification requests."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# Requests in these states block new overlapping/duplicate requests.
ACTIVE_REQUEST_STATUSES = (RequestStatus.PENDING, RequestStatus.APPROVED)


class RequestKind(str, Enum):
    LEAVE = "LEAVE"
    TIME_MODIFICATION = "TIME_MODIFICATION"


class LeaveType(str, Enum):
    ANNUAL = "ANNUAL"
    SPECIAL = "SPECIAL"
    SICK = "SICK"
    MATERNITY = "MATERNITY"
    PATERNITY = "PATERNITY"
    PAID = "PAID"
    PERSONAL = "PERSONAL"


class AlertKind(str, Enum):
    LATE = "LATE"
    ABSENT = "ABSENT"
    MISSING_CLOCK_OUT = "MISSING_CLOCK_OUT"
    OVERTIME = "OVERTIME"

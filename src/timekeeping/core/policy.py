from __future__ import annotations

from dataclasses import dataclass, field
from datetime import time

from .constants import (
    DEFAULT_ANNUAL_LEAVE_DAYS,
    DEFAULT_LATE_GRACE_MINUTES,
    EARLIEST_CLOCK_IN,
    LATEST_CLOCK_IN,
    MAX_CORRECTION_AGE_DAYS,
    MAX_CORRECTION_HOURS,
    MIN_WORKING_MINUTES,
    STANDARD_START_TIME,
)
from .enums import LeaveType


def _default_notice_days() -> dict[LeaveType, int]:
    return {
        LeaveType.ANNUAL: 2,
        LeaveType.SPECIAL: 2,
        LeaveType.SICK: 0,
        LeaveType.MATERNITY: 14,
        LeaveType.PATERNITY: 14,
    }


def _default_max_span_days() -> dict[LeaveType, int]:
    return {
        LeaveType.ANNUAL: 10,
        LeaveType.SICK: 7,
        LeaveType.SPECIAL: 5,
    }


@dataclass(frozen=True)
class RulePolicy:
    """Tunable values used by the rule validator and the time record engine.

    Leave types missing from ``notice_days``/``max_span_days`` have no such rule.
    """

    standard_start_time: time = STANDARD_START_TIME
    late_grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES
    earliest_clock_in: time = EARLIEST_CLOCK_IN
    latest_clock_in: time = LATEST_CLOCK_IN
    min_working_minutes: int = MIN_WORKING_MINUTES
    max_correction_age_days: int = MAX_CORRECTION_AGE_DAYS
    max_correction_hours: int = MAX_CORRECTION_HOURS
    annual_leave_days: int = DEFAULT_ANNUAL_LEAVE_DAYS
    notice_days: dict[LeaveType, int] = field(default_factory=_default_notice_days)
    max_span_days: dict[LeaveType, int] = field(default_factory=_default_max_span_days)

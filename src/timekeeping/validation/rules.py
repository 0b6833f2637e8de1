"""Business rules gating clock actions and request creation.

Every check is a plain function that receives the data it needs (the current
record, the relevant requests, ``today``, the policy). Callers fetch that data
from the repositories first. State mismatches raise StateConflictError,
malformed input raises ValidationError, and policy failures raise
BusinessRuleViolation tagged with the rule identifier.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..attendance.model import TimeRecord
from ..common.datetime_utils import is_weekend, iter_days, span_days
from ..common.validators import require_non_empty, require_present
from ..core.enums import LeaveType
from ..core.exceptions import BusinessRuleViolation, StateConflictError, ValidationError
from ..core.policy import RulePolicy
from ..requests.model import LeaveRequest, TimeModificationRequest

logger = logging.getLogger(__name__)


# -------- Clock-in / clock-out --------
def validate_clock_in(
    clock_in: datetime,
    *,
    existing: Optional[TimeRecord],
    on_approved_leave: bool,
    today: date,
    policy: RulePolicy,
) -> None:
    work_date = clock_in.date()
    logger.debug("Validating clock-in at %s", clock_in)

    if is_weekend(work_date):
        raise BusinessRuleViolation("Cannot clock in on a weekend", rule="clock_in.weekend")

    if existing is not None and existing.clock_in is not None:
        raise StateConflictError("Already clocked in for this date")

    if existing is not None and existing.clock_out is not None and clock_in >= existing.clock_out:
        raise BusinessRuleViolation(
            "Clock-in must be before the recorded clock-out",
            rule="clock_in.after_clock_out",
        )

    if on_approved_leave:
        raise BusinessRuleViolation("Cannot clock in on a day of approved leave", rule="clock_in.on_leave")

    moment = clock_in.time()
    if moment < policy.earliest_clock_in or moment > policy.latest_clock_in:
        raise BusinessRuleViolation(
            f"Clock-in is only allowed between {policy.earliest_clock_in:%H:%M} and {policy.latest_clock_in:%H:%M}",
            rule="clock_in.hours",
        )

    if work_date > today:
        raise BusinessRuleViolation("Cannot clock in for a future date", rule="clock_in.future_date")


def validate_clock_out(
    clock_out: datetime,
    *,
    existing: Optional[TimeRecord],
    today: date,
    policy: RulePolicy,
) -> None:
    logger.debug("Validating clock-out at %s", clock_out)

    if existing is None or existing.clock_in is None:
        raise StateConflictError("Cannot clock out: no clock-in recorded for this date")
    if existing.clock_out is not None:
        raise StateConflictError("Already clocked out for this date")

    if clock_out <= existing.clock_in:
        raise BusinessRuleViolation("Clock-out must be after clock-in", rule="clock_out.before_clock_in")

    if clock_out - existing.clock_in < timedelta(minutes=policy.min_working_minutes):
        raise BusinessRuleViolation(
            f"At least {policy.min_working_minutes} minutes must be worked before clocking out",
            rule="clock_out.min_duration",
        )

    last_break_mark = existing.break_end or existing.break_start
    if last_break_mark is not None and clock_out < last_break_mark:
        raise BusinessRuleViolation("Clock-out cannot be before the recorded break", rule="clock_out.before_break")

    if clock_out.date() > today:
        raise BusinessRuleViolation("Cannot clock out for a future date", rule="clock_out.future_date")


# -------- Leave requests --------
def validate_leave_input(
    *,
    leave_type: Optional[LeaveType],
    start_date: Optional[date],
    end_date: Optional[date],
    reason: Optional[str],
) -> str:
    """Check required fields and return the normalized reason."""
    require_present(leave_type, "Leave type")
    require_present(start_date, "Start date")
    require_present(end_date, "End date")
    if start_date > end_date:
        raise ValidationError("Start date must not be after end date")
    return require_non_empty(reason, "Reason")


def validate_no_weekend_in_span(start_date: date, end_date: date) -> None:
    for day in iter_days(start_date, end_date):
        if is_weekend(day):
            raise BusinessRuleViolation("Leave span must not include a weekend day", rule="leave.weekend")


def validate_no_overlap(overlapping: Sequence[LeaveRequest]) -> None:
    """``overlapping`` holds the employee's active leave requests intersecting the span."""
    if overlapping:
        raise BusinessRuleViolation(
            "A pending or approved leave request already covers part of this period",
            rule="leave.overlap",
        )


def validate_advance_notice(leave_type: LeaveType, start_date: date, *, today: date, policy: RulePolicy) -> None:
    required = policy.notice_days.get(leave_type)
    if required is None:
        return
    if (start_date - today).days < required:
        raise BusinessRuleViolation(
            f"{leave_type.value.title()} leave must be requested at least {required} days in advance",
            rule="leave.advance_notice",
        )


def validate_max_span(leave_type: LeaveType, start_date: date, end_date: date, *, policy: RulePolicy) -> None:
    limit = policy.max_span_days.get(leave_type)
    if limit is None:
        return
    if span_days(start_date, end_date) > limit:
        raise BusinessRuleViolation(
            f"{leave_type.value.title()} leave cannot exceed {limit} consecutive days",
            rule="leave.max_span",
        )


def validate_annual_balance(
    leave_type: LeaveType,
    start_date: date,
    end_date: date,
    *,
    used_days: int,
    policy: RulePolicy,
) -> None:
    if leave_type != LeaveType.ANNUAL:
        return
    requested = span_days(start_date, end_date)
    if used_days + requested > policy.annual_leave_days:
        raise BusinessRuleViolation(
            "Insufficient annual leave balance "
            f"(used: {used_days}, requested: {requested}, entitlement: {policy.annual_leave_days})",
            rule="leave.balance",
        )


def validate_not_in_past(start_date: date, *, today: date) -> None:
    if start_date < today:
        raise BusinessRuleViolation("Leave cannot start in the past", rule="leave.past_date")


def validate_leave_request(
    *,
    leave_type: LeaveType,
    start_date: date,
    end_date: date,
    overlapping: Sequence[LeaveRequest],
    used_annual_days: int,
    today: date,
    policy: RulePolicy,
) -> None:
    validate_no_weekend_in_span(start_date, end_date)
    validate_no_overlap(overlapping)
    validate_advance_notice(leave_type, start_date, today=today, policy=policy)
    validate_max_span(leave_type, start_date, end_date, policy=policy)
    validate_annual_balance(leave_type, start_date, end_date, used_days=used_annual_days, policy=policy)
    validate_not_in_past(start_date, today=today)


# -------- Time modification requests --------
def validate_time_modification_input(
    *,
    work_date: Optional[date],
    requested_clock_in: Optional[datetime],
    requested_clock_out: Optional[datetime],
    reason: Optional[str],
) -> str:
    """Check required fields and return the normalized reason."""
    require_present(work_date, "Target date")
    if requested_clock_in is None and requested_clock_out is None:
        raise ValidationError("Either a clock-in or a clock-out time is required")
    if requested_clock_in is not None and requested_clock_in.date() != work_date:
        raise ValidationError("Requested clock-in must fall on the target date")
    if requested_clock_out is not None and requested_clock_out.date() != work_date:
        raise ValidationError("Requested clock-out must fall on the target date")
    return require_non_empty(reason, "Reason")


def validate_correction_window(
    requested_clock_in: datetime,
    requested_clock_out: datetime,
    *,
    policy: RulePolicy,
) -> None:
    if requested_clock_in >= requested_clock_out:
        raise BusinessRuleViolation(
            "Requested clock-in must be before requested clock-out",
            rule="time_modification.order",
        )
    if requested_clock_out - requested_clock_in < timedelta(minutes=policy.min_working_minutes):
        raise BusinessRuleViolation(
            f"Requested working time must be at least {policy.min_working_minutes} minutes",
            rule="time_modification.min_duration",
        )
    if requested_clock_out - requested_clock_in > timedelta(hours=policy.max_correction_hours):
        raise BusinessRuleViolation(
            f"Requested working time cannot exceed {policy.max_correction_hours} hours",
            rule="time_modification.max_duration",
        )


def validate_time_modification(
    *,
    work_date: date,
    requested_clock_in: Optional[datetime],
    requested_clock_out: Optional[datetime],
    active_requests: Sequence[TimeModificationRequest],
    on_approved_leave: bool,
    today: date,
    policy: RulePolicy,
) -> None:
    if work_date > today:
        raise BusinessRuleViolation("Cannot correct a future date", rule="time_modification.future_date")

    if work_date < today - timedelta(days=policy.max_correction_age_days):
        raise BusinessRuleViolation(
            f"Cannot correct dates older than {policy.max_correction_age_days} days",
            rule="time_modification.too_old",
        )

    if active_requests:
        raise BusinessRuleViolation(
            "A pending or approved correction already exists for this date",
            rule="time_modification.duplicate",
        )

    if is_weekend(work_date):
        raise BusinessRuleViolation("Cannot correct a weekend date", rule="time_modification.weekend")

    if requested_clock_in is not None and requested_clock_out is not None:
        validate_correction_window(requested_clock_in, requested_clock_out, policy=policy)

    if on_approved_leave:
        raise BusinessRuleViolation(
            "Cannot correct a date covered by approved leave",
            rule="time_modification.on_leave",
        )

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Optional, Sequence

from ..alerts.emitter import AlertEmitter
from ..common.datetime_utils import now_local
from ..core.enums import AlertKind, AttendanceStatus, RequestStatus
from ..core.exceptions import BusinessRuleViolation, StateConflictError, ValidationError
from ..core.policy import RulePolicy
from ..requests.repository import LeaveRequestRepository
from ..validation.rules import validate_clock_in, validate_clock_out
from .factory import AttendanceStrategyFactory
from .model import TimeRecord
from .repository import TimeRecordRepository

logger = logging.getLogger(__name__)


class TimeRecordEngine:
    """Owns the daily session state machine.

    NOT_STARTED -> clock_in -> WORKING -> start_break -> ON_BREAK -> end_break
    -> WORKING -> clock_out -> DONE. Time records are only ever written here,
    and each write builds a new TimeRecord so ``total_hours`` is recomputed.
    """

    def __init__(
        self,
        records: TimeRecordRepository,
        leaves: LeaveRequestRepository,
        alerts: AlertEmitter,
        *,
        policy: Optional[RulePolicy] = None,
        strategy_factory: Optional[AttendanceStrategyFactory] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._records = records
        self._leaves = leaves
        self._alerts = alerts
        self._policy = policy or RulePolicy()
        self._factory = strategy_factory or AttendanceStrategyFactory(policy=self._policy)
        self._clock = clock

    # -------- State transitions --------
    def clock_in(self, employee_id: int, ts: datetime) -> TimeRecord:
        work_date = ts.date()
        existing = self._records.get_for_employee_and_date(employee_id, work_date)

        validate_clock_in(
            ts,
            existing=existing,
            on_approved_leave=self._on_approved_leave(employee_id, work_date),
            today=self._clock().date(),
            policy=self._policy,
        )

        decision = self._factory.for_clock_in(clock_in=ts).decide_clock_in(clock_in=ts)

        if existing is None:
            record = TimeRecord(
                employee_id=employee_id,
                work_date=work_date,
                clock_in=ts,
                status=decision.status,
                notes=decision.note,
                as_of=ts,
            )
            record = self._insert(record, as_of=ts)
        else:
            record = replace(
                existing,
                clock_in=ts,
                status=decision.status,
                notes=decision.note or existing.notes,
                as_of=ts,
            )
            self._save(record, previous=existing)

        logger.info("Clock-in recorded for employee %s at %s (%s)", employee_id, ts, record.status.value)

        if record.status == AttendanceStatus.LATE:
            self._emit(AlertKind.LATE, record, {"clock_in": ts.isoformat()})
        return record

    def clock_out(self, employee_id: int, ts: datetime) -> TimeRecord:
        existing = self._records.get_for_employee_and_date(employee_id, ts.date())

        validate_clock_out(ts, existing=existing, today=self._clock().date(), policy=self._policy)

        break_end = existing.break_end
        if existing.on_break:
            # Open break is closed at clock-out instead of rejecting the action.
            break_end = ts
            logger.warning("Auto-ended open break for employee %s during clock-out at %s", employee_id, ts)

        record = replace(existing, clock_out=ts, break_end=break_end, as_of=ts)
        self._save(record, previous=existing)
        logger.info("Clock-out recorded for employee %s at %s (%s h)", employee_id, ts, record.total_hours)
        return record

    def start_break(self, employee_id: int, ts: datetime) -> TimeRecord:
        existing = self._require_working(employee_id, ts)
        if existing.on_break:
            raise StateConflictError("Already on break")
        if existing.break_start is not None:
            raise StateConflictError("Break already taken for this date")
        if ts < existing.clock_in:
            raise ValidationError("Break cannot start before clock-in")

        record = replace(existing, break_start=ts, as_of=ts)
        self._save(record, previous=existing)
        logger.info("Break started for employee %s at %s", employee_id, ts)
        return record

    def end_break(self, employee_id: int, ts: datetime) -> TimeRecord:
        existing = self._require_working(employee_id, ts)
        if not existing.on_break:
            raise StateConflictError("Not on break")
        if ts < existing.break_start:
            raise ValidationError("Break cannot end before it started")

        record = replace(existing, break_end=ts, as_of=ts)
        self._save(record, previous=existing)
        logger.info("Break ended for employee %s at %s", employee_id, ts)
        return record

    def apply_correction(
        self,
        employee_id: int,
        work_date: date,
        *,
        clock_in: Optional[datetime],
        clock_out: Optional[datetime],
        as_of: datetime,
    ) -> TimeRecord:
        """Overwrite clock-in/out from an approved correction.

        Creates the record when the day has none. Status is re-derived from the
        resulting clock-in, and an open break is closed at the new clock-out.
        """
        existing = self._records.get_for_employee_and_date(employee_id, work_date)
        base = existing or TimeRecord(employee_id=employee_id, work_date=work_date, as_of=as_of)

        new_in = clock_in or base.clock_in
        new_out = clock_out or base.clock_out
        if new_in is not None and new_out is not None and new_out <= new_in:
            raise BusinessRuleViolation("Corrected clock-out must be after clock-in", rule="correction.order")

        break_end = base.break_end
        if base.on_break and new_out is not None:
            break_end = max(new_out, base.break_start)

        decision = self._factory.for_clock_in(clock_in=new_in).decide_clock_in(clock_in=new_in)
        record = replace(
            base,
            clock_in=new_in,
            clock_out=new_out,
            break_end=break_end,
            status=decision.status,
            notes=decision.note,
            as_of=as_of,
        )

        if existing is None:
            record = self._insert(record, as_of=as_of)
        else:
            self._save(record, previous=existing)

        logger.info("Applied correction for employee %s on %s (in=%s, out=%s)", employee_id, work_date, new_in, new_out)
        return record

    # -------- Reads --------
    def get_record(self, employee_id: int, work_date: date) -> Optional[TimeRecord]:
        return self._records.get_for_employee_and_date(employee_id, work_date)

    def list_records(self, employee_id: int, *, start_date: date, end_date: date) -> Sequence[TimeRecord]:
        if start_date > end_date:
            raise ValidationError("Start date must not be after end date")
        return self._records.list_for_employee(employee_id, start_date=start_date, end_date=end_date)

    def list_team_records(self, manager_id: int, *, start_date: date, end_date: date) -> Sequence[TimeRecord]:
        """Records of every employee reporting to ``manager_id`` in the range."""
        if start_date > end_date:
            raise ValidationError("Start date must not be after end date")
        return self._records.list_for_manager(manager_id, start_date=start_date, end_date=end_date)

    # -------- Helpers --------
    def _require_working(self, employee_id: int, ts: datetime) -> TimeRecord:
        existing = self._records.get_for_employee_and_date(employee_id, ts.date())
        if existing is None or existing.clock_in is None:
            raise StateConflictError("No clock-in recorded for this date")
        if existing.clock_out is not None:
            raise StateConflictError("Already clocked out for this date")
        return existing

    def _on_approved_leave(self, employee_id: int, work_date: date) -> bool:
        leaves = self._leaves.list_overlapping(
            employee_id,
            start_date=work_date,
            end_date=work_date,
            statuses=(RequestStatus.APPROVED,),
        )
        return bool(leaves)

    def _insert(self, record: TimeRecord, *, as_of: datetime) -> TimeRecord:
        record_id = self._records.create(record)
        return replace(record, record_id=record_id, as_of=as_of)

    def _save(self, record: TimeRecord, *, previous: TimeRecord) -> None:
        # The store only writes when its timestamps still match what was read.
        if not self._records.update(record, previous=previous):
            raise StateConflictError("Time record was changed by another action")

    def _emit(self, kind: AlertKind, record: TimeRecord, details: dict) -> None:
        try:
            self._alerts.notify(kind, record.employee_id, record.work_date, details)
        except Exception:
            # Alerts are fire-and-forget; the committed clock action stands.
            logger.exception("Failed to emit %s alert for employee %s on %s", kind.value, record.employee_id, record.work_date)

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal

import pytest

from timekeeping.attendance.engine import TimeRecordEngine
from timekeeping.attendance.model import TimeRecord
from timekeeping.core.enums import AlertKind, AttendancePhase, AttendanceStatus
from timekeeping.core.exceptions import BusinessRuleViolation, StateConflictError, ValidationError

from conftest import (
    EMPLOYEE_ID,
    MANAGER_ID,
    OTHER_EMPLOYEE_ID,
    OTHER_MANAGER_ID,
    UNMANAGED_EMPLOYEE_ID,
    FailingAlerts,
)

DAY = date(2024, 1, 15)


def _at(hour: int, minute: int = 0, day: date = DAY) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute)


def test_full_day_is_present_with_nine_hours(engine):
    engine.clock_in(EMPLOYEE_ID, _at(9))
    record = engine.clock_out(EMPLOYEE_ID, _at(18))

    assert record.status == AttendanceStatus.PRESENT
    assert record.total_hours == Decimal("9.00")
    assert record.phase == AttendancePhase.DONE


def test_clock_in_after_grace_is_late_and_alerts(engine, alerts):
    record = engine.clock_in(EMPLOYEE_ID, _at(9, 20))

    assert record.status == AttendanceStatus.LATE
    assert record.notes == "Late clock-in at 09:20"
    assert [a[:3] for a in alerts.sent] == [(AlertKind.LATE, EMPLOYEE_ID, DAY)]


def test_clock_in_at_end_of_grace_is_present(engine, alerts):
    record = engine.clock_in(EMPLOYEE_ID, _at(9, 15))

    assert record.status == AttendanceStatus.PRESENT
    assert alerts.sent == []


def test_break_is_excluded_from_hours(engine):
    engine.clock_in(EMPLOYEE_ID, _at(9))
    engine.start_break(EMPLOYEE_ID, _at(12))
    engine.end_break(EMPLOYEE_ID, _at(13))
    record = engine.clock_out(EMPLOYEE_ID, _at(18))

    assert record.total_hours == Decimal("8.00")


def test_clock_out_without_clock_in_conflicts(engine):
    with pytest.raises(StateConflictError, match="no clock-in"):
        engine.clock_out(EMPLOYEE_ID, _at(18))


def test_clock_out_closes_open_break(engine, caplog):
    engine.clock_in(EMPLOYEE_ID, _at(9))
    engine.start_break(EMPLOYEE_ID, _at(12))

    with caplog.at_level(logging.WARNING):
        record = engine.clock_out(EMPLOYEE_ID, _at(18))

    assert record.break_end == _at(18)
    assert record.total_hours == Decimal("3.00")
    assert "Auto-ended open break" in caplog.text


def test_clock_in_twice_conflicts(engine):
    engine.clock_in(EMPLOYEE_ID, _at(9))

    with pytest.raises(StateConflictError):
        engine.clock_in(EMPLOYEE_ID, _at(10))


def test_clock_out_twice_conflicts(engine):
    engine.clock_in(EMPLOYEE_ID, _at(9))
    engine.clock_out(EMPLOYEE_ID, _at(18))

    with pytest.raises(StateConflictError):
        engine.clock_out(EMPLOYEE_ID, _at(18, 30))


def test_concurrent_first_clock_in_loses_on_unique_key(engine, records, monkeypatch):
    engine.clock_in(EMPLOYEE_ID, _at(9))
    # Second writer read "no record" before the first insert landed.
    monkeypatch.setattr(records, "get_for_employee_and_date", lambda employee_id, work_date: None)

    with pytest.raises(StateConflictError):
        engine.clock_in(EMPLOYEE_ID, _at(9, 1))


def test_clock_in_fills_existing_empty_record(engine, records):
    records.put(TimeRecord(employee_id=EMPLOYEE_ID, work_date=DAY, record_id=7, as_of=_at(8)))

    record = engine.clock_in(EMPLOYEE_ID, _at(9))

    assert record.record_id == 7
    assert records.get_for_employee_and_date(EMPLOYEE_ID, DAY).clock_in == _at(9)


@pytest.mark.parametrize(
    "ts, rule",
    [
        (datetime(2024, 1, 13, 9, 0), "clock_in.weekend"),
        (_at(5, 59), "clock_in.hours"),
        (_at(23, 1), "clock_in.hours"),
        (datetime(2024, 1, 16, 9, 0), "clock_in.future_date"),
    ],
)
def test_clock_in_rules(engine, ts, rule):
    with pytest.raises(BusinessRuleViolation) as exc:
        engine.clock_in(EMPLOYEE_ID, ts)

    assert exc.value.rule == rule


def test_clock_in_on_approved_leave_is_rejected(engine, leaves):
    leaves.add(EMPLOYEE_ID, DAY, DAY)

    with pytest.raises(BusinessRuleViolation) as exc:
        engine.clock_in(EMPLOYEE_ID, _at(9))

    assert exc.value.rule == "clock_in.on_leave"


def test_clock_out_rules(engine):
    engine.clock_in(EMPLOYEE_ID, _at(9))

    with pytest.raises(BusinessRuleViolation) as exc:
        engine.clock_out(EMPLOYEE_ID, _at(8, 59))
    assert exc.value.rule == "clock_out.before_clock_in"

    with pytest.raises(BusinessRuleViolation) as exc:
        engine.clock_out(EMPLOYEE_ID, _at(9, 29))
    assert exc.value.rule == "clock_out.min_duration"


def test_break_transitions_require_working_state(engine):
    with pytest.raises(StateConflictError):
        engine.start_break(EMPLOYEE_ID, _at(12))

    engine.clock_in(EMPLOYEE_ID, _at(9))
    with pytest.raises(StateConflictError, match="Not on break"):
        engine.end_break(EMPLOYEE_ID, _at(12))

    engine.start_break(EMPLOYEE_ID, _at(12))
    with pytest.raises(StateConflictError, match="Already on break"):
        engine.start_break(EMPLOYEE_ID, _at(12, 5))

    engine.end_break(EMPLOYEE_ID, _at(12, 30))
    with pytest.raises(StateConflictError):
        engine.start_break(EMPLOYEE_ID, _at(15))

    engine.clock_out(EMPLOYEE_ID, _at(18))
    with pytest.raises(StateConflictError):
        engine.start_break(EMPLOYEE_ID, _at(18, 30))


def test_break_cannot_end_before_it_started(engine):
    engine.clock_in(EMPLOYEE_ID, _at(9))
    engine.start_break(EMPLOYEE_ID, _at(12))

    with pytest.raises(ValidationError):
        engine.end_break(EMPLOYEE_ID, _at(11))


def test_failing_alert_does_not_undo_clock_in(records, leaves, fixed_now, caplog):
    engine = TimeRecordEngine(records, leaves, FailingAlerts(), clock=lambda: fixed_now)

    with caplog.at_level(logging.ERROR):
        record = engine.clock_in(EMPLOYEE_ID, _at(9, 30))

    assert record.status == AttendanceStatus.LATE
    assert records.get_for_employee_and_date(EMPLOYEE_ID, DAY) is not None
    assert "Failed to emit LATE alert" in caplog.text


def test_apply_correction_creates_missing_record(engine, fixed_now):
    past = date(2024, 1, 10)
    record = engine.apply_correction(
        EMPLOYEE_ID,
        past,
        clock_in=_at(9, 10, past),
        clock_out=_at(17, 40, past),
        as_of=fixed_now,
    )

    assert record.record_id is not None
    assert record.status == AttendanceStatus.PRESENT
    assert record.total_hours == Decimal("8.50")


def test_apply_correction_keeps_unrequested_side_and_rederives_status(engine, fixed_now):
    engine.clock_in(EMPLOYEE_ID, _at(9, 40))
    engine.clock_out(EMPLOYEE_ID, _at(18))

    record = engine.apply_correction(EMPLOYEE_ID, DAY, clock_in=_at(9), clock_out=None, as_of=fixed_now)

    assert record.clock_out == _at(18)
    assert record.status == AttendanceStatus.PRESENT
    assert record.total_hours == Decimal("9.00")
    assert record.notes is None


def test_apply_correction_rejects_inverted_result(engine, fixed_now):
    engine.clock_in(EMPLOYEE_ID, _at(9))

    with pytest.raises(BusinessRuleViolation) as exc:
        engine.apply_correction(EMPLOYEE_ID, DAY, clock_in=None, clock_out=_at(8), as_of=fixed_now)

    assert exc.value.rule == "correction.order"


def test_list_records_validates_range(engine):
    engine.clock_in(EMPLOYEE_ID, _at(9))

    assert [r.work_date for r in engine.list_records(EMPLOYEE_ID, start_date=DAY, end_date=DAY)] == [DAY]
    with pytest.raises(ValidationError):
        engine.list_records(EMPLOYEE_ID, start_date=DAY, end_date=date(2024, 1, 1))


def test_clock_out_before_open_break_is_rejected(engine, records):
    engine.clock_in(EMPLOYEE_ID, _at(9))
    engine.start_break(EMPLOYEE_ID, _at(12))

    with pytest.raises(BusinessRuleViolation) as exc:
        engine.clock_out(EMPLOYEE_ID, _at(11))

    assert exc.value.rule == "clock_out.before_break"
    assert records.get_for_employee_and_date(EMPLOYEE_ID, DAY).clock_out is None


def test_clock_out_before_break_end_is_rejected(engine):
    engine.clock_in(EMPLOYEE_ID, _at(9))
    engine.start_break(EMPLOYEE_ID, _at(12))
    engine.end_break(EMPLOYEE_ID, _at(13))

    with pytest.raises(BusinessRuleViolation) as exc:
        engine.clock_out(EMPLOYEE_ID, _at(12, 30))

    assert exc.value.rule == "clock_out.before_break"


def test_clock_in_after_corrected_clock_out_is_rejected(engine, fixed_now):
    engine.apply_correction(EMPLOYEE_ID, DAY, clock_in=None, clock_out=_at(10), as_of=fixed_now)

    with pytest.raises(BusinessRuleViolation) as exc:
        engine.clock_in(EMPLOYEE_ID, _at(11))
    assert exc.value.rule == "clock_in.after_clock_out"

    record = engine.clock_in(EMPLOYEE_ID, _at(9))
    assert record.clock_out == _at(10)
    assert record.status == AttendanceStatus.PRESENT
    assert record.total_hours == Decimal("1.00")


def test_stale_read_loses_to_concurrent_clock_in(engine, records, monkeypatch):
    stale = TimeRecord(employee_id=EMPLOYEE_ID, work_date=DAY, record_id=7, as_of=_at(8))
    records.put(stale)
    engine.clock_in(EMPLOYEE_ID, _at(9))
    # Second writer read the record before the first clock-in was stored.
    monkeypatch.setattr(records, "get_for_employee_and_date", lambda employee_id, work_date: stale)

    with pytest.raises(StateConflictError):
        engine.clock_in(EMPLOYEE_ID, _at(9, 30))

    monkeypatch.undo()
    assert records.get_for_employee_and_date(EMPLOYEE_ID, DAY).clock_in == _at(9)


def test_stale_read_loses_to_concurrent_break(engine, records, monkeypatch):
    before_break = engine.clock_in(EMPLOYEE_ID, _at(9))
    engine.start_break(EMPLOYEE_ID, _at(12))
    monkeypatch.setattr(records, "get_for_employee_and_date", lambda employee_id, work_date: before_break)

    with pytest.raises(StateConflictError):
        engine.clock_out(EMPLOYEE_ID, _at(18))


def test_correction_replaces_late_note(engine, fixed_now):
    engine.clock_in(EMPLOYEE_ID, _at(9, 20))

    corrected = engine.apply_correction(EMPLOYEE_ID, DAY, clock_in=_at(9), clock_out=None, as_of=fixed_now)
    assert corrected.status == AttendanceStatus.PRESENT
    assert corrected.notes is None

    later = engine.apply_correction(EMPLOYEE_ID, DAY, clock_in=_at(9, 40), clock_out=None, as_of=fixed_now)
    assert later.status == AttendanceStatus.LATE
    assert later.notes == "Late clock-in at 09:40"


def test_team_records_cover_direct_reports_only(engine, records):
    engine.clock_in(EMPLOYEE_ID, _at(9))
    engine.clock_in(OTHER_EMPLOYEE_ID, _at(9, 5))
    engine.clock_in(UNMANAGED_EMPLOYEE_ID, _at(9, 10))

    team = engine.list_team_records(MANAGER_ID, start_date=DAY, end_date=DAY)

    assert sorted(r.employee_id for r in team) == [EMPLOYEE_ID, OTHER_EMPLOYEE_ID]
    assert engine.list_team_records(OTHER_MANAGER_ID, start_date=DAY, end_date=DAY) == []
    with pytest.raises(ValidationError):
        engine.list_team_records(MANAGER_ID, start_date=DAY, end_date=date(2024, 1, 1))

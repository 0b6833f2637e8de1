from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from typing import Optional

import pytest

from timekeeping.attendance.engine import TimeRecordEngine
from timekeeping.attendance.model import TimeRecord
from timekeeping.core.enums import AlertKind, LeaveType, RequestStatus
from timekeeping.core.exceptions import StateConflictError
from timekeeping.requests.leave_workflow import LeaveRequestWorkflow
from timekeeping.requests.model import LeaveRequest, TimeModificationRequest
from timekeeping.requests.time_modification_workflow import TimeModificationWorkflow

EMPLOYEE_ID = 1
OTHER_EMPLOYEE_ID = 2
UNMANAGED_EMPLOYEE_ID = 3
MANAGER_ID = 100
OTHER_MANAGER_ID = 200


def _timestamps(record: TimeRecord) -> tuple:
    return record.clock_in, record.clock_out, record.break_start, record.break_end


class InMemoryTimeRecords:
    def __init__(self, managers: Optional[dict[int, Optional[int]]] = None):
        self._managers = managers or {}
        self._by_key: dict[tuple[int, date], TimeRecord] = {}
        self._id = 0

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[TimeRecord]:
        return self._by_key.get((employee_id, work_date))

    def list_for_employee(self, employee_id: int, *, start_date: date, end_date: date):
        items = [
            r for (emp, day), r in self._by_key.items() if emp == employee_id and start_date <= day <= end_date
        ]
        items.sort(key=lambda r: r.work_date, reverse=True)
        return items

    def list_for_manager(self, manager_id: int, *, start_date: date, end_date: date):
        items = [
            r
            for (emp, day), r in self._by_key.items()
            if self._managers.get(emp) == manager_id and start_date <= day <= end_date
        ]
        items.sort(key=lambda r: (r.work_date, r.employee_id), reverse=True)
        return items

    def create(self, record: TimeRecord) -> int:
        key = (record.employee_id, record.work_date)
        if key in self._by_key:
            raise StateConflictError("A time record already exists for this date")
        self._id += 1
        self._by_key[key] = replace(record, record_id=self._id, as_of=record.clock_out or record.clock_in)
        return self._id

    def update(self, record: TimeRecord, *, previous: TimeRecord) -> bool:
        key = (record.employee_id, record.work_date)
        current = self._by_key.get(key)
        if current is None or _timestamps(current) != _timestamps(previous):
            return False
        self._by_key[key] = record
        return True

    def put(self, record: TimeRecord) -> None:
        self._by_key[(record.employee_id, record.work_date)] = record

    def snapshot(self):
        return dict(self._by_key), self._id

    def restore(self, state) -> None:
        by_key, self._id = state
        self._by_key = dict(by_key)


class _InMemoryRequests:
    """Shared store behaviour: only PENDING rows can be updated or deleted."""

    def __init__(self, managers: dict[int, Optional[int]]):
        self._managers = managers
        self._items: dict[int, object] = {}
        self._id = 0

    def get(self, request_id: int):
        return self._items.get(request_id)

    def list_for_employee(self, employee_id: int, *, status=None, limit: int = 200):
        items = [r for r in self._items.values() if r.employee_id == employee_id]
        if status is not None:
            items = [r for r in items if r.status == status]
        items.sort(key=lambda r: r.created_at, reverse=True)
        return items[:limit]

    def list_for_manager(self, manager_id: int, *, status=None, limit: int = 200):
        items = [r for r in self._items.values() if self._managers.get(r.employee_id) == manager_id]
        if status is not None:
            items = [r for r in items if r.status == status]
        items.sort(key=lambda r: r.created_at, reverse=True)
        return items[:limit]

    def count_for_manager(self, manager_id: int, *, status: RequestStatus) -> int:
        return len(self.list_for_manager(manager_id, status=status))

    def update(self, request) -> bool:
        current = self._items.get(request.request_id)
        if current is None or current.status != RequestStatus.PENDING:
            return False
        self._items[request.request_id] = request
        return True

    def delete(self, request_id: int) -> bool:
        current = self._items.get(request_id)
        if current is None or current.status != RequestStatus.PENDING:
            return False
        del self._items[request_id]
        return True

    def _next_id(self) -> int:
        self._id += 1
        return self._id

    def snapshot(self):
        return dict(self._items), self._id

    def restore(self, state) -> None:
        items, self._id = state
        self._items = dict(items)


class InMemoryLeaves(_InMemoryRequests):
    def list_overlapping(self, employee_id: int, *, start_date: date, end_date: date, statuses):
        return [
            r
            for r in self._items.values()
            if r.employee_id == employee_id
            and r.status in statuses
            and r.start_date <= end_date
            and r.end_date >= start_date
        ]

    def create(self, *, employee_id, leave_type, start_date, end_date, reason, created_at) -> int:
        request_id = self._next_id()
        self._items[request_id] = LeaveRequest(
            request_id=request_id,
            employee_id=employee_id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            status=RequestStatus.PENDING,
            created_at=created_at,
        )
        return request_id

    def add(
        self,
        employee_id: int,
        start_date: date,
        end_date: date,
        *,
        status: RequestStatus = RequestStatus.APPROVED,
        leave_type: LeaveType = LeaveType.ANNUAL,
        created_at: datetime = datetime(2024, 1, 1, 9, 0),
    ) -> LeaveRequest:
        request = LeaveRequest(
            request_id=self._next_id(),
            employee_id=employee_id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            reason="seeded",
            status=status,
            created_at=created_at,
        )
        self._items[request.request_id] = request
        return request


class InMemoryTimeModifications(_InMemoryRequests):
    def list_for_date(self, employee_id: int, work_date: date, *, statuses):
        return [
            r
            for r in self._items.values()
            if r.employee_id == employee_id and r.work_date == work_date and r.status in statuses
        ]

    def create(
        self,
        *,
        employee_id,
        work_date,
        original_clock_in,
        original_clock_out,
        requested_clock_in,
        requested_clock_out,
        reason,
        created_at,
    ) -> int:
        request_id = self._next_id()
        self._items[request_id] = TimeModificationRequest(
            request_id=request_id,
            employee_id=employee_id,
            work_date=work_date,
            original_clock_in=original_clock_in,
            original_clock_out=original_clock_out,
            requested_clock_in=requested_clock_in,
            requested_clock_out=requested_clock_out,
            reason=reason,
            status=RequestStatus.PENDING,
            created_at=created_at,
        )
        return request_id


class FakeAuthority:
    def __init__(self, managers: dict[int, Optional[int]]):
        self._managers = managers

    def manager_of(self, employee_id: int) -> Optional[int]:
        return self._managers.get(employee_id)


class RecordingAlerts:
    def __init__(self):
        self.sent: list[tuple[AlertKind, int, date, dict]] = []

    def notify(self, kind, employee_id, work_date, details) -> None:
        self.sent.append((kind, employee_id, work_date, dict(details)))


class FailingAlerts:
    def notify(self, kind, employee_id, work_date, details) -> None:
        raise RuntimeError("alert store unavailable")


class SnapshotTransactions:
    """Restores every registered store when the block raises."""

    def __init__(self, *stores):
        self._stores = stores
        self.committed = 0
        self.rolled_back = 0

    @contextmanager
    def transaction(self):
        states = [s.snapshot() for s in self._stores]
        try:
            yield
        except Exception:
            for store, state in zip(self._stores, states):
                store.restore(state)
            self.rolled_back += 1
            raise
        self.committed += 1


@pytest.fixture
def fixed_now() -> datetime:
    # Monday
    return datetime(2024, 1, 15, 18, 0)


@pytest.fixture
def clock(fixed_now):
    return lambda: fixed_now


@pytest.fixture
def managers() -> dict[int, Optional[int]]:
    return {
        EMPLOYEE_ID: MANAGER_ID,
        OTHER_EMPLOYEE_ID: MANAGER_ID,
        UNMANAGED_EMPLOYEE_ID: None,
    }


@pytest.fixture
def records(managers) -> InMemoryTimeRecords:
    return InMemoryTimeRecords(managers)


@pytest.fixture
def leaves(managers) -> InMemoryLeaves:
    return InMemoryLeaves(managers)


@pytest.fixture
def time_mods(managers) -> InMemoryTimeModifications:
    return InMemoryTimeModifications(managers)


@pytest.fixture
def authority(managers) -> FakeAuthority:
    return FakeAuthority(managers)


@pytest.fixture
def alerts() -> RecordingAlerts:
    return RecordingAlerts()


@pytest.fixture
def transactions(records, time_mods) -> SnapshotTransactions:
    return SnapshotTransactions(records, time_mods)


@pytest.fixture
def engine(records, leaves, alerts, clock) -> TimeRecordEngine:
    return TimeRecordEngine(records, leaves, alerts, clock=clock)


@pytest.fixture
def leave_workflow(leaves, authority, clock) -> LeaveRequestWorkflow:
    return LeaveRequestWorkflow(leaves, authority, clock=clock)


@pytest.fixture
def time_mod_workflow(time_mods, leaves, authority, engine, transactions, clock) -> TimeModificationWorkflow:
    return TimeModificationWorkflow(time_mods, leaves, authority, engine, transactions, clock=clock)

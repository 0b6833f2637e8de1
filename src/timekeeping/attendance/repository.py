from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import TimeRecord


class TimeRecordRepository(Protocol):
    """Storage for time records.

    Implementations must enforce one record per (employee_id, work_date) and
    raise StateConflictError from ``create`` when that key already exists.
    """

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[TimeRecord]:
        raise NotImplementedError

    def list_for_employee(self, employee_id: int, *, start_date: date, end_date: date) -> Sequence[TimeRecord]:
        raise NotImplementedError

    def list_for_manager(self, manager_id: int, *, start_date: date, end_date: date) -> Sequence[TimeRecord]:
        raise NotImplementedError

    def create(self, record: TimeRecord) -> int:
        raise NotImplementedError

    def update(self, record: TimeRecord, *, previous: TimeRecord) -> bool:
        """Store ``record`` only while the stored timestamps still equal ``previous``.

        Returns False when another writer changed the record in between.
        """
        raise NotImplementedError

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Any, Callable, Mapping, Protocol

from ..common.datetime_utils import now_local
from ..core.enums import AlertKind

logger = logging.getLogger(__name__)


class AlertEmitter(Protocol):
    """Notification sink for attendance anomalies.

    Implementations must be idempotent per (employee_id, kind, work_date).
    """

    def notify(self, kind: AlertKind, employee_id: int, work_date: date, details: Mapping[str, Any]) -> None:
        raise NotImplementedError


class LoggingAlertEmitter:
    """Emitter that only writes alerts to the log; used when no store is wired.

    Duplicates are suppressed for the last ``retention_days`` days; older keys
    are dropped so memory stays bounded in a long-running process.
    """

    def __init__(self, *, retention_days: int = 1, clock: Callable[[], datetime] = now_local) -> None:
        self._retention = timedelta(days=retention_days)
        self._clock = clock
        self._seen: set[tuple[int, AlertKind, date]] = set()

    def notify(self, kind: AlertKind, employee_id: int, work_date: date, details: Mapping[str, Any]) -> None:
        self._prune()
        key = (int(employee_id), kind, work_date)
        if key in self._seen:
            return
        self._seen.add(key)
        logger.info("Alert %s for employee %s on %s: %s", kind.value, employee_id, work_date, dict(details))

    def _prune(self) -> None:
        cutoff = self._clock().date() - self._retention
        self._seen = {key for key in self._seen if key[2] >= cutoff}

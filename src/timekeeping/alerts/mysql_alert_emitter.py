from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any, Mapping

from ..core.enums import AlertKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor
from .emitter import AlertEmitter

logger = logging.getLogger(__name__)


class MySQLAlertEmitter(AlertEmitter):
    """Stores alerts; uq_alerts_employee_kind_date makes repeats a no-op."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def notify(self, kind: AlertKind, employee_id: int, work_date: date, details: Mapping[str, Any]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO alerts(employee_id, kind, alert_date, details)
                VALUES(%s,%s,%s,%s)
                """,
                (int(employee_id), kind.value, work_date, json.dumps(dict(details), default=str)),
            )
            created = cur.rowcount > 0

        if created:
            logger.info("Created %s alert for employee %s on %s", kind.value, employee_id, work_date)

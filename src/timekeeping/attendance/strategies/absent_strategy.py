from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class AbsentStrategy(AttendanceStrategy):
    """Record without a clock-in (e.g. a correction that only sets clock-out)."""

    def decide_clock_in(self, *, clock_in: datetime) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.ABSENT)

from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class OnTimeStrategy(AttendanceStrategy):
    """Clock-in within the grace period."""

    def decide_clock_in(self, *, clock_in: datetime) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)

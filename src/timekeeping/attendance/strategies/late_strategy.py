from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Late clock-in."""

    def decide_clock_in(self, *, clock_in: datetime) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.LATE, note=f"Late clock-in at {clock_in:%H:%M}")

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from ..core.policy import RulePolicy
from .strategies.absent_strategy import AbsentStrategy
from .strategies.base import AttendanceStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.on_time_strategy import OnTimeStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    policy: RulePolicy = field(default_factory=RulePolicy)

    def for_clock_in(self, *, clock_in: Optional[datetime]) -> AttendanceStrategy:
        if clock_in is None:
            return AbsentStrategy()

        start = datetime.combine(clock_in.date(), self.policy.standard_start_time)
        if clock_in <= start + timedelta(minutes=self.policy.late_grace_minutes):
            return OnTimeStrategy()
        return LateStrategy()

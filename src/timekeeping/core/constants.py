"""Policy defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

STANDARD_START_TIME = time(9, 0)
DEFAULT_LATE_GRACE_MINUTES = 15

EARLIEST_CLOCK_IN = time(6, 0)
LATEST_CLOCK_IN = time(23, 0)
MIN_WORKING_MINUTES = 30

MAX_CORRECTION_AGE_DAYS = 30
MAX_CORRECTION_HOURS = 16

# Placeholder entitlement, overridable via ANNUAL_LEAVE_DAYS.
DEFAULT_ANNUAL_LEAVE_DAYS = 20

from datetime import datetime

from appointment_scheduler.core.db import get_session
from appointment_scheduler.scheduling.time_range import utc_naive_now

__all__ = ["get_now", "get_session"]


def get_now() -> datetime:
    """Current time (naive UTC) for booking checks; overridden in tests to pin the clock."""
    return utc_naive_now()

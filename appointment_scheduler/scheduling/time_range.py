"""
Time range helpers.

Ranges are ``[start, end)``: two ranges that only touch at a boundary do not
overlap, which is what allows back-to-back bookings.
"""

from datetime import UTC, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import NamedTuple


class TimeRange(NamedTuple):
    start: datetime
    end: datetime


def contains(outer: TimeRange, inner: TimeRange) -> bool:
    return outer.start <= inner.start and outer.end >= inner.end


def overlaps(a: TimeRange, b: TimeRange) -> bool:
    return a.start < b.end and b.start < a.end


def clamp_window(requested: TimeRange, bound: TimeRange) -> TimeRange:
    """Intersect ``requested`` with ``bound``; the result is empty when start >= end."""
    return TimeRange(max(requested.start, bound.start), min(requested.end, bound.end))


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, halves rounded away from zero (150s is 3)."""
    micros = Decimal((end - start) // timedelta(microseconds=1))
    return int((micros / 60_000_000).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def to_naive_utc(dt: datetime) -> datetime:
    """Convert to naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    if dt.tzinfo is not None:
        return dt.astimezone(UTC).replace(tzinfo=None)
    return dt


def utc_naive_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)

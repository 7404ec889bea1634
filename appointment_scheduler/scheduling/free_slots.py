from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from appointment_scheduler.models.appointment import Appointment
from appointment_scheduler.models.availability import Availability
from appointment_scheduler.scheduling.time_range import TimeRange, clamp_window, minutes_between


@dataclass(frozen=True)
class FreeSlot:
    starts_at: datetime
    ends_at: datetime
    duration_minutes: int


def _gap(start: datetime, end: datetime) -> FreeSlot:
    return FreeSlot(starts_at=start, ends_at=end, duration_minutes=minutes_between(start, end))


def calculate_free_slots(
    window: Availability,
    range_start: datetime,
    range_end: datetime,
    appointments: Sequence[Appointment],
) -> list[FreeSlot]:
    """Bookable gaps of ``window`` within [range_start, range_end).

    ``appointments`` must already be the active appointments overlapping the
    display range, sorted by (starts_at, id); nothing is re-filtered here.
    Overlapping appointments are merged by advancing the cursor to the
    furthest end seen so far.
    """
    bounded = clamp_window(TimeRange(range_start, range_end), window.time_range)
    if bounded.start >= bounded.end:
        return []

    slots: list[FreeSlot] = []
    cursor = bounded.start
    for appointment in appointments:
        if appointment.starts_at > cursor:
            slots.append(_gap(cursor, appointment.starts_at))
        cursor = max(cursor, appointment.ends_at)

    if cursor < bounded.end:
        slots.append(_gap(cursor, bounded.end))
    return slots

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from appointment_scheduler.core.errors import InvalidRange, NoAvailabilityWindow, PastBooking, SlotConflict
from appointment_scheduler.models import Availability, Provider
from appointment_scheduler.services import repository

logger = logging.getLogger(__name__)


def check_requested_range(starts_at: datetime, ends_at: datetime, now: datetime) -> None:
    """Reject inverted/empty ranges and ranges starting before ``now`` (all naive UTC)."""
    if starts_at >= ends_at:
        raise InvalidRange()
    if starts_at < now:
        raise PastBooking()


async def resolve_availability(
    session: AsyncSession,
    provider: Provider,
    starts_at: datetime,
    ends_at: datetime,
    now: datetime,
) -> Availability:
    """Pick the window that will host [starts_at, ends_at) for ``provider``.

    Candidates are the provider's windows covering the range, in (starts_at, id)
    order; the first one free for the range wins. Raises NoAvailabilityWindow
    when nothing covers the range and SlotConflict when something covers it but
    every candidate is taken.

    Selection does not reserve anything: call inside the transaction that
    inserts the appointment, after the provider lock is taken.
    """
    check_requested_range(starts_at, ends_at, now)

    candidates = await repository.windows_covering(session, provider.id, starts_at, ends_at)
    if not candidates:
        logger.info(
            "No availability window: provider=%s range=%s..%s", provider.id, starts_at, ends_at
        )
        raise NoAvailabilityWindow()

    # Provider-wide, so a window is never picked while a sibling window already
    # holds an overlapping booking.
    active = await repository.active_appointments_overlapping(session, provider.id, starts_at, ends_at)
    for window in candidates:
        if window.is_free_for(starts_at, ends_at, active):
            return window

    logger.info(
        "Slot conflict during resolution: provider=%s range=%s..%s candidates=%d",
        provider.id,
        starts_at,
        ends_at,
        len(candidates),
    )
    raise SlotConflict()

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from appointment_scheduler.core.errors import InvalidRange, ProviderNotFound
from appointment_scheduler.models import Availability, Provider
from appointment_scheduler.scheduling.free_slots import FreeSlot, calculate_free_slots
from appointment_scheduler.scheduling.time_range import TimeRange, clamp_window, to_naive_utc
from appointment_scheduler.services import repository


@dataclass
class WindowListing:
    window: Availability
    free_slots: list[FreeSlot]
    active_appointment_count: int


@dataclass
class ProviderAvailabilityListing:
    provider: Provider
    range_start: datetime
    range_end: datetime
    windows: list[WindowListing]


async def list_free_slots(
    session: AsyncSession, provider_id: int, range_start: datetime, range_end: datetime
) -> ProviderAvailabilityListing:
    """Windows of a provider within [range_start, range_end) that still have free time.

    Each window comes with its bookable gaps (clipped to the requested range)
    and the number of active appointments inside that clipped range. Windows
    with no gap left are omitted.
    """
    range_start, range_end = to_naive_utc(range_start), to_naive_utc(range_end)
    if range_start >= range_end:
        raise InvalidRange("From time must be before to time")
    provider = await repository.get_provider(session, provider_id)
    if not provider:
        raise ProviderNotFound(provider_id)

    requested = TimeRange(range_start, range_end)
    listings: list[WindowListing] = []
    for window in await repository.windows_touching(session, provider.id, range_start, range_end):
        bounded = clamp_window(requested, window.time_range)
        if bounded.start >= bounded.end:
            continue
        appointments = await repository.active_appointments_overlapping(
            session, provider.id, bounded.start, bounded.end, availability_id=window.id
        )
        free_slots = calculate_free_slots(window, range_start, range_end, appointments)
        if not free_slots:
            continue
        listings.append(
            WindowListing(window=window, free_slots=free_slots, active_appointment_count=len(appointments))
        )

    return ProviderAvailabilityListing(
        provider=provider, range_start=range_start, range_end=range_end, windows=listings
    )

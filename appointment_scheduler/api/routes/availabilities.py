from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from appointment_scheduler.api.deps import get_session
from appointment_scheduler.api.schemas.availability import (
    AvailabilityWindowInfo,
    FreeSlotInfo,
    ProviderAvailabilitiesResponse,
)
from appointment_scheduler.services.slot_service import WindowListing, list_free_slots

router = APIRouter(prefix="/providers", tags=["availabilities"])


def _to_window_info(listing: WindowListing) -> AvailabilityWindowInfo:
    window = listing.window
    return AvailabilityWindowInfo(
        id=window.id,
        external_id=window.external_id,
        starts_at=window.starts_at,
        ends_at=window.ends_at,
        source=window.source,
        available_slots=[
            FreeSlotInfo(starts_at=s.starts_at, ends_at=s.ends_at, duration_minutes=s.duration_minutes)
            for s in listing.free_slots
        ],
        total_appointments=listing.active_appointment_count,
    )


@router.get("/{provider_id}/availabilities", response_model=ProviderAvailabilitiesResponse)
async def provider_availabilities(
    provider_id: int,
    from_: datetime = Query(..., alias="from"),
    to: datetime = Query(...),
    session: AsyncSession = Depends(get_session),
) -> ProviderAvailabilitiesResponse:
    """Windows of a provider in [from, to) that still have free time, with their free gaps."""
    listing = await list_free_slots(session, provider_id, from_, to)
    return ProviderAvailabilitiesResponse(
        provider_id=listing.provider.id,
        provider_name=listing.provider.name,
        from_=listing.range_start,
        to=listing.range_end,
        availabilities=[_to_window_info(w) for w in listing.windows],
    )

"""
Materialize the upstream weekly slot feed into concrete availability windows.

Run for one provider with::

    python -m appointment_scheduler.services.availability_sync <provider_id>
"""

import asyncio
import logging
import sys
from datetime import date, datetime, time, timedelta
from typing import Any
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from appointment_scheduler.core.config import settings
from appointment_scheduler.core.errors import ProviderNotFound
from appointment_scheduler.models import Availability
from appointment_scheduler.scheduling.time_range import to_naive_utc
from appointment_scheduler.services import repository
from appointment_scheduler.services.feed_client import AvailabilityFeedClient

logger = logging.getLogger(__name__)

# date.weekday() numbering
DAY_NUMBERS = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}


def external_id_for(slot_id: Any, on_date: date) -> str:
    return f"{slot_id}-{on_date.isoformat()}"


def occurrence_bounds(slot: dict[str, Any], on_date: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """Concrete (starts_at, ends_at) in naive UTC for the occurrence of ``slot`` starting on ``on_date``.

    The end falls ``(end_day - start_day) mod 7`` days after the start, so a
    Monday 23:30 to Tuesday 00:15 slot ends the next day.
    """
    start_day = DAY_NUMBERS[slot["starts_at"]["day_of_week"].strip().lower()]
    end_day = DAY_NUMBERS[slot["ends_at"]["day_of_week"].strip().lower()]
    start_time = time.fromisoformat(slot["starts_at"]["time"])
    end_time = time.fromisoformat(slot["ends_at"]["time"])

    end_date = on_date + timedelta(days=(end_day - start_day) % 7)
    starts_at = datetime.combine(on_date, start_time.replace(second=0, microsecond=0), tzinfo=tz)
    ends_at = datetime.combine(end_date, end_time.replace(second=0, microsecond=0), tzinfo=tz)
    return to_naive_utc(starts_at), to_naive_utc(ends_at)


def _slot_start_day(slot: dict[str, Any]) -> int | None:
    try:
        return DAY_NUMBERS[slot["starts_at"]["day_of_week"].strip().lower()]
    except (KeyError, TypeError, AttributeError):
        return None


async def sync_availabilities(
    session: AsyncSession,
    provider_id: int,
    client: AvailabilityFeedClient | None = None,
    today: date | None = None,
) -> int:
    """Create the provider's windows for the next ``availability_sync_weeks`` weeks.

    Idempotent on ``external_id``: occurrences already imported are left alone.
    Returns the provider's total number of windows afterwards.
    """
    provider = await repository.get_provider(session, provider_id)
    if not provider:
        raise ProviderNotFound(provider_id)

    client = client or AvailabilityFeedClient()
    slots = await client.fetch_slots(provider_id)
    if not slots:
        logger.info("Availability feed returned no slots for provider %s", provider_id)
        return await repository.count_availabilities(session, provider_id)

    tz = ZoneInfo(settings.feed_timezone)
    start_date = today or date.today()
    end_date = start_date + timedelta(weeks=settings.availability_sync_weeks)

    created = 0
    for slot in slots:
        start_day = _slot_start_day(slot)
        if start_day is None:
            logger.warning("Skipping malformed feed slot for provider %s: %r", provider_id, slot)
            continue
        current = start_date
        while current <= end_date:
            if current.weekday() == start_day:
                if await _import_occurrence(session, provider_id, slot, current, tz):
                    created += 1
            current += timedelta(days=1)

    await session.flush()
    logger.info("Availability sync for provider %s: %d new window(s)", provider_id, created)
    return await repository.count_availabilities(session, provider_id)


async def _import_occurrence(
    session: AsyncSession, provider_id: int, slot: dict[str, Any], on_date: date, tz: ZoneInfo
) -> bool:
    external_id = external_id_for(slot["id"], on_date)
    if await repository.get_availability_by_external_id(session, external_id):
        return False
    try:
        starts_at, ends_at = occurrence_bounds(slot, on_date, tz)
    except (KeyError, ValueError, AttributeError) as e:
        logger.warning("Skipping feed slot %s on %s: %s", slot.get("id"), on_date, e)
        return False
    if ends_at <= starts_at:
        logger.warning("Skipping feed slot %s on %s: ends before it starts", slot.get("id"), on_date)
        return False
    session.add(
        Availability(
            provider_id=provider_id,
            external_id=external_id,
            starts_at=starts_at,
            ends_at=ends_at,
            source=slot.get("source") or "feed",
        )
    )
    # Flush so a later lookup of the same external_id within this run sees it
    await session.flush()
    return True


async def _main(provider_id: int) -> None:
    from appointment_scheduler.core.db import async_session_maker

    async with async_session_maker() as session:
        try:
            total = await sync_availabilities(session, provider_id)
            await session.commit()
        except Exception:
            await session.rollback()
            raise
    logger.info("Provider %s now has %d availability window(s)", provider_id, total)


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level)
    if len(sys.argv) != 2:
        sys.exit("usage: python -m appointment_scheduler.services.availability_sync <provider_id>")
    asyncio.run(_main(int(sys.argv[1])))

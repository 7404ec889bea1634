"""
Development seed data: a few providers and clients, plus weekday windows.

Safe to run repeatedly::

    python -m appointment_scheduler.services.seed
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from appointment_scheduler.core.config import settings
from appointment_scheduler.models import Availability, Client, Provider
from appointment_scheduler.services import repository

logger = logging.getLogger(__name__)

SEED_PROVIDERS = [
    {"email": "dr.smith@example.com", "name": "Dr. Sarah Smith"},
    {"email": "dr.jones@example.com", "name": "Dr. Michael Jones"},
    {"email": "dr.brown@example.com", "name": "Dr. Emily Brown"},
]

SEED_CLIENTS = [
    {"email": "john.doe@example.com", "name": "John Doe", "phone": "+1-555-0123"},
    {"email": "jane.smith@example.com", "name": "Jane Smith", "phone": "+1-555-0124"},
    {"email": "bob.wilson@example.com", "name": "Bob Wilson", "phone": "+1-555-0125"},
]

WORKDAY_START = time(9, 0)
WORKDAY_END = time(17, 0)


@dataclass
class SeedResult:
    providers: int
    clients: int
    windows: int


async def seed(session: AsyncSession, today: date | None = None, days: int = 7) -> SeedResult:
    """Create the seed rows that are missing; counts are of rows created by this call.

    Each provider gets a 09:00-17:00 (UTC) window on every weekday in
    ``[today, today + days)``, keyed ``seed-<provider id>-<date>``.
    """
    start = today or date.today()
    result = SeedResult(providers=0, clients=0, windows=0)

    providers: list[Provider] = []
    for values in SEED_PROVIDERS:
        provider = await repository.get_provider_by_email(session, values["email"])
        if not provider:
            provider = Provider(**values)
            session.add(provider)
            result.providers += 1
        providers.append(provider)

    for values in SEED_CLIENTS:
        if not await repository.get_client_by_email(session, values["email"]):
            session.add(Client(**values))
            result.clients += 1

    # Provider ids are needed for the window keys
    await session.flush()

    for provider in providers:
        for offset in range(days):
            day = start + timedelta(days=offset)
            if day.weekday() >= 5:
                continue
            external_id = f"seed-{provider.id}-{day.isoformat()}"
            if await repository.get_availability_by_external_id(session, external_id):
                continue
            session.add(
                Availability(
                    provider_id=provider.id,
                    external_id=external_id,
                    starts_at=datetime.combine(day, WORKDAY_START),
                    ends_at=datetime.combine(day, WORKDAY_END),
                    source="seed",
                )
            )
            result.windows += 1

    await session.flush()
    logger.info(
        "Seed: %d provider(s), %d client(s), %d window(s) created",
        result.providers,
        result.clients,
        result.windows,
    )
    return result


async def _main() -> None:
    from appointment_scheduler.core.db import async_session_maker, init_db

    if settings.env == "development":
        await init_db()
    async with async_session_maker() as session:
        try:
            await seed(session)
            await session.commit()
        except Exception:
            await session.rollback()
            raise


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level)
    asyncio.run(_main())

from datetime import date

import pytest
from sqlalchemy import func, select

from appointment_scheduler.models import Availability, Client, Provider
from appointment_scheduler.services.seed import seed

MONDAY = date(2030, 1, 7)


@pytest.mark.asyncio
async def test_seed_creates_providers_clients_and_weekday_windows(session) -> None:
    result = await seed(session, today=MONDAY)
    await session.commit()

    assert (result.providers, result.clients) == (3, 3)
    # Monday to Sunday: five weekdays for each of three providers
    assert result.windows == 15
    window = (
        await session.execute(select(Availability).order_by(Availability.starts_at, Availability.id).limit(1))
    ).scalar_one()
    assert window.starts_at.isoformat() == "2030-01-07T09:00:00"
    assert window.ends_at.isoformat() == "2030-01-07T17:00:00"
    assert window.source == "seed"


@pytest.mark.asyncio
async def test_seed_is_idempotent(session) -> None:
    await seed(session, today=MONDAY)
    await session.commit()

    again = await seed(session, today=MONDAY)
    await session.commit()

    assert (again.providers, again.clients, again.windows) == (0, 0, 0)
    assert (await session.execute(select(func.count()).select_from(Provider))).scalar_one() == 3
    assert (await session.execute(select(func.count()).select_from(Client))).scalar_one() == 3
    assert (await session.execute(select(func.count()).select_from(Availability))).scalar_one() == 15


@pytest.mark.asyncio
async def test_seed_keeps_existing_provider(session) -> None:
    session.add(Provider(name="Dr. Sarah Smith", email="dr.smith@example.com"))
    await session.commit()

    result = await seed(session, today=MONDAY, days=1)

    assert result.providers == 2
    assert result.windows == 3

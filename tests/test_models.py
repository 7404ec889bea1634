from datetime import datetime

import pytest
from sqlalchemy import select

from appointment_scheduler.models import Appointment, Availability, Client, Provider
from support import at


@pytest.mark.parametrize("model", [Provider, Client, Availability, Appointment])
def test_datetime_columns_are_naive(model) -> None:
    columns = [c for c in model.__table__.columns if c.name.endswith("_at")]

    assert columns
    assert all(c.type.timezone is False for c in columns)


@pytest.mark.asyncio
async def test_naive_datetimes_round_trip(session_maker, make_provider) -> None:
    provider = await make_provider()
    async with session_maker() as s:
        s.add(
            Availability(
                provider_id=provider.id,
                external_id="slot-1-2030-01-07",
                starts_at=at(9),
                ends_at=at(17),
                source="calendly",
                created_at=datetime(2030, 1, 1, 12, 0),
                updated_at=datetime(2030, 1, 1, 12, 0),
            )
        )
        await s.commit()

    async with session_maker() as s:
        stored = (await s.execute(select(Availability))).scalar_one()
        stored_provider = await s.get(Provider, provider.id)

    assert stored.starts_at == at(9)
    assert stored.starts_at.tzinfo is None
    assert stored.created_at == datetime(2030, 1, 1, 12, 0)
    assert stored_provider.created_at.tzinfo is None

import os
from datetime import datetime

import pytest
import pytest_asyncio

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("ENV", "test")

from appointment_scheduler.core.db import build_engine, build_session_maker, init_db  # noqa: E402
from appointment_scheduler.models import (  # noqa: E402
    Appointment,
    AppointmentStatus,
    Availability,
    Client,
    Provider,
)
from appointment_scheduler.scheduling.time_range import minutes_between  # noqa: E402
from support import NOW  # noqa: E402


@pytest_asyncio.fixture
async def engine(tmp_path):
    # On-disk database so concurrent sessions get separate connections
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'scheduler.db'}")
    await init_db(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_maker(engine):
    return build_session_maker(engine)


@pytest_asyncio.fixture
async def session(session_maker):
    async with session_maker() as s:
        yield s


@pytest.fixture
def make_provider(session_maker):
    counter = {"n": 0}

    async def _make(name: str = "Dr. Wilson") -> Provider:
        counter["n"] += 1
        provider = Provider(name=name, email=f"provider{counter['n']}@example.com")
        async with session_maker() as s:
            s.add(provider)
            await s.commit()
        return provider

    return _make


@pytest.fixture
def make_client(session_maker):
    counter = {"n": 0}

    async def _make(name: str = "Jane Smith") -> Client:
        counter["n"] += 1
        client = Client(name=name, email=f"client{counter['n']}@example.com", phone="+1 555 0100")
        async with session_maker() as s:
            s.add(client)
            await s.commit()
        return client

    return _make


@pytest.fixture
def make_window(session_maker):
    counter = {"n": 0}

    async def _make(provider: Provider, starts_at: datetime, ends_at: datetime, source: str = "calendly") -> Availability:
        counter["n"] += 1
        window = Availability(
            provider_id=provider.id,
            external_id=f"availability_{counter['n']}",
            starts_at=starts_at,
            ends_at=ends_at,
            source=source,
        )
        async with session_maker() as s:
            s.add(window)
            await s.commit()
        return window

    return _make


@pytest.fixture
def make_appointment(session_maker):
    """Insert an appointment row directly, bypassing the booking service."""

    async def _make(
        client: Client,
        window: Availability,
        starts_at: datetime,
        ends_at: datetime,
        status: str = AppointmentStatus.SCHEDULED.value,
    ) -> Appointment:
        appointment = Appointment(
            client_id=client.id,
            provider_id=window.provider_id,
            availability_id=window.id,
            starts_at=starts_at,
            ends_at=ends_at,
            duration_minutes=minutes_between(starts_at, ends_at),
            status=status,
            created_at=NOW,
            updated_at=NOW,
        )
        async with session_maker() as s:
            s.add(appointment)
            await s.commit()
        return appointment

    return _make

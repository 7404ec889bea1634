"""
Storage queries used by the scheduling services.

Each function is one capability the engine needs from the database; services
never build ad-hoc queries of their own. Time ranges are ``[start, end)`` and
all datetimes are naive UTC.
"""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from appointment_scheduler.models import Appointment, AppointmentStatus, Availability, Client, Provider


async def get_provider(session: AsyncSession, provider_id: int) -> Provider | None:
    return await session.get(Provider, provider_id)


async def lock_provider(session: AsyncSession, provider_id: int) -> Provider | None:
    """Load the provider row FOR UPDATE so bookings for one provider run one at a time.

    Held until the surrounding transaction ends. SQLite has no row locks and
    ignores the clause; its single-writer model serializes the insert instead.
    """
    result = await session.execute(
        select(Provider).where(Provider.id == provider_id).with_for_update()
    )
    return result.scalar_one_or_none()


async def get_provider_by_email(session: AsyncSession, email: str) -> Provider | None:
    result = await session.execute(select(Provider).where(Provider.email == email))
    return result.scalar_one_or_none()


async def get_client(session: AsyncSession, client_id: int) -> Client | None:
    return await session.get(Client, client_id)


async def get_client_by_email(session: AsyncSession, email: str) -> Client | None:
    result = await session.execute(select(Client).where(Client.email == email))
    return result.scalar_one_or_none()


async def get_appointment(session: AsyncSession, appointment_id: int) -> Appointment | None:
    return await session.get(Appointment, appointment_id)


async def get_availability(session: AsyncSession, availability_id: int) -> Availability | None:
    return await session.get(Availability, availability_id)


async def get_availability_by_external_id(session: AsyncSession, external_id: str) -> Availability | None:
    result = await session.execute(select(Availability).where(Availability.external_id == external_id))
    return result.scalar_one_or_none()


async def count_availabilities(session: AsyncSession, provider_id: int) -> int:
    result = await session.execute(
        select(func.count()).select_from(Availability).where(Availability.provider_id == provider_id)
    )
    return result.scalar_one()


async def windows_covering(
    session: AsyncSession, provider_id: int, starts_at: datetime, ends_at: datetime
) -> list[Availability]:
    """Windows of the provider that fully contain [starts_at, ends_at), by (starts_at, id)."""
    result = await session.execute(
        select(Availability)
        .where(
            Availability.provider_id == provider_id,
            Availability.starts_at <= starts_at,
            Availability.ends_at >= ends_at,
        )
        .order_by(Availability.starts_at, Availability.id)
    )
    return list(result.scalars().all())


async def windows_touching(
    session: AsyncSession, provider_id: int, range_start: datetime, range_end: datetime
) -> list[Availability]:
    """Windows of the provider that intersect or touch [range_start, range_end), by (starts_at, id)."""
    result = await session.execute(
        select(Availability)
        .where(
            Availability.provider_id == provider_id,
            Availability.starts_at <= range_end,
            Availability.ends_at >= range_start,
        )
        .order_by(Availability.starts_at, Availability.id)
    )
    return list(result.scalars().all())


async def active_appointments_overlapping(
    session: AsyncSession,
    provider_id: int,
    range_start: datetime,
    range_end: datetime,
    availability_id: int | None = None,
) -> list[Appointment]:
    """Non-cancelled appointments of the provider overlapping [range_start, range_end).

    Optionally narrowed to one availability window. Ordered by (starts_at, id),
    which is the order the free-slot calculator expects.
    """
    q = select(Appointment).where(
        Appointment.provider_id == provider_id,
        Appointment.status != AppointmentStatus.CANCELLED.value,
        Appointment.starts_at < range_end,
        Appointment.ends_at > range_start,
    )
    if availability_id is not None:
        q = q.where(Appointment.availability_id == availability_id)
    result = await session.execute(q.order_by(Appointment.starts_at, Appointment.id))
    return list(result.scalars().all())

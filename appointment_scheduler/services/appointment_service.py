import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from appointment_scheduler.core.errors import (
    AppointmentNotFound,
    ClientNotFound,
    InternalError,
    InvalidInput,
    ProviderNotFound,
    SlotConflict,
    ValidationFailed,
)
from appointment_scheduler.models import (
    OVERLAP_CONSTRAINT_NAME,
    Appointment,
    AppointmentStatus,
    Availability,
    Client,
    Provider,
)
from appointment_scheduler.scheduling.time_range import minutes_between, to_naive_utc
from appointment_scheduler.scheduling.validation import validate_appointment
from appointment_scheduler.services import repository
from appointment_scheduler.services.booking_service import check_requested_range, resolve_availability

logger = logging.getLogger(__name__)


def _is_overlap_violation(exc: IntegrityError) -> bool:
    return OVERLAP_CONSTRAINT_NAME in str(getattr(exc, "orig", exc))


async def create_appointment(
    session: AsyncSession,
    client: Client,
    provider: Provider,
    window: Availability,
    starts_at: datetime,
    ends_at: datetime,
    duration_minutes: int,
    now: datetime,
) -> Appointment:
    """Validate and insert a scheduled appointment in ``window``.

    Overlap is re-read from the database here rather than trusted from the
    resolver, and the storage constraint catches anything committed after that
    read. A lone overlap violation is a SlotConflict; any other broken invariant
    is a ValidationFailed listing every reason.
    """
    appointment = Appointment(
        client_id=client.id,
        provider_id=provider.id,
        availability_id=window.id,
        starts_at=starts_at,
        ends_at=ends_at,
        duration_minutes=duration_minutes,
        status=AppointmentStatus.SCHEDULED.value,
        created_at=now,
        updated_at=now,
    )
    current = await repository.active_appointments_overlapping(session, provider.id, starts_at, ends_at)
    result = validate_appointment(appointment, window, current)
    if result.only_overlap:
        logger.info("Slot taken before insert: provider=%s range=%s..%s", provider.id, starts_at, ends_at)
        raise SlotConflict()
    if not result.ok:
        raise ValidationFailed(result.codes, result.messages)

    session.add(appointment)
    try:
        await session.flush()
    except IntegrityError as e:
        # Rollback expires every loaded instance; log first.
        if _is_overlap_violation(e):
            logger.info(
                "Overlap constraint rejected booking: provider=%s range=%s..%s", provider.id, starts_at, ends_at
            )
            await session.rollback()
            raise SlotConflict() from e
        logger.exception("Appointment insert failed: %s", e)
        await session.rollback()
        raise InternalError() from e
    except OperationalError as e:
        logger.exception("Appointment insert failed: %s", e)
        await session.rollback()
        raise InternalError("Storage unavailable") from e
    await session.refresh(appointment)
    return appointment


async def book_appointment(
    session: AsyncSession,
    client_id: int,
    provider_id: int,
    starts_at: datetime,
    ends_at: datetime,
    now: datetime,
    duration_minutes: int | None = None,
) -> Appointment:
    """Resolve a window for the requested range and create the appointment in it.

    Runs in the caller's transaction; the provider row stays locked until that
    transaction ends so concurrent bookings for one provider cannot interleave.
    """
    starts_at, ends_at, now = to_naive_utc(starts_at), to_naive_utc(ends_at), to_naive_utc(now)
    check_requested_range(starts_at, ends_at, now)
    if duration_minutes is not None and duration_minutes <= 0:
        raise InvalidInput("Duration minutes must be greater than 0")

    client = await repository.get_client(session, client_id)
    if not client:
        raise ClientNotFound(client_id)
    provider = await repository.lock_provider(session, provider_id)
    if not provider:
        raise ProviderNotFound(provider_id)

    if duration_minutes is None:
        duration_minutes = minutes_between(starts_at, ends_at)

    window = await resolve_availability(session, provider, starts_at, ends_at, now)
    appointment = await create_appointment(
        session, client, provider, window, starts_at, ends_at, duration_minutes, now
    )
    logger.info(
        "Booked appointment %s: client=%s provider=%s window=%s range=%s..%s",
        appointment.id,
        client.id,
        provider.id,
        window.id,
        starts_at,
        ends_at,
    )
    return appointment


async def cancel_appointment(session: AsyncSession, appointment_id: int, now: datetime) -> Appointment:
    """Mark an appointment cancelled. Cancelling a cancelled appointment is a no-op."""
    appointment = await repository.get_appointment(session, appointment_id)
    if not appointment:
        raise AppointmentNotFound(appointment_id)
    if appointment.is_cancelled:
        logger.debug("Appointment %s already cancelled", appointment_id)
        return appointment
    appointment.status = AppointmentStatus.CANCELLED.value
    appointment.updated_at = to_naive_utc(now)
    session.add(appointment)
    await session.flush()
    logger.info("Cancelled appointment %s (provider=%s)", appointment.id, appointment.provider_id)
    return appointment

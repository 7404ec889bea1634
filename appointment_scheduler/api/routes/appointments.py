from datetime import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from appointment_scheduler.api.deps import get_now, get_session
from appointment_scheduler.api.schemas.appointment import BookAppointmentRequest, CancelAppointmentResponse
from appointment_scheduler.models import Appointment, AppointmentPublic
from appointment_scheduler.services.appointment_service import book_appointment, cancel_appointment

router = APIRouter(prefix="/appointments", tags=["appointments"])


def _to_public(a: Appointment) -> AppointmentPublic:
    return AppointmentPublic(
        id=a.id,
        client_id=a.client_id,
        provider_id=a.provider_id,
        availability_id=a.availability_id,
        starts_at=a.starts_at,
        ends_at=a.ends_at,
        duration_minutes=a.duration_minutes,
        status=a.status,
        created_at=a.created_at,
    )


@router.post("", response_model=AppointmentPublic, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    body: BookAppointmentRequest,
    session: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_now),
) -> AppointmentPublic:
    appointment = await book_appointment(
        session,
        client_id=body.client_id,
        provider_id=body.provider_id,
        starts_at=body.starts_at,
        ends_at=body.ends_at,
        now=now,
        duration_minutes=body.duration_minutes,
    )
    # Commit before responding so the booking (and release of the provider lock) is visible to the next request
    await session.commit()
    return _to_public(appointment)


@router.delete("/{appointment_id}", response_model=CancelAppointmentResponse)
async def cancel(
    appointment_id: int,
    session: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_now),
) -> CancelAppointmentResponse:
    """Soft-cancel: the row stays, its status becomes cancelled. Repeating the call is harmless."""
    appointment = await cancel_appointment(session, appointment_id, now)
    await session.commit()
    return CancelAppointmentResponse(
        id=appointment.id,
        status=appointment.status,
        cancelled_at=appointment.updated_at,
    )

from datetime import datetime

from pydantic import BaseModel


class BookAppointmentRequest(BaseModel):
    client_id: int
    provider_id: int
    starts_at: datetime  # ISO 8601; naive values are taken as UTC
    ends_at: datetime
    duration_minutes: int | None = None  # derived from the range when omitted


class CancelAppointmentResponse(BaseModel):
    id: int
    status: str
    cancelled_at: datetime
    message: str = "Appointment successfully cancelled"

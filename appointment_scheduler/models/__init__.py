from appointment_scheduler.models.provider import Provider
from appointment_scheduler.models.client import Client
from appointment_scheduler.models.availability import Availability
from appointment_scheduler.models.appointment import (
    OVERLAP_CONSTRAINT_NAME,
    Appointment,
    AppointmentPublic,
    AppointmentStatus,
)

__all__ = [
    "Provider",
    "Client",
    "Availability",
    "Appointment",
    "AppointmentPublic",
    "AppointmentStatus",
    "OVERLAP_CONSTRAINT_NAME",
]

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from appointment_scheduler.models.appointment import Appointment
from appointment_scheduler.models.availability import Availability
from appointment_scheduler.scheduling.time_range import minutes_between, overlaps


class ValidationReason(str, Enum):
    NOT_AFTER_START = "not_after_start"
    DURATION_MISMATCH = "duration_mismatch"
    NON_POSITIVE_DURATION = "non_positive_duration"
    OUTSIDE_WINDOW = "outside_window"
    OVERLAP = "overlap"


REASON_MESSAGES = {
    ValidationReason.NOT_AFTER_START: "Ends at must be after start time",
    ValidationReason.DURATION_MISMATCH: "Duration minutes must match the time range",
    ValidationReason.NON_POSITIVE_DURATION: "Duration minutes must be greater than 0",
    ValidationReason.OUTSIDE_WINDOW: "Appointment must be within the availability window",
    ValidationReason.OVERLAP: "Appointment conflicts with existing appointments",
}


@dataclass
class ValidationResult:
    reasons: list[ValidationReason] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.reasons

    @property
    def only_overlap(self) -> bool:
        return self.reasons == [ValidationReason.OVERLAP]

    @property
    def codes(self) -> list[str]:
        return [r.value for r in self.reasons]

    @property
    def messages(self) -> list[str]:
        return [REASON_MESSAGES[r] for r in self.reasons]


def validate_appointment(
    appointment: Appointment,
    window: Availability,
    provider_appointments: Iterable[Appointment],
) -> ValidationResult:
    """Check an appointment against its window and the provider's other appointments.

    Pure: reads only its arguments. ``provider_appointments`` may include the
    appointment itself and cancelled rows; both are ignored for overlap.
    """
    result = ValidationResult()
    starts_at, ends_at = appointment.starts_at, appointment.ends_at

    if ends_at <= starts_at:
        result.reasons.append(ValidationReason.NOT_AFTER_START)
    elif appointment.duration_minutes != minutes_between(starts_at, ends_at):
        result.reasons.append(ValidationReason.DURATION_MISMATCH)

    if appointment.duration_minutes <= 0:
        result.reasons.append(ValidationReason.NON_POSITIVE_DURATION)

    if window.id != appointment.availability_id or not window.contains_time_range(starts_at, ends_at):
        result.reasons.append(ValidationReason.OUTSIDE_WINDOW)

    if appointment.is_active and ends_at > starts_at:
        for other in provider_appointments:
            if appointment.id is not None and other.id == appointment.id:
                continue
            if not other.is_active or other.provider_id != appointment.provider_id:
                continue
            if overlaps(other.time_range, appointment.time_range):
                result.reasons.append(ValidationReason.OVERLAP)
                break

    return result

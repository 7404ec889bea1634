"""
Domain exceptions for the scheduling engine.

Every expected, caller-recoverable outcome of a scheduling operation is raised
as a ``SchedulingError`` subclass. The HTTP layer converts them to responses in
one place (see ``appointment_scheduler.main``); services never build HTTP errors.
"""

from typing import Any

from fastapi import status


class SchedulingError(Exception):
    """Base exception for all scheduling outcomes."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "code": self.code, "details": self.details}


class NotFound(SchedulingError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, resource_id: Any) -> None:
        super().__init__(
            f"{resource} not found",
            details={"resource": resource, "id": resource_id},
        )


class ProviderNotFound(NotFound):
    def __init__(self, provider_id: Any) -> None:
        super().__init__("Provider", provider_id)


class ClientNotFound(NotFound):
    def __init__(self, client_id: Any) -> None:
        super().__init__("Client", client_id)


class AppointmentNotFound(NotFound):
    def __init__(self, appointment_id: Any) -> None:
        super().__init__("Appointment", appointment_id)


class InvalidInput(SchedulingError):
    """Missing or malformed input (bad datetimes, non-positive duration)."""

    status_code = status.HTTP_400_BAD_REQUEST


class InvalidRange(InvalidInput):
    def __init__(self, message: str = "Start time must be before end time") -> None:
        super().__init__(message)


class PastBooking(SchedulingError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self) -> None:
        super().__init__("Cannot book appointments in the past")


class NoAvailabilityWindow(SchedulingError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self) -> None:
        super().__init__("No availability window found for the requested time slot")


class SlotConflict(SchedulingError):
    """The requested range is taken. Safe for the caller to retry with another slot."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "The requested time slot conflicts with existing appointments") -> None:
        super().__init__(message)


class ValidationFailed(SchedulingError):
    status_code = 422  # Unprocessable Content

    def __init__(self, reasons: list[str], messages: list[str] | None = None) -> None:
        self.reasons = list(reasons)
        super().__init__(
            "Failed to create appointment",
            details={"reasons": self.reasons, "messages": list(messages or [])},
        )


class InternalError(SchedulingError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)


class FeedUnavailable(SchedulingError):
    """The upstream availability feed could not be read."""

    status_code = status.HTTP_502_BAD_GATEWAY

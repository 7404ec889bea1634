from appointment_scheduler.models import Appointment, AppointmentStatus, Availability
from support import at


def _window(**overrides) -> Availability:
    values = dict(id=1, provider_id=1, external_id="slot-1-2030-01-07", starts_at=at(9), ends_at=at(17), source="calendly")
    values.update(overrides)
    return Availability(**values)


def _appointment(start, end, status: str = AppointmentStatus.SCHEDULED.value, provider_id: int = 1) -> Appointment:
    return Appointment(
        id=None,
        client_id=1,
        provider_id=provider_id,
        availability_id=1,
        starts_at=start,
        ends_at=end,
        duration_minutes=60,
        status=status,
    )


def test_contains_time_range() -> None:
    window = _window()

    assert window.contains_time_range(at(9), at(10))
    assert window.contains_time_range(at(16), at(17))
    assert not window.contains_time_range(at(8), at(10))
    assert not window.contains_time_range(at(16), at(18))


def test_is_free_for_empty_window() -> None:
    assert _window().is_free_for(at(10), at(11), [])


def test_is_free_for_rejects_range_outside_window() -> None:
    assert not _window().is_free_for(at(16, 30), at(17, 30), [])


def test_is_free_for_rejects_overlapping_appointment() -> None:
    booked = [_appointment(at(10), at(11))]

    assert not _window().is_free_for(at(10, 30), at(11, 30), booked)


def test_is_free_for_allows_back_to_back() -> None:
    booked = [_appointment(at(10), at(11))]

    assert _window().is_free_for(at(11), at(12), booked)
    assert _window().is_free_for(at(9), at(10), booked)


def test_is_free_for_ignores_cancelled_and_other_providers() -> None:
    booked = [
        _appointment(at(10), at(11), status=AppointmentStatus.CANCELLED.value),
        _appointment(at(10), at(11), provider_id=2),
    ]

    assert _window().is_free_for(at(10), at(11), booked)

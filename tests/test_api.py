import httpx
import pytest
import pytest_asyncio
from sqlalchemy import select

from appointment_scheduler.api.deps import get_now, get_session
from appointment_scheduler.main import app
from appointment_scheduler.models import Appointment, AppointmentStatus
from support import NOW, at


@pytest_asyncio.fixture
async def api(session_maker):
    async def _session():
        async with session_maker() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_now] = lambda: NOW
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def booking_setup(make_provider, make_client, make_window):
    provider = await make_provider()
    client = await make_client()
    window = await make_window(provider, at(9), at(17))
    return provider, client, window


def _booking(provider, client, start, end, **extra) -> dict:
    return {
        "client_id": client.id,
        "provider_id": provider.id,
        "starts_at": start.isoformat() + "Z",
        "ends_at": end.isoformat() + "Z",
        **extra,
    }


@pytest.mark.asyncio
async def test_up(api) -> None:
    resp = await api.get("/up")

    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_book_and_conflict(api, booking_setup) -> None:
    provider, client, window = booking_setup

    resp = await api.post("/api/v1/appointments", json=_booking(provider, client, at(10), at(11)))

    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "scheduled"
    assert body["availability_id"] == window.id
    assert body["duration_minutes"] == 60
    assert body["starts_at"] == "2030-01-07T10:00:00"

    resp = await api.post("/api/v1/appointments", json=_booking(provider, client, at(10, 30), at(11, 30)))

    assert resp.status_code == 409
    assert resp.json()["code"] == "SlotConflict"


@pytest.mark.asyncio
async def test_book_outside_window(api, booking_setup) -> None:
    provider, client, _ = booking_setup

    resp = await api.post("/api/v1/appointments", json=_booking(provider, client, at(17), at(18)))

    assert resp.status_code == 400
    assert resp.json()["code"] == "NoAvailabilityWindow"


@pytest.mark.asyncio
async def test_book_in_the_past(api, booking_setup) -> None:
    provider, client, _ = booking_setup
    past = NOW.replace(hour=9)

    resp = await api.post("/api/v1/appointments", json=_booking(provider, client, past, NOW))

    assert resp.status_code == 400
    assert resp.json()["code"] == "PastBooking"


@pytest.mark.asyncio
async def test_book_duration_mismatch(api, booking_setup) -> None:
    provider, client, _ = booking_setup

    resp = await api.post(
        "/api/v1/appointments", json=_booking(provider, client, at(10), at(11), duration_minutes=45)
    )

    assert resp.status_code == 422
    body = resp.json()
    assert body["code"] == "ValidationFailed"
    assert body["details"]["reasons"] == ["duration_mismatch"]


@pytest.mark.asyncio
async def test_book_unknown_provider(api, booking_setup) -> None:
    provider, client, _ = booking_setup
    payload = _booking(provider, client, at(10), at(11))
    payload["provider_id"] = 999

    resp = await api.post("/api/v1/appointments", json=payload)

    assert resp.status_code == 404
    assert resp.json()["code"] == "ProviderNotFound"


@pytest.mark.asyncio
async def test_book_malformed_datetime(api, booking_setup) -> None:
    provider, client, _ = booking_setup
    payload = _booking(provider, client, at(10), at(11))
    payload["starts_at"] = "next tuesday"

    resp = await api.post("/api/v1/appointments", json=payload)

    assert resp.status_code == 400
    assert resp.json()["code"] == "InvalidInput"


@pytest.mark.asyncio
async def test_cancel_then_rebook(api, session_maker, booking_setup, make_client) -> None:
    provider, client, _ = booking_setup
    other = await make_client("John Doe")
    booked = (await api.post("/api/v1/appointments", json=_booking(provider, client, at(10), at(11)))).json()

    resp = await api.delete(f"/api/v1/appointments/{booked['id']}")

    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"
    assert resp.json()["message"] == "Appointment successfully cancelled"

    # Repeating the cancel is harmless
    assert (await api.delete(f"/api/v1/appointments/{booked['id']}")).status_code == 200

    resp = await api.post("/api/v1/appointments", json=_booking(provider, other, at(10), at(11)))
    assert resp.status_code == 201

    async with session_maker() as s:
        rows = (await s.execute(select(Appointment).order_by(Appointment.id))).scalars().all()
    assert [r.status for r in rows] == [AppointmentStatus.CANCELLED.value, AppointmentStatus.SCHEDULED.value]


@pytest.mark.asyncio
async def test_cancel_unknown(api) -> None:
    resp = await api.delete("/api/v1/appointments/999")

    assert resp.status_code == 404
    assert resp.json()["code"] == "AppointmentNotFound"


@pytest.mark.asyncio
async def test_provider_availabilities(api, booking_setup, make_appointment) -> None:
    provider, client, window = booking_setup
    await make_appointment(client, window, at(10), at(11))
    await make_appointment(client, window, at(14), at(15))

    resp = await api.get(
        f"/api/v1/providers/{provider.id}/availabilities",
        params={"from": "2030-01-07T08:00:00Z", "to": "2030-01-07T18:00:00Z"},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["provider_id"] == provider.id
    assert body["provider_name"] == "Dr. Wilson"
    assert body["from"] == "2030-01-07T08:00:00"
    [listed] = body["availabilities"]
    assert listed["id"] == window.id
    assert listed["total_appointments"] == 2
    assert [s["duration_minutes"] for s in listed["available_slots"]] == [60, 180, 120]


@pytest.mark.asyncio
async def test_provider_availabilities_errors(api, booking_setup) -> None:
    provider, _, _ = booking_setup
    url = f"/api/v1/providers/{provider.id}/availabilities"

    missing = await api.get(url, params={"from": "2030-01-07T08:00:00Z"})
    inverted = await api.get(url, params={"from": "2030-01-07T18:00:00Z", "to": "2030-01-07T08:00:00Z"})
    unknown = await api.get("/api/v1/providers/999/availabilities", params={"from": "2030-01-07T08:00:00Z", "to": "2030-01-07T18:00:00Z"})

    assert missing.status_code == 400
    assert missing.json()["code"] == "InvalidInput"
    assert inverted.status_code == 400
    assert inverted.json()["code"] == "InvalidRange"
    assert unknown.status_code == 404

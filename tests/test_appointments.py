"""Tests for appointment endpoints."""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from ayursutra.core.security import Role
from ayursutra.services.therapy_service import TherapyService
from tests.helpers import auth_headers_for, next_weekday_at

BASE = "/api/v1/appointments"


async def _book(client: AsyncClient, headers: dict, data: dict) -> dict:
    response = await client.post(f"{BASE}/", json=data, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_appointment(
    client: AsyncClient,
    patient_headers: dict,
    booking_data: dict,
) -> None:
    """Patient books a session; duration and price come from the therapy."""
    response = await client.post(f"{BASE}/", json=booking_data, headers=patient_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "scheduled"
    assert data["duration_minutes"] == 60
    assert data["price_amount"] == 2250.0
    assert data["currency"] == "INR"
    assert data["total_sessions"] == 7
    assert data["reminders_sent"] == {"email_24h": False, "email_2h": False, "sms_1h": False}
    assert data["rescheduling_history"] == []
    start = datetime.fromisoformat(data["start_at"])
    assert datetime.fromisoformat(data["end_at"]) - start == timedelta(hours=1)


@pytest.mark.asyncio
async def test_create_appointment_requires_auth(client: AsyncClient, booking_data: dict) -> None:
    response = await client.post(f"{BASE}/", json=booking_data)
    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_patient_cannot_book_for_someone_else(
    client: AsyncClient,
    patient_headers: dict,
    booking_data: dict,
) -> None:
    response = await client.post(
        f"{BASE}/",
        json={**booking_data, "patient_id": str(uuid4())},
        headers=patient_headers,
    )
    assert response.status_code == 403
    assert response.json()["kind"] == "forbidden"


@pytest.mark.asyncio
async def test_create_appointment_in_past(
    client: AsyncClient,
    admin_headers: dict,
    booking_data: dict,
) -> None:
    past = (datetime.fromisoformat(booking_data["start_at"]) - timedelta(days=30)).isoformat()
    response = await client.post(
        f"{BASE}/", json={**booking_data, "start_at": past}, headers=admin_headers
    )
    assert response.status_code == 422
    assert response.json()["kind"] == "validation_error"


@pytest.mark.asyncio
async def test_create_appointment_short_duration(
    client: AsyncClient,
    admin_headers: dict,
    booking_data: dict,
) -> None:
    response = await client.post(
        f"{BASE}/", json={**booking_data, "duration_minutes": 10}, headers=admin_headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_overlapping_booking_conflicts(
    client: AsyncClient,
    admin_headers: dict,
    booking_data: dict,
) -> None:
    """10:00-11:00 is booked; 10:30 conflicts and 11:00 does not."""
    await _book(client, admin_headers, booking_data)
    start = datetime.fromisoformat(booking_data["start_at"])

    response = await client.post(
        f"{BASE}/",
        json={**booking_data, "start_at": (start + timedelta(minutes=30)).isoformat()},
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert response.json()["kind"] == "conflict"

    response = await client.post(
        f"{BASE}/",
        json={**booking_data, "start_at": (start + timedelta(hours=1)).isoformat()},
        headers=admin_headers,
    )
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_get_appointment_access(
    client: AsyncClient,
    patient_headers: dict,
    practitioner_headers: dict,
    booking_data: dict,
) -> None:
    created = await _book(client, patient_headers, booking_data)

    for headers in (patient_headers, practitioner_headers):
        response = await client.get(f"{BASE}/{created['id']}", headers=headers)
        assert response.status_code == 200
        assert response.json()["id"] == created["id"]

    stranger = auth_headers_for(uuid4(), Role.PATIENT)
    response = await client.get(f"{BASE}/{created['id']}", headers=stranger)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_get_unknown_appointment(client: AsyncClient, admin_headers: dict) -> None:
    response = await client.get(f"{BASE}/{uuid4()}", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["kind"] == "not_found"


@pytest.mark.asyncio
async def test_list_appointments_scoped_to_patient(
    client: AsyncClient,
    patient_headers: dict,
    admin_headers: dict,
    booking_data: dict,
) -> None:
    await _book(client, patient_headers, booking_data)

    response = await client.get(f"{BASE}/", headers=patient_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["page"] == 1
    assert data["items"][0]["patient_id"] == booking_data["patient_id"]

    response = await client.get(
        f"{BASE}/", params={"status": "cancelled"}, headers=admin_headers
    )
    assert response.json()["total"] == 0


@pytest.mark.asyncio
async def test_cancel_twice(
    client: AsyncClient,
    patient_headers: dict,
    booking_data: dict,
) -> None:
    """A second cancellation is rejected and the first one is kept."""
    created = await _book(client, patient_headers, booking_data)

    response = await client.post(
        f"{BASE}/{created['id']}/cancel", json={"reason": "Travelling"}, headers=patient_headers
    )
    assert response.status_code == 200
    cancelled = response.json()
    assert cancelled["status"] == "cancelled"
    assert cancelled["cancellation_reason"] == "Travelling"

    response = await client.post(
        f"{BASE}/{created['id']}/cancel", json={"reason": "Again"}, headers=patient_headers
    )
    assert response.status_code == 409
    error = response.json()
    assert error["kind"] == "invalid_state_transition"
    assert error["current_status"] == "cancelled"
    assert error["requested_status"] == "cancelled"

    response = await client.get(f"{BASE}/{created['id']}", headers=patient_headers)
    data = response.json()
    assert data["cancellation_reason"] == "Travelling"
    assert datetime.fromisoformat(data["cancelled_at"]) == datetime.fromisoformat(
        cancelled["cancelled_at"]
    )


@pytest.mark.asyncio
async def test_cancel_requires_reason(
    client: AsyncClient,
    patient_headers: dict,
    booking_data: dict,
) -> None:
    created = await _book(client, patient_headers, booking_data)
    response = await client.post(
        f"{BASE}/{created['id']}/cancel", json={"reason": ""}, headers=patient_headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_reschedule_records_history(
    client: AsyncClient,
    patient_headers: dict,
    booking_data: dict,
) -> None:
    created = await _book(client, patient_headers, booking_data)
    new_start = next_weekday_at(1, 11)

    response = await client.post(
        f"{BASE}/{created['id']}/reschedule",
        json={"new_start_at": new_start.isoformat(), "reason": "Work trip"},
        headers=patient_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "scheduled"
    assert datetime.fromisoformat(data["start_at"]) == new_start
    assert len(data["rescheduling_history"]) == 1

    response = await client.get(f"{BASE}/{created['id']}", headers=patient_headers)
    history = response.json()["rescheduling_history"]
    assert len(history) == 1
    assert history[0]["reason"] == "Work trip"
    assert datetime.fromisoformat(history[0]["original_start_at"]) == datetime.fromisoformat(
        booking_data["start_at"]
    )
    assert datetime.fromisoformat(history[0]["new_start_at"]) == new_start


@pytest.mark.asyncio
async def test_reschedule_into_conflict_leaves_appointment_unchanged(
    client: AsyncClient,
    admin_headers: dict,
    booking_data: dict,
) -> None:
    start = datetime.fromisoformat(booking_data["start_at"])
    await _book(client, admin_headers, booking_data)
    later = await _book(
        client,
        admin_headers,
        {**booking_data, "start_at": (start + timedelta(hours=4)).isoformat()},
    )

    response = await client.post(
        f"{BASE}/{later['id']}/reschedule",
        json={"new_start_at": (start + timedelta(minutes=15)).isoformat()},
        headers=admin_headers,
    )
    assert response.status_code == 409

    response = await client.get(f"{BASE}/{later['id']}", headers=admin_headers)
    data = response.json()
    assert datetime.fromisoformat(data["start_at"]) == start + timedelta(hours=4)
    assert data["rescheduling_history"] == []


@pytest.mark.asyncio
async def test_status_flow_and_feedback(
    client: AsyncClient,
    patient_headers: dict,
    practitioner_headers: dict,
    booking_data: dict,
) -> None:
    created = await _book(client, patient_headers, booking_data)
    url = f"{BASE}/{created['id']}"

    response = await client.post(f"{url}/confirm", headers=patient_headers)
    assert response.status_code == 403

    response = await client.post(f"{url}/confirm", headers=practitioner_headers)
    assert response.json()["status"] == "confirmed"

    response = await client.post(f"{url}/start", headers=practitioner_headers)
    assert response.json()["status"] == "in-progress"

    response = await client.post(
        f"{url}/complete",
        json={"practitioner_notes": "Responded well to oil therapy"},
        headers=practitioner_headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "completed"

    response = await client.post(
        f"{url}/feedback", json={"rating": 5, "comment": "Wonderful"}, headers=practitioner_headers
    )
    assert response.status_code == 403

    response = await client.post(
        f"{url}/feedback", json={"rating": 5, "comment": "Wonderful"}, headers=patient_headers
    )
    assert response.status_code == 200
    assert response.json()["feedback_rating"] == 5

    response = await client.post(f"{url}/feedback", json={"rating": 4}, headers=patient_headers)
    assert response.status_code == 422

    response = await client.post(
        f"{url}/cancel", json={"reason": "Too late"}, headers=patient_headers
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_completion_refreshes_therapy_popularity(
    client: AsyncClient,
    admin_headers: dict,
    booking_data: dict,
) -> None:
    created = await _book(client, admin_headers, booking_data)

    response = await client.post(f"{BASE}/{created['id']}/complete", json={}, headers=admin_headers)
    assert response.status_code == 200

    response = await client.get(f"/api/v1/therapies/{booking_data['therapy_id']}")
    assert response.json()["popularity"] == 2.0


@pytest.mark.asyncio
async def test_completion_stands_when_popularity_refresh_fails(
    client: AsyncClient,
    admin_headers: dict,
    booking_data: dict,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def database_gone(self, db, therapy_id):
        raise OperationalError("SELECT", {}, Exception("connection reset"))

    monkeypatch.setattr(TherapyService, "recompute_popularity", database_gone)
    created = await _book(client, admin_headers, booking_data)

    response = await client.post(f"{BASE}/{created['id']}/complete", json={}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "completed"

    response = await client.get(f"{BASE}/{created['id']}", headers=admin_headers)
    assert response.json()["status"] == "completed"


@pytest.mark.asyncio
async def test_no_show(
    client: AsyncClient,
    practitioner_headers: dict,
    admin_headers: dict,
    booking_data: dict,
) -> None:
    created = await _book(client, admin_headers, booking_data)
    response = await client.post(f"{BASE}/{created['id']}/no-show", headers=practitioner_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "no-show"


@pytest.mark.asyncio
async def test_check_availability(
    client: AsyncClient,
    patient_headers: dict,
    booking_data: dict,
) -> None:
    practitioner_id = booking_data["practitioner_id"]

    response = await client.post(
        f"{BASE}/availability",
        json={
            "practitioner_id": practitioner_id,
            "start_at": next_weekday_at(0, 13, 30).isoformat(),
            "duration_minutes": 30,
        },
        headers=patient_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["within_working_hours"] is False
    assert data["available"] is False

    await _book(client, patient_headers, booking_data)
    response = await client.post(
        f"{BASE}/availability",
        json={
            "practitioner_id": practitioner_id,
            "start_at": next_weekday_at(0, 10, 30).isoformat(),
            "duration_minutes": 60,
        },
        headers=patient_headers,
    )
    data = response.json()
    assert data["within_working_hours"] is True
    assert data["has_conflict"] is True
    assert data["available"] is False

    response = await client.post(
        f"{BASE}/availability",
        json={
            "practitioner_id": practitioner_id,
            "start_at": next_weekday_at(0, 14).isoformat(),
            "duration_minutes": 60,
        },
        headers=patient_headers,
    )
    assert response.json()["available"] is True

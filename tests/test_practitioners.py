"""Tests for practitioner endpoints."""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from ayursutra.core.security import Role
from tests.helpers import CLINIC_TZ, auth_headers_for, next_weekday_at

BASE = "/api/v1/practitioners"


@pytest.fixture
def practitioner_data() -> dict:
    return {
        "first_name": "Suresh",
        "last_name": "Nair",
        "title": "Vaidya",
        "specializations": ["Shirodhara", "Nasya"],
        "experience_years": 20,
        "phone": "+919800000010",
        "email": "suresh@example.com",
        "languages": ["Malayalam", "English"],
        "availability": {
            "sunday": {
                "available": True,
                "start_time": "08:00",
                "end_time": "12:00",
                "break_start": None,
                "break_end": None,
            }
        },
    }


def _monday() -> str:
    return next_weekday_at(0, 10).astimezone(CLINIC_TZ).date().isoformat()


@pytest.mark.asyncio
async def test_create_practitioner(
    client: AsyncClient,
    admin_headers: dict,
    practitioner_data: dict,
) -> None:
    response = await client.post(f"{BASE}/", json=practitioner_data, headers=admin_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["full_name"] == "Suresh Nair"
    assert data["status"] == "active"
    assert data["rating_average"] == 0.0
    assert data["availability"]["sunday"]["available"] is True
    assert data["availability"]["monday"]["start_time"] == "09:00"
    assert set(data["availability"]) == {
        "monday",
        "tuesday",
        "wednesday",
        "thursday",
        "friday",
        "saturday",
        "sunday",
    }


@pytest.mark.asyncio
async def test_create_practitioner_requires_admin(
    client: AsyncClient,
    patient_headers: dict,
    practitioner_data: dict,
) -> None:
    response = await client.post(f"{BASE}/", json=practitioner_data, headers=patient_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_practitioner_rejects_bad_availability(
    client: AsyncClient,
    admin_headers: dict,
    practitioner_data: dict,
) -> None:
    practitioner_data["availability"] = {"monday": {"start_time": "18:00", "end_time": "09:00"}}
    response = await client.post(f"{BASE}/", json=practitioner_data, headers=admin_headers)
    assert response.status_code == 422
    assert response.json()["kind"] == "validation_error"


@pytest.mark.asyncio
async def test_get_practitioner_is_public(client: AsyncClient, test_practitioner: dict) -> None:
    response = await client.get(f"{BASE}/{test_practitioner['id']}")
    assert response.status_code == 200
    data = response.json()
    assert data["full_name"] == "Anjali Verma"
    assert data["rating_breakdown"] == {
        "professionalism": 0.0,
        "expertise": 0.0,
        "communication": 0.0,
        "punctuality": 0.0,
    }


@pytest.mark.asyncio
async def test_get_unknown_practitioner(client: AsyncClient) -> None:
    response = await client.get(f"{BASE}/{uuid4()}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_and_filter_by_specialization(
    client: AsyncClient,
    patient_headers: dict,
    admin_headers: dict,
    practitioner_data: dict,
    test_practitioner: dict,
) -> None:
    await client.post(f"{BASE}/", json=practitioner_data, headers=admin_headers)

    response = await client.get(f"{BASE}/", headers=patient_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    # More experienced first when ratings tie
    assert [p["last_name"] for p in data["items"]] == ["Nair", "Verma"]

    response = await client.get(f"{BASE}/specialization/panchakarma", headers=patient_headers)
    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["last_name"] == "Verma"


@pytest.mark.asyncio
async def test_ratings_update_average(
    client: AsyncClient,
    patient_headers: dict,
    test_practitioner: dict,
) -> None:
    url = f"{BASE}/{test_practitioner['id']}/ratings"

    response = await client.post(
        url, json={"rating": 4, "breakdown": {"expertise": 4}}, headers=patient_headers
    )
    assert response.status_code == 200

    response = await client.post(
        url, json={"rating": 5, "breakdown": {"expertise": 5}}, headers=patient_headers
    )
    data = response.json()
    assert data["rating_average"] == 4.5
    assert data["rating_count"] == 2
    assert data["rating_breakdown"]["expertise"] == 4.5
    assert data["rating_breakdown"]["punctuality"] == 0.0


@pytest.mark.asyncio
async def test_rating_out_of_range(
    client: AsyncClient,
    patient_headers: dict,
    test_practitioner: dict,
) -> None:
    response = await client.post(
        f"{BASE}/{test_practitioner['id']}/ratings", json={"rating": 6}, headers=patient_headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_available_practitioners(
    client: AsyncClient,
    patient_headers: dict,
    test_practitioner: dict,
) -> None:
    response = await client.get(
        f"{BASE}/available", params={"date": _monday(), "time": "10:00"}, headers=patient_headers
    )
    assert response.status_code == 200
    assert [p["id"] for p in response.json()] == [str(test_practitioner["id"])]

    response = await client.get(
        f"{BASE}/available", params={"date": _monday(), "time": "13:30"}, headers=patient_headers
    )
    assert response.json() == []


@pytest.mark.asyncio
async def test_practitioner_updates_own_availability(
    client: AsyncClient,
    practitioner_headers: dict,
    patient_headers: dict,
    test_practitioner: dict,
) -> None:
    response = await client.put(
        f"{BASE}/{test_practitioner['id']}/availability",
        json={"availability": {"monday": {"available": False}}},
        headers=practitioner_headers,
    )
    assert response.status_code == 200
    availability = response.json()["availability"]
    assert availability["monday"]["available"] is False
    assert availability["tuesday"]["available"] is True

    response = await client.get(
        f"{BASE}/available", params={"date": _monday(), "time": "10:00"}, headers=patient_headers
    )
    assert response.json() == []


@pytest.mark.asyncio
async def test_availability_rejects_unknown_weekday(
    client: AsyncClient,
    admin_headers: dict,
    test_practitioner: dict,
) -> None:
    response = await client.put(
        f"{BASE}/{test_practitioner['id']}/availability",
        json={"availability": {"someday": {"available": True}}},
        headers=admin_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_practitioner_cannot_edit_others(
    client: AsyncClient,
    test_practitioner: dict,
    practitioner_headers: dict,
) -> None:
    other = auth_headers_for(uuid4(), Role.PRACTITIONER)
    response = await client.put(
        f"{BASE}/{test_practitioner['id']}", json={"bio": "Hijacked"}, headers=other
    )
    assert response.status_code == 403

    response = await client.put(
        f"{BASE}/{test_practitioner['id']}", json={"status": "suspended"}, headers=practitioner_headers
    )
    assert response.status_code == 403

    response = await client.put(
        f"{BASE}/{test_practitioner['id']}",
        json={"bio": "Kerala trained Panchakarma specialist"},
        headers=practitioner_headers,
    )
    assert response.status_code == 200
    assert response.json()["bio"] == "Kerala trained Panchakarma specialist"


@pytest.mark.asyncio
async def test_deactivate_practitioner(
    client: AsyncClient,
    admin_headers: dict,
    test_practitioner: dict,
) -> None:
    response = await client.delete(f"{BASE}/{test_practitioner['id']}", headers=admin_headers)
    assert response.status_code == 200

    response = await client.get(f"{BASE}/", headers=admin_headers)
    assert response.json()["total"] == 0

    response = await client.get(
        f"{BASE}/", params={"include_inactive": True}, headers=admin_headers
    )
    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["status"] == "inactive"

    response = await client.delete(f"{BASE}/{uuid4()}", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_inactive_practitioner_cannot_be_booked(
    client: AsyncClient,
    admin_headers: dict,
    booking_data: dict,
) -> None:
    await client.delete(f"{BASE}/{booking_data['practitioner_id']}", headers=admin_headers)

    response = await client.post("/api/v1/appointments/", json=booking_data, headers=admin_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_practitioner_upcoming_appointments(
    client: AsyncClient,
    practitioner_headers: dict,
    patient_headers: dict,
    booking_data: dict,
) -> None:
    await client.post("/api/v1/appointments/", json=booking_data, headers=patient_headers)

    url = f"{BASE}/{booking_data['practitioner_id']}/appointments"
    response = await client.get(url, headers=practitioner_headers)
    assert response.status_code == 200
    assert len(response.json()) == 1

    response = await client.get(url, headers=patient_headers)
    assert response.status_code == 403

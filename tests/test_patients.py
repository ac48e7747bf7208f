"""Tests for patient endpoints."""

from datetime import date, timedelta
from uuid import uuid4

import pytest
from httpx import AsyncClient

from ayursutra.services.patient_service import age_on

BASE = "/api/v1/patients"


@pytest.fixture
def patient_data() -> dict:
    return {
        "first_name": "Meera",
        "last_name": "Iyer",
        "date_of_birth": "1985-03-02",
        "gender": "female",
        "phone": "+919800000020",
        "email": "meera@example.com",
        "emergency_contact": {"name": "Arjun Iyer", "relationship": "spouse", "phone": "+919800000021"},
        "medical_history": {"allergies": ["sesame"]},
    }


def test_age_on() -> None:
    born = date(1990, 5, 17)
    assert age_on(born, date(2030, 5, 16)) == 39
    assert age_on(born, date(2030, 5, 17)) == 40


@pytest.mark.asyncio
async def test_create_patient(client: AsyncClient, admin_headers: dict, patient_data: dict) -> None:
    response = await client.post(f"{BASE}/", json=patient_data, headers=admin_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["full_name"] == "Meera Iyer"
    assert data["status"] == "active"
    assert data["age"] >= 40
    assert data["emergency_contact"]["name"] == "Arjun Iyer"


@pytest.mark.asyncio
async def test_create_patient_with_future_birth_date(
    client: AsyncClient,
    admin_headers: dict,
    patient_data: dict,
) -> None:
    patient_data["date_of_birth"] = (date.today() + timedelta(days=30)).isoformat()
    response = await client.post(f"{BASE}/", json=patient_data, headers=admin_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_patient_requires_admin(
    client: AsyncClient,
    patient_headers: dict,
    patient_data: dict,
) -> None:
    response = await client.post(f"{BASE}/", json=patient_data, headers=patient_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_patient_sees_only_own_record(
    client: AsyncClient,
    patient_headers: dict,
    admin_headers: dict,
    test_patient: dict,
    patient_data: dict,
) -> None:
    created = (await client.post(f"{BASE}/", json=patient_data, headers=admin_headers)).json()

    response = await client.get(f"{BASE}/", headers=patient_headers)
    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["id"] == str(test_patient["id"])

    response = await client.get(f"{BASE}/{test_patient['id']}", headers=patient_headers)
    assert response.status_code == 200

    response = await client.get(f"{BASE}/{created['id']}", headers=patient_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_staff_search_patients(
    client: AsyncClient,
    practitioner_headers: dict,
    admin_headers: dict,
    test_patient: dict,
    patient_data: dict,
) -> None:
    await client.post(f"{BASE}/", json=patient_data, headers=admin_headers)

    response = await client.get(f"{BASE}/", headers=practitioner_headers)
    assert response.json()["total"] == 2

    response = await client.get(f"{BASE}/", params={"search": "iyer"}, headers=practitioner_headers)
    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["first_name"] == "Meera"


@pytest.mark.asyncio
async def test_patient_updates_own_record(
    client: AsyncClient,
    patient_headers: dict,
    test_patient: dict,
) -> None:
    url = f"{BASE}/{test_patient['id']}"

    response = await client.put(url, json={"alternate_phone": "+919800000099"}, headers=patient_headers)
    assert response.status_code == 200
    assert response.json()["alternate_phone"] == "+919800000099"

    response = await client.put(url, json={"status": "suspended"}, headers=patient_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_update_unknown_patient(client: AsyncClient, admin_headers: dict) -> None:
    response = await client.put(f"{BASE}/{uuid4()}", json={"notes": "n/a"}, headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_patient_upcoming_appointments(
    client: AsyncClient,
    patient_headers: dict,
    booking_data: dict,
) -> None:
    booked = await client.post("/api/v1/appointments/", json=booking_data, headers=patient_headers)
    assert booked.status_code == 201

    response = await client.get(
        f"{BASE}/{booking_data['patient_id']}/appointments", headers=patient_headers
    )
    assert response.status_code == 200
    items = response.json()
    assert [a["id"] for a in items] == [booked.json()["id"]]

    await client.post(
        f"/api/v1/appointments/{booked.json()['id']}/cancel",
        json={"reason": "Feeling better"},
        headers=patient_headers,
    )
    response = await client.get(
        f"{BASE}/{booking_data['patient_id']}/appointments", headers=patient_headers
    )
    assert response.json() == []


@pytest.mark.asyncio
async def test_create_patient_with_ayurvedic_profile(
    client: AsyncClient,
    admin_headers: dict,
    test_practitioner: dict,
    patient_data: dict,
) -> None:
    patient_data["ayurvedic_profile"] = {
        "constitution": {"vata": 30, "pitta": 50, "kapha": 20},
        "current_imbalance": "pitta",
        "pulse_reading": "Sharp, jumping",
        "last_assessment_date": "2026-01-15",
        "assessed_by": str(test_practitioner["id"]),
    }
    response = await client.post(f"{BASE}/", json=patient_data, headers=admin_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["dominant_constitution"] == "pitta"
    assert data["ayurvedic_profile"]["constitution"] == {"vata": 30, "pitta": 50, "kapha": 20}
    assert data["ayurvedic_profile"]["last_assessment_date"] == "2026-01-15"

    response = await client.get(f"{BASE}/{data['id']}", headers=admin_headers)
    assert response.json()["dominant_constitution"] == "pitta"


@pytest.mark.asyncio
async def test_patient_without_profile_has_no_dominant_dosha(
    client: AsyncClient,
    admin_headers: dict,
    test_patient: dict,
) -> None:
    response = await client.get(f"{BASE}/{test_patient['id']}", headers=admin_headers)
    assert response.json()["dominant_constitution"] is None


@pytest.mark.asyncio
async def test_constitution_must_sum_to_about_100(
    client: AsyncClient,
    admin_headers: dict,
    test_patient: dict,
    patient_data: dict,
) -> None:
    profile = {"constitution": {"vata": 60, "pitta": 30, "kapha": 20}}

    response = await client.post(
        f"{BASE}/", json={**patient_data, "ayurvedic_profile": profile}, headers=admin_headers
    )
    assert response.status_code == 422

    response = await client.put(
        f"{BASE}/{test_patient['id']}", json={"ayurvedic_profile": profile}, headers=admin_headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_update_ayurvedic_profile(
    client: AsyncClient,
    admin_headers: dict,
    test_patient: dict,
) -> None:
    response = await client.put(
        f"{BASE}/{test_patient['id']}",
        json={"ayurvedic_profile": {"constitution": {"vata": 20, "pitta": 25, "kapha": 57}}},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["dominant_constitution"] == "kapha"
    assert data["ayurvedic_profile"]["current_imbalance"] == "balanced"


@pytest.mark.asyncio
async def test_admin_deactivates_patient(
    client: AsyncClient,
    admin_headers: dict,
    practitioner_headers: dict,
    test_patient: dict,
) -> None:
    response = await client.delete(f"{BASE}/{test_patient['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Patient profile deactivated successfully"}

    response = await client.get(f"{BASE}/{test_patient['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "inactive"

    response = await client.get(f"{BASE}/", headers=practitioner_headers)
    assert response.json()["total"] == 0


@pytest.mark.asyncio
async def test_deactivate_patient_requires_admin(
    client: AsyncClient,
    patient_headers: dict,
    test_patient: dict,
) -> None:
    response = await client.delete(f"{BASE}/{test_patient['id']}", headers=patient_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_deactivate_unknown_patient(client: AsyncClient, admin_headers: dict) -> None:
    response = await client.delete(f"{BASE}/{uuid4()}", headers=admin_headers)
    assert response.status_code == 404

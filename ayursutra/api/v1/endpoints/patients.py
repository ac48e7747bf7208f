"""Patient endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from ayursutra.core.exceptions import ForbiddenException, NotFoundError
from ayursutra.core.security import Role
from ayursutra.dependencies import Actor, ActorScope, AdminUser, ClockDep, DatabaseSession
from ayursutra.schemas.appointments import AppointmentResponse
from ayursutra.schemas.patients import (
    PatientCreate,
    PatientListResponse,
    PatientResponse,
    PatientUpdate,
)
from ayursutra.services.patient_service import PatientService

router = APIRouter()


def _ensure_can_view(actor: ActorScope, patient_id: UUID) -> None:
    if actor.user.role == Role.PATIENT and actor.patient_id != patient_id:
        raise ForbiddenException("Access denied")


@router.get(
    "/",
    response_model=PatientListResponse,
    status_code=status.HTTP_200_OK,
    summary="List patients",
)
async def list_patients(
    actor: Actor,
    db: DatabaseSession,
    search: str | None = Query(None, max_length=100),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
) -> dict:
    """
    List active patients.

    Patients only see their own record; practitioners and admins see all.
    """
    if actor.user.role == Role.PATIENT:
        patient = (
            await PatientService.get_patient_by_id(db, actor.patient_id)
            if actor.patient_id
            else None
        )
        if patient is None:
            raise NotFoundError("Patient profile not found")
        return {"total": 1, "items": [patient]}

    total, items = await PatientService.get_patients(db, skip=skip, limit=limit, search=search)
    return {"total": total, "items": items}


@router.post(
    "/",
    response_model=PatientResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register patient",
)
async def create_patient(
    data: PatientCreate,
    admin: AdminUser,
    db: DatabaseSession,
) -> dict:
    """Register a patient (admin only)."""
    return await PatientService.create_patient(db, data)


@router.get(
    "/{patient_id}",
    response_model=PatientResponse,
    status_code=status.HTTP_200_OK,
    summary="Get patient by ID",
)
async def get_patient(patient_id: UUID, actor: Actor, db: DatabaseSession) -> dict:
    """Get a patient record; patients can only read their own."""
    _ensure_can_view(actor, patient_id)
    patient = await PatientService.get_patient_by_id(db, patient_id)
    if not patient:
        raise NotFoundError("Patient not found")
    return patient


@router.put(
    "/{patient_id}",
    response_model=PatientResponse,
    status_code=status.HTTP_200_OK,
    summary="Update patient",
)
async def update_patient(
    patient_id: UUID,
    data: PatientUpdate,
    actor: Actor,
    db: DatabaseSession,
) -> dict:
    """Update a patient record; patients can only edit their own and not its status."""
    _ensure_can_view(actor, patient_id)
    if data.status is not None and not actor.user.is_admin:
        raise ForbiddenException("Only admins can change patient status")
    return await PatientService.update_patient(db, patient_id, data)


@router.delete(
    "/{patient_id}",
    status_code=status.HTTP_200_OK,
    summary="Deactivate patient",
)
async def deactivate_patient(
    patient_id: UUID,
    admin: AdminUser,
    db: DatabaseSession,
) -> dict[str, str]:
    """Soft delete a patient by marking the record inactive (admin only)."""
    if not await PatientService.deactivate_patient(db, patient_id):
        raise NotFoundError("Patient not found")
    return {"message": "Patient profile deactivated successfully"}


@router.get(
    "/{patient_id}/appointments",
    response_model=list[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    summary="Upcoming appointments of a patient",
)
async def patient_appointments(
    patient_id: UUID,
    actor: Actor,
    db: DatabaseSession,
    clock: ClockDep,
) -> list[AppointmentResponse]:
    """Scheduled and confirmed appointments from now on."""
    _ensure_can_view(actor, patient_id)
    if not await PatientService.get_patient_by_id(db, patient_id):
        raise NotFoundError("Patient not found")

    items = await PatientService.get_upcoming_appointments(db, patient_id, clock.now())
    return [AppointmentResponse.model_validate(a) for a in items]

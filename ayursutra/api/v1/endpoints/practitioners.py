"""Practitioner endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from ayursutra.core.exceptions import ForbiddenException, NotFoundError
from ayursutra.core.security import Role
from ayursutra.dependencies import (
    Actor,
    ActorScope,
    AdminUser,
    Cache,
    ClockDep,
    CurrentUser,
    DatabaseSession,
)
from ayursutra.schemas.appointments import AppointmentResponse
from ayursutra.schemas.practitioners import (
    AvailabilityUpdate,
    PractitionerCreate,
    PractitionerListResponse,
    PractitionerResponse,
    PractitionerUpdate,
    RatingSubmit,
)
from ayursutra.services.practitioner_service import PractitionerService

router = APIRouter()


@router.get(
    "/",
    response_model=PractitionerListResponse,
    status_code=status.HTTP_200_OK,
    summary="List practitioners",
)
async def list_practitioners(
    current_user: CurrentUser,
    db: DatabaseSession,
    cache: Cache,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    include_inactive: bool = Query(False),
) -> dict:
    """
    List practitioners, best rated and most experienced first.

    Only admins may include inactive practitioners.
    """
    total, items = await PractitionerService(cache).get_practitioners(
        db,
        skip=skip,
        limit=limit,
        include_inactive=include_inactive and current_user.is_admin,
    )
    return {"total": total, "items": items}


@router.post(
    "/",
    response_model=PractitionerResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create practitioner profile",
)
async def create_practitioner(
    data: PractitionerCreate,
    admin: AdminUser,
    db: DatabaseSession,
    cache: Cache,
) -> dict:
    """Create a practitioner profile (admin only)."""
    return await PractitionerService(cache).create_practitioner(db, data)


@router.get(
    "/available",
    response_model=list[PractitionerResponse],
    status_code=status.HTTP_200_OK,
    summary="Practitioners available at a date and time",
)
async def available_practitioners(
    current_user: CurrentUser,
    db: DatabaseSession,
    cache: Cache,
    on: date = Query(..., alias="date", description="Local date, YYYY-MM-DD"),
    time: str = Query(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$", description="Local time, HH:MM"),
) -> list[dict]:
    """Active practitioners whose working hours cover the given local date and time."""
    return await PractitionerService(cache).find_available_practitioners(db, on, time)


@router.get(
    "/specialization/{specialization}",
    response_model=PractitionerListResponse,
    status_code=status.HTTP_200_OK,
    summary="Practitioners by specialization",
)
async def practitioners_by_specialization(
    specialization: str,
    current_user: CurrentUser,
    db: DatabaseSession,
    cache: Cache,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
) -> dict:
    """Active practitioners offering a specialization, best rated first."""
    total, items = await PractitionerService(cache).get_practitioners(
        db, skip=skip, limit=limit, specialization=specialization
    )
    return {"total": total, "items": items}


@router.get(
    "/{practitioner_id}",
    response_model=PractitionerResponse,
    status_code=status.HTTP_200_OK,
    summary="Get practitioner by ID",
)
async def get_practitioner(
    practitioner_id: UUID,
    db: DatabaseSession,
    cache: Cache,
) -> dict:
    """Public practitioner profile."""
    practitioner = await PractitionerService(cache).get_practitioner_by_id(db, practitioner_id)
    if not practitioner:
        raise NotFoundError("Practitioner not found")
    return practitioner


def _ensure_can_edit(actor: ActorScope, practitioner_id: UUID) -> None:
    if actor.user.is_admin:
        return
    if actor.user.role != Role.PRACTITIONER or actor.practitioner_id != practitioner_id:
        raise ForbiddenException("Access denied")


@router.put(
    "/{practitioner_id}",
    response_model=PractitionerResponse,
    status_code=status.HTTP_200_OK,
    summary="Update practitioner profile",
)
async def update_practitioner(
    practitioner_id: UUID,
    data: PractitionerUpdate,
    actor: Actor,
    db: DatabaseSession,
    cache: Cache,
) -> dict:
    """Update a profile; practitioners can only edit their own."""
    _ensure_can_edit(actor, practitioner_id)
    if data.status is not None and not actor.user.is_admin:
        raise ForbiddenException("Only admins can change practitioner status")

    practitioner = await PractitionerService(cache).update_practitioner(db, practitioner_id, data)
    if not practitioner:
        raise NotFoundError("Practitioner not found")
    return practitioner


@router.delete(
    "/{practitioner_id}",
    status_code=status.HTTP_200_OK,
    summary="Deactivate practitioner",
)
async def deactivate_practitioner(
    practitioner_id: UUID,
    admin: AdminUser,
    db: DatabaseSession,
    cache: Cache,
) -> dict[str, str]:
    """Soft delete a practitioner by marking them inactive (admin only)."""
    if not await PractitionerService(cache).deactivate_practitioner(db, practitioner_id):
        raise NotFoundError("Practitioner not found")
    return {"message": "Practitioner profile deactivated successfully"}


@router.put(
    "/{practitioner_id}/availability",
    response_model=PractitionerResponse,
    status_code=status.HTTP_200_OK,
    summary="Update weekly availability",
)
async def update_availability(
    practitioner_id: UUID,
    data: AvailabilityUpdate,
    actor: Actor,
    db: DatabaseSession,
    cache: Cache,
) -> dict:
    """Replace the given weekdays of the practitioner's weekly template."""
    _ensure_can_edit(actor, practitioner_id)
    availability = {day: schedule.model_dump() for day, schedule in data.availability.items()}
    return await PractitionerService(cache).update_availability(db, practitioner_id, availability)


@router.post(
    "/{practitioner_id}/ratings",
    response_model=PractitionerResponse,
    status_code=status.HTTP_200_OK,
    summary="Rate practitioner",
)
async def rate_practitioner(
    practitioner_id: UUID,
    data: RatingSubmit,
    current_user: CurrentUser,
    db: DatabaseSession,
    cache: Cache,
) -> dict:
    """Fold one review into the practitioner's rating aggregate."""
    return await PractitionerService(cache).update_rating(
        db, practitioner_id, data.rating, data.breakdown
    )


@router.get(
    "/{practitioner_id}/appointments",
    response_model=list[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    summary="Upcoming appointments of a practitioner",
)
async def practitioner_appointments(
    practitioner_id: UUID,
    actor: Actor,
    db: DatabaseSession,
    cache: Cache,
    clock: ClockDep,
) -> list[AppointmentResponse]:
    """Scheduled and confirmed appointments from now on (the practitioner or admins)."""
    _ensure_can_edit(actor, practitioner_id)
    service = PractitionerService(cache)
    if not await service.get_practitioner_by_id(db, practitioner_id):
        raise NotFoundError("Practitioner not found")

    items = await service.get_upcoming_appointments(db, practitioner_id, clock.now())
    return [AppointmentResponse.model_validate(a) for a in items]

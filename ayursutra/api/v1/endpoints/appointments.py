"""Appointment endpoints."""

from datetime import datetime
from uuid import UUID

import structlog
from fastapi import APIRouter, Query, status
from sqlalchemy.exc import SQLAlchemyError

from ayursutra.core.entities import Appointment
from ayursutra.core.exceptions import AppException, ForbiddenException, NotFoundError
from ayursutra.core.security import Role
from ayursutra.dependencies import (
    Actor,
    ActorScope,
    AppointmentServiceDep,
    Cache,
    DatabaseSession,
)
from ayursutra.schemas.appointments import (
    AppointmentCancel,
    AppointmentComplete,
    AppointmentCreate,
    AppointmentFeedback,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentReschedule,
    AppointmentResponse,
    AppointmentStatus,
    AvailabilityCheckRequest,
    AvailabilityCheckResponse,
)
from ayursutra.services.appointment_service import AppointmentService
from ayursutra.services.therapy_service import TherapyService

logger = structlog.get_logger()

router = APIRouter()


def _ensure_staff(actor: ActorScope) -> None:
    if actor.user.role == Role.PATIENT:
        raise ForbiddenException("Only practitioners and admins can perform this action")


async def _get_accessible(
    service: AppointmentService,
    appointment_id: UUID,
    actor: ActorScope,
) -> Appointment:
    appointment = await service.get_appointment(appointment_id)
    actor.ensure_access(appointment)
    return appointment


@router.post(
    "/availability",
    response_model=AvailabilityCheckResponse,
    status_code=status.HTTP_200_OK,
    summary="Check practitioner availability",
)
async def check_availability(
    data: AvailabilityCheckRequest,
    actor: Actor,
    service: AppointmentServiceDep,
) -> dict:
    """
    Check whether a practitioner can take a booking at a given time.

    A slot is available only when it falls inside the practitioner's working
    hours and does not overlap another active appointment.
    """
    return await service.check_availability(
        data.practitioner_id, data.start_at, data.duration_minutes
    )


@router.post(
    "/",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book appointment",
)
async def create_appointment(
    data: AppointmentCreate,
    actor: Actor,
    service: AppointmentServiceDep,
):
    """
    Book a new appointment.

    Patients can only book for themselves and practitioners only on their
    own calendar; admins can book for anyone.

    Returns:
        Created appointment

    Raises:
        ConflictError: If the practitioner is already booked for an overlapping slot
    """
    if actor.user.role == Role.PATIENT:
        if actor.patient_id is None:
            raise NotFoundError("Patient profile not found")
        if data.patient_id != actor.patient_id:
            raise ForbiddenException("Patients can only book appointments for themselves")
    elif actor.user.role == Role.PRACTITIONER and data.practitioner_id != actor.practitioner_id:
        raise ForbiddenException("Practitioners can only book on their own calendar")

    appointment = await service.create_appointment(data, created_by=actor.user.user_id)
    return AppointmentResponse.model_validate(appointment)


@router.get(
    "/",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    summary="List appointments",
)
async def list_appointments(
    actor: Actor,
    service: AppointmentServiceDep,
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    patient_id: UUID | None = Query(None),
    practitioner_id: UUID | None = Query(None),
    therapy_id: UUID | None = Query(None),
    from_date: datetime | None = Query(None),
    to_date: datetime | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> AppointmentListResponse:
    """
    List appointments visible to the caller, ordered by start time.

    Patients see their own appointments and practitioners their own calendar.
    """
    if actor.user.role == Role.PATIENT:
        if actor.patient_id is None:
            raise NotFoundError("Patient profile not found")
        patient_id = actor.patient_id
    elif actor.user.role == Role.PRACTITIONER:
        if actor.practitioner_id is None:
            raise NotFoundError("Practitioner profile not found")
        practitioner_id = actor.practitioner_id

    filters = AppointmentFilters(
        status=status_filter,
        patient_id=patient_id,
        practitioner_id=practitioner_id,
        therapy_id=therapy_id,
        from_date=from_date,
        to_date=to_date,
        page=page,
        page_size=page_size,
    )

    total, items = await service.list_appointments(filters)
    return AppointmentListResponse(
        total=total,
        page=page,
        page_size=page_size,
        items=[AppointmentResponse.model_validate(a) for a in items],
    )


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: UUID,
    actor: Actor,
    service: AppointmentServiceDep,
):
    """
    Get a specific appointment by ID.

    Raises:
        NotFoundError: If appointment not found
        ForbiddenException: If the caller does not take part in it
    """
    return AppointmentResponse.model_validate(await _get_accessible(service, appointment_id, actor))


@router.post(
    "/{appointment_id}/reschedule",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Reschedule appointment",
)
async def reschedule_appointment(
    appointment_id: UUID,
    data: AppointmentReschedule,
    actor: Actor,
    service: AppointmentServiceDep,
):
    """
    Move an appointment to a new start time.

    Records the move in the rescheduling history and clears sent reminders.
    """
    await _get_accessible(service, appointment_id, actor)
    appointment = await service.reschedule_appointment(
        appointment_id, data.new_start_at, data.reason, actor.user.user_id
    )
    return AppointmentResponse.model_validate(appointment)


@router.post(
    "/{appointment_id}/cancel",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Cancel appointment",
)
async def cancel_appointment(
    appointment_id: UUID,
    data: AppointmentCancel,
    actor: Actor,
    service: AppointmentServiceDep,
):
    """Cancel an appointment with a reason."""
    await _get_accessible(service, appointment_id, actor)
    appointment = await service.cancel_appointment(appointment_id, data.reason, actor.user.user_id)
    return AppointmentResponse.model_validate(appointment)


@router.post(
    "/{appointment_id}/confirm",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Confirm appointment",
)
async def confirm_appointment(
    appointment_id: UUID,
    actor: Actor,
    service: AppointmentServiceDep,
):
    """Confirm a scheduled appointment (practitioners and admins)."""
    _ensure_staff(actor)
    await _get_accessible(service, appointment_id, actor)
    return AppointmentResponse.model_validate(await service.confirm_appointment(appointment_id))


@router.post(
    "/{appointment_id}/start",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Start appointment",
)
async def start_appointment(
    appointment_id: UUID,
    actor: Actor,
    service: AppointmentServiceDep,
):
    """Mark an appointment as in progress."""
    _ensure_staff(actor)
    await _get_accessible(service, appointment_id, actor)
    return AppointmentResponse.model_validate(await service.start_appointment(appointment_id))


@router.post(
    "/{appointment_id}/complete",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Complete appointment",
)
async def complete_appointment(
    appointment_id: UUID,
    data: AppointmentComplete,
    actor: Actor,
    service: AppointmentServiceDep,
    db: DatabaseSession,
    cache: Cache,
):
    """
    Mark an appointment as completed.

    The therapy's popularity score is refreshed afterwards; a failure there
    is logged and does not undo the completion.
    """
    _ensure_staff(actor)
    await _get_accessible(service, appointment_id, actor)
    appointment = await service.complete_appointment(appointment_id, data.practitioner_notes)

    try:
        await TherapyService(cache).recompute_popularity(db, appointment.therapy_id)
    except AppException as e:
        logger.warning(
            "therapy_popularity_refresh_failed",
            therapy_id=str(appointment.therapy_id),
            error=e.message,
        )
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(
            "therapy_popularity_refresh_failed",
            therapy_id=str(appointment.therapy_id),
            error=str(e),
        )

    return AppointmentResponse.model_validate(appointment)


@router.post(
    "/{appointment_id}/no-show",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Mark patient as no-show",
)
async def mark_no_show(
    appointment_id: UUID,
    actor: Actor,
    service: AppointmentServiceDep,
):
    """Record that the patient did not attend."""
    _ensure_staff(actor)
    await _get_accessible(service, appointment_id, actor)
    return AppointmentResponse.model_validate(await service.mark_no_show(appointment_id))


@router.post(
    "/{appointment_id}/feedback",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Leave feedback",
)
async def submit_feedback(
    appointment_id: UUID,
    data: AppointmentFeedback,
    actor: Actor,
    service: AppointmentServiceDep,
):
    """Rate a completed appointment (patients, once per appointment)."""
    if actor.user.role == Role.PRACTITIONER:
        raise ForbiddenException("Only patients can leave feedback")
    await _get_accessible(service, appointment_id, actor)
    appointment = await service.submit_feedback(appointment_id, data.rating, data.comment)
    return AppointmentResponse.model_validate(appointment)

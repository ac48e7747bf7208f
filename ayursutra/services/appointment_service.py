"""Appointment lifecycle manager."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID
from zoneinfo import ZoneInfo

import structlog

from ayursutra.config import settings
from ayursutra.core.availability import is_within_availability
from ayursutra.core.clock import Clock, SystemClock, as_utc
from ayursutra.core.entities import Appointment, RescheduleEntry
from ayursutra.core.exceptions import ConflictError, NotFoundError, ValidationError
from ayursutra.core.lifecycle import AppointmentStatus, ensure_transition, is_active
from ayursutra.core.locks import PractitionerLocks, practitioner_locks
from ayursutra.core.ratings import effective_price
from ayursutra.core.scheduling import TimeRange, has_conflict, interval_of
from ayursutra.repositories.appointments import AppointmentRepository
from ayursutra.schemas.appointments import AppointmentCreate, AppointmentFilters

logger = structlog.get_logger()


class AppointmentService:
    """
    Owns appointment status changes and the no-overlap rule.

    Every operation that can put an appointment on a practitioner's calendar
    runs the conflict detector while holding the practitioner's lock, and
    writes inside a single repository transaction.
    """

    def __init__(
        self,
        repository: AppointmentRepository,
        clock: Clock | None = None,
        locks: PractitionerLocks | None = None,
        clinic_timezone: str | None = None,
    ):
        """Initialize service with its collaborators."""
        self.repository = repository
        self.clock = clock or SystemClock()
        self.locks = locks or practitioner_locks
        self.clinic_tz = ZoneInfo(clinic_timezone or settings.clinic_timezone)

    async def _get_or_404(self, appointment_id: UUID) -> Appointment:
        appointment = await self.repository.find_by_id(appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment not found")
        return appointment

    def _ensure_future(self, start_at: datetime) -> datetime:
        start_at = as_utc(start_at)
        if start_at <= self.clock.now():
            raise ValidationError("Appointment time must be in the future")
        return start_at

    async def _ensure_no_conflict(
        self,
        practitioner_id: UUID,
        candidate: TimeRange,
        exclude_id: UUID | None = None,
    ) -> None:
        overlapping = await self.repository.find_overlapping(
            practitioner_id, candidate, exclude_id=exclude_id
        )
        if has_conflict(practitioner_id, candidate, overlapping, exclude_appointment_id=exclude_id):
            logger.warning(
                "appointment_conflict_detected",
                practitioner_id=str(practitioner_id),
                start_at=candidate.start.isoformat(),
                end_at=candidate.end.isoformat(),
                conflicting_ids=[str(a.id) for a in overlapping],
            )
            raise ConflictError()

    async def create_appointment(
        self,
        data: AppointmentCreate,
        created_by: UUID,
    ) -> Appointment:
        """
        Book a new appointment.

        Args:
            data: Appointment creation data
            created_by: ID of the user booking

        Returns:
            Created appointment in ``scheduled`` status

        Raises:
            ValidationError: Start in the past, duration too short or bad pricing
            NotFoundError: Patient, practitioner or therapy does not exist
            ConflictError: Practitioner already booked for an overlapping slot
        """
        start_at = self._ensure_future(data.start_at)

        if data.session_number > data.total_sessions:
            raise ValidationError("Session number cannot exceed total sessions")

        if not await self.repository.patient_exists(data.patient_id):
            raise NotFoundError("Patient not found")

        practitioner = await self.repository.find_practitioner(data.practitioner_id)
        if practitioner is None:
            raise NotFoundError("Practitioner not found")
        if practitioner["status"] != "active":
            raise ValidationError("Practitioner is not accepting appointments")

        therapy = await self.repository.find_therapy(data.therapy_id)
        if therapy is None:
            raise NotFoundError("Therapy not found")

        duration = data.duration_minutes or therapy["duration_minutes"]
        candidate = interval_of(start_at, duration)

        if data.price_amount is not None:
            price = Decimal(data.price_amount)
        else:
            price = effective_price(therapy["base_price"], therapy.get("package_discount"))
        if price < 0 or data.discount_applied < 0:
            raise ValidationError("Amount and discount cannot be negative")
        if data.discount_applied > price:
            raise ValidationError("Discount cannot exceed the appointment amount")

        now = self.clock.now()
        appointment = Appointment(
            patient_id=data.patient_id,
            practitioner_id=data.practitioner_id,
            therapy_id=data.therapy_id,
            start_at=start_at,
            duration_minutes=duration,
            price_amount=price,
            currency=data.currency or therapy.get("currency") or settings.default_currency,
            discount_applied=Decimal(data.discount_applied),
            session_number=data.session_number,
            total_sessions=data.total_sessions,
            patient_notes=data.patient_notes,
            admin_notes=data.admin_notes,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )

        async with self.locks.hold(data.practitioner_id):
            async with self.repository.transaction(data.practitioner_id):
                await self._ensure_no_conflict(data.practitioner_id, candidate)
                await self.repository.add(appointment)

        logger.info(
            "appointment_created",
            appointment_id=str(appointment.id),
            practitioner_id=str(appointment.practitioner_id),
            start_at=appointment.start_at.isoformat(),
            duration_minutes=appointment.duration_minutes,
        )
        return appointment

    async def get_appointment(self, appointment_id: UUID) -> Appointment:
        """
        Get appointment by ID.

        Raises:
            NotFoundError: If appointment not found
        """
        return await self._get_or_404(appointment_id)

    async def list_appointments(
        self,
        filters: AppointmentFilters,
    ) -> tuple[int, list[Appointment]]:
        """List appointments with filtering and pagination."""
        return await self.repository.list_appointments(filters)

    async def reschedule_appointment(
        self,
        appointment_id: UUID,
        new_start_at: datetime,
        reason: str | None,
        actor: UUID | None,
    ) -> Appointment:
        """
        Move an appointment to a new start time.

        Appends one rescheduling history entry, resets the status to
        ``scheduled`` and clears the reminder flags.

        Args:
            appointment_id: Appointment ID
            new_start_at: Requested start time
            reason: Why the appointment moves
            actor: ID of the user rescheduling

        Returns:
            Updated appointment

        Raises:
            NotFoundError: If appointment not found
            InvalidStateTransition: If the appointment is completed or cancelled
            ValidationError: If the new time is in the past
            ConflictError: If the new slot overlaps another active appointment
        """
        current = await self._get_or_404(appointment_id)
        new_start_at = self._ensure_future(new_start_at)

        async with self.locks.hold(current.practitioner_id):
            async with self.repository.transaction(current.practitioner_id):
                # Re-read under the lock; status may have changed meanwhile
                appointment = await self._get_or_404(appointment_id)
                ensure_transition(appointment.status, AppointmentStatus.RESCHEDULED)

                candidate = interval_of(new_start_at, appointment.duration_minutes)
                await self._ensure_no_conflict(
                    appointment.practitioner_id, candidate, exclude_id=appointment.id
                )

                now = self.clock.now()
                entry = RescheduleEntry(
                    original_start_at=appointment.start_at,
                    new_start_at=new_start_at,
                    reason=reason,
                    rescheduled_by=actor,
                    rescheduled_at=now,
                )

                ensure_transition(AppointmentStatus.RESCHEDULED, AppointmentStatus.SCHEDULED)
                appointment.start_at = new_start_at
                appointment.status = AppointmentStatus.SCHEDULED
                appointment.reset_reminders()
                appointment.updated_at = now

                await self.repository.update(appointment, history_entry=entry)
                appointment.rescheduling_history.append(entry)

        logger.info(
            "appointment_rescheduled",
            appointment_id=str(appointment.id),
            original_start_at=entry.original_start_at.isoformat(),
            new_start_at=entry.new_start_at.isoformat(),
        )
        return appointment

    async def cancel_appointment(
        self,
        appointment_id: UUID,
        reason: str,
        actor: UUID | None,
    ) -> Appointment:
        """
        Cancel an appointment.

        Cancellation details are recorded once; cancelling again is rejected.

        Raises:
            NotFoundError: If appointment not found
            InvalidStateTransition: If already completed or cancelled
        """
        current = await self._get_or_404(appointment_id)

        async with self.locks.hold(current.practitioner_id):
            async with self.repository.transaction(current.practitioner_id):
                appointment = await self._get_or_404(appointment_id)
                ensure_transition(appointment.status, AppointmentStatus.CANCELLED)

                now = self.clock.now()
                appointment.status = AppointmentStatus.CANCELLED
                appointment.cancellation_reason = reason
                appointment.cancelled_by = actor
                appointment.cancelled_at = now
                appointment.updated_at = now

                await self.repository.update(appointment)

        logger.info("appointment_cancelled", appointment_id=str(appointment.id))
        return appointment

    async def complete_appointment(
        self,
        appointment_id: UUID,
        practitioner_notes: str | None = None,
    ) -> Appointment:
        """
        Mark an appointment as completed.

        Raises:
            NotFoundError: If appointment not found
            InvalidStateTransition: Unless scheduled, confirmed or in progress
        """
        changes = {"practitioner_notes": practitioner_notes} if practitioner_notes else {}
        return await self._transition(appointment_id, AppointmentStatus.COMPLETED, **changes)

    async def confirm_appointment(self, appointment_id: UUID) -> Appointment:
        """Move a scheduled appointment to ``confirmed``."""
        return await self._transition(appointment_id, AppointmentStatus.CONFIRMED)

    async def start_appointment(self, appointment_id: UUID) -> Appointment:
        """Move an appointment to ``in-progress``."""
        return await self._transition(appointment_id, AppointmentStatus.IN_PROGRESS)

    async def mark_no_show(self, appointment_id: UUID) -> Appointment:
        """Record that the patient did not attend."""
        return await self._transition(appointment_id, AppointmentStatus.NO_SHOW)

    async def _transition(
        self,
        appointment_id: UUID,
        target: AppointmentStatus,
        **changes,
    ) -> Appointment:
        current = await self._get_or_404(appointment_id)

        async with self.locks.hold(current.practitioner_id):
            async with self.repository.transaction(current.practitioner_id):
                appointment = await self._get_or_404(appointment_id)
                old_status = appointment.status
                ensure_transition(old_status, target)

                # Re-entering the calendar must not create an overlap
                if is_active(target) and not is_active(old_status):
                    await self._ensure_no_conflict(
                        appointment.practitioner_id,
                        interval_of(appointment.start_at, appointment.duration_minutes),
                        exclude_id=appointment.id,
                    )

                for name, value in changes.items():
                    setattr(appointment, name, value)
                appointment.status = target
                appointment.updated_at = self.clock.now()
                await self.repository.update(appointment)

        logger.info(
            "appointment_status_changed",
            appointment_id=str(appointment.id),
            old_status=AppointmentStatus(old_status).value,
            new_status=target.value,
        )
        return appointment

    async def submit_feedback(
        self,
        appointment_id: UUID,
        rating: int,
        comment: str | None = None,
    ) -> Appointment:
        """
        Attach patient feedback to a completed appointment.

        Raises:
            NotFoundError: If appointment not found
            ValidationError: If not completed, already rated, or rating out of range
        """
        if not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")

        async with self.repository.transaction():
            appointment = await self._get_or_404(appointment_id)
            if appointment.status != AppointmentStatus.COMPLETED:
                raise ValidationError("Feedback can only be left for completed appointments")
            if appointment.feedback_submitted_at is not None:
                raise ValidationError("Feedback has already been submitted")

            now = self.clock.now()
            appointment.feedback_rating = rating
            appointment.feedback_comment = comment
            appointment.feedback_submitted_at = now
            appointment.updated_at = now
            await self.repository.update(appointment)

        logger.info("appointment_feedback_submitted", appointment_id=str(appointment.id))
        return appointment

    async def check_availability(
        self,
        practitioner_id: UUID,
        start_at: datetime,
        duration_minutes: int,
    ) -> dict:
        """
        Check whether a practitioner can take a booking.

        Combines the weekly working-hours template (evaluated in the clinic's
        time zone) with the conflict detector; both must pass.

        Raises:
            NotFoundError: If practitioner not found
            ValidationError: If duration is too short
        """
        practitioner = await self.repository.find_practitioner(practitioner_id)
        if practitioner is None:
            raise NotFoundError("Practitioner not found")

        candidate = interval_of(as_utc(start_at), duration_minutes)
        within_hours = practitioner["status"] == "active" and is_within_availability(
            practitioner["availability"], candidate.start.astimezone(self.clinic_tz)
        )
        conflict = has_conflict(
            practitioner_id,
            candidate,
            await self.repository.find_active_appointments(practitioner_id),
        )

        return {
            "practitioner_id": practitioner_id,
            "start_at": candidate.start,
            "end_at": candidate.end,
            "available": within_hours and not conflict,
            "within_working_hours": within_hours,
            "has_conflict": conflict,
        }

"""Patient service for business logic."""

from datetime import UTC, date, datetime
from uuid import UUID

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ayursutra.core.constitution import dominant_dosha
from ayursutra.core.entities import Appointment
from ayursutra.core.exceptions import NotFoundError, ValidationError
from ayursutra.core.lifecycle import AppointmentStatus
from ayursutra.models.patients import patients
from ayursutra.repositories.appointments import SqlAppointmentRepository
from ayursutra.schemas.appointments import AppointmentFilters
from ayursutra.schemas.patients import PatientCreate, PatientUpdate

logger = structlog.get_logger()


def age_on(date_of_birth: date, today: date) -> int:
    """Completed years between ``date_of_birth`` and ``today``."""
    before_birthday = (today.month, today.day) < (date_of_birth.month, date_of_birth.day)
    return today.year - date_of_birth.year - before_birthday


def present_patient(row: dict, today: date | None = None) -> dict:
    """Add derived name, age and dominant dosha fields."""
    patient = dict(row)
    patient["full_name"] = f"{row['first_name']} {row['last_name']}"
    patient["age"] = age_on(row["date_of_birth"], today or datetime.now(UTC).date())
    profile = row.get("ayurvedic_profile")
    patient["dominant_constitution"] = (
        dominant_dosha(profile.get("constitution") or {}) if profile else None
    )
    return patient


def _ensure_birth_date(date_of_birth: date) -> None:
    if date_of_birth > datetime.now(UTC).date():
        raise ValidationError("Date of birth cannot be in the future")


class PatientService:
    """Service for patient records."""

    @staticmethod
    async def create_patient(db: AsyncSession, data: PatientCreate) -> dict:
        """
        Register a patient.

        Raises:
            ValidationError: If the date of birth is in the future
        """
        _ensure_birth_date(data.date_of_birth)

        values = data.model_dump(mode="json", exclude={"date_of_birth", "user_id"})
        query = (
            patients.insert()
            .values(**values, date_of_birth=data.date_of_birth, user_id=data.user_id)
            .returning(patients)
        )
        result = await db.execute(query)
        patient = result.mappings().first()

        if not patient:
            raise ValueError("Failed to create patient")

        await db.commit()
        logger.info("patient_created", patient_id=str(patient["id"]))
        return present_patient(patient)

    @staticmethod
    async def get_patient_by_id(db: AsyncSession, patient_id: UUID) -> dict | None:
        """Get patient by ID."""
        result = await db.execute(select(patients).where(patients.c.id == patient_id))
        patient = result.mappings().first()
        return present_patient(patient) if patient else None

    @staticmethod
    async def get_patient_by_user_id(db: AsyncSession, user_id: UUID) -> dict | None:
        """Get the patient record linked to a user account."""
        result = await db.execute(select(patients).where(patients.c.user_id == user_id))
        patient = result.mappings().first()
        return present_patient(patient) if patient else None

    @staticmethod
    async def get_patients(
        db: AsyncSession,
        skip: int = 0,
        limit: int = 50,
        search: str | None = None,
    ) -> tuple[int, list[dict]]:
        """Active patients ordered by name, optionally filtered by name or phone."""
        conditions = [patients.c.status == "active"]
        if search:
            pattern = f"%{search}%"
            conditions.append(
                patients.c.first_name.ilike(pattern)
                | patients.c.last_name.ilike(pattern)
                | patients.c.phone.ilike(pattern)
            )

        count_query = select(func.count()).select_from(patients).where(*conditions)
        total = (await db.execute(count_query)).scalar() or 0

        query = (
            select(patients)
            .where(*conditions)
            .order_by(patients.c.last_name, patients.c.first_name)
            .offset(skip)
            .limit(limit)
        )
        result = await db.execute(query)
        return total, [present_patient(row) for row in result.mappings().all()]

    @staticmethod
    async def update_patient(db: AsyncSession, patient_id: UUID, data: PatientUpdate) -> dict:
        """
        Update a patient record.

        Raises:
            NotFoundError: If patient not found
            ValidationError: If the date of birth is in the future
        """
        if data.date_of_birth is not None:
            _ensure_birth_date(data.date_of_birth)

        update_values = data.model_dump(
            mode="json", exclude_unset=True, exclude_none=True, exclude={"date_of_birth"}
        )
        if data.date_of_birth is not None:
            update_values["date_of_birth"] = data.date_of_birth

        if not update_values:
            patient = await PatientService.get_patient_by_id(db, patient_id)
            if patient is None:
                raise NotFoundError("Patient not found")
            return patient

        query = (
            update(patients)
            .where(patients.c.id == patient_id)
            .values(**update_values, updated_at=datetime.now(UTC))
            .returning(patients)
        )
        result = await db.execute(query)
        updated = result.mappings().first()
        if updated is None:
            raise NotFoundError("Patient not found")

        await db.commit()
        return present_patient(updated)

    @staticmethod
    async def deactivate_patient(db: AsyncSession, patient_id: UUID) -> bool:
        """Soft delete a patient by marking the record inactive."""
        query = (
            update(patients)
            .where(patients.c.id == patient_id)
            .values(status="inactive", updated_at=datetime.now(UTC))
        )
        result = await db.execute(query)
        await db.commit()

        if result.rowcount == 0:
            return False

        logger.info("patient_deactivated", patient_id=str(patient_id))
        return True

    @staticmethod
    async def get_upcoming_appointments(
        db: AsyncSession,
        patient_id: UUID,
        now: datetime,
        limit: int = 50,
    ) -> list[Appointment]:
        """Scheduled and confirmed appointments from ``now`` onwards."""
        filters = AppointmentFilters(
            patient_id=patient_id,
            statuses=[AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED],
            from_date=now,
            page_size=limit,
        )
        _, items = await SqlAppointmentRepository(db).list_appointments(filters)
        return items

"""Persistence collaborators for the appointment lifecycle manager."""

import asyncio
import copy
import hashlib
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from dataclasses import fields, replace
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy import and_, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ayursutra.core.clock import as_utc
from ayursutra.core.entities import Appointment, RescheduleEntry
from ayursutra.core.lifecycle import ACTIVE_STATUSES, AppointmentStatus
from ayursutra.core.scheduling import TimeRange, interval_of, intervals_overlap
from ayursutra.models.appointments import appointment_reschedules, appointments
from ayursutra.models.patients import patients
from ayursutra.models.practitioners import practitioners
from ayursutra.models.therapies import therapies
from ayursutra.schemas.appointments import AppointmentFilters

_DATETIME_FIELDS = (
    "start_at",
    "created_at",
    "updated_at",
    "feedback_submitted_at",
    "cancelled_at",
)


@runtime_checkable
class AppointmentRepository(Protocol):
    """
    Storage contract the lifecycle manager depends on.

    Writes are only durable once the surrounding :meth:`transaction` exits
    without an exception.
    """

    def transaction(self, *practitioner_ids: UUID) -> Any:
        """Async context manager; serialises writers for the given practitioners."""
        ...

    async def find_by_id(self, appointment_id: UUID) -> Appointment | None:
        """Load one appointment with its rescheduling history."""
        ...

    async def find_active_appointments(
        self,
        practitioner_id: UUID,
        exclude_id: UUID | None = None,
    ) -> list[Appointment]:
        """All scheduled/confirmed/in-progress appointments of a practitioner."""
        ...

    async def find_overlapping(
        self,
        practitioner_id: UUID,
        candidate: TimeRange,
        exclude_id: UUID | None = None,
    ) -> list[Appointment]:
        """Active appointments of a practitioner intersecting ``candidate``."""
        ...

    async def add(self, appointment: Appointment) -> Appointment:
        """Insert a new appointment."""
        ...

    async def update(
        self,
        appointment: Appointment,
        history_entry: RescheduleEntry | None = None,
    ) -> Appointment:
        """Persist changes to an appointment, appending a history entry if given."""
        ...

    async def list_appointments(self, filters: AppointmentFilters) -> tuple[int, list[Appointment]]:
        """Filtered, paginated appointments ordered by start time."""
        ...

    async def count_for_therapy(
        self,
        therapy_id: UUID,
        statuses: Iterable[AppointmentStatus],
    ) -> int:
        """Number of appointments of a therapy in the given statuses."""
        ...

    async def find_practitioner(self, practitioner_id: UUID) -> dict | None:
        """Practitioner record (status and availability template)."""
        ...

    async def find_therapy(self, therapy_id: UUID) -> dict | None:
        """Therapy record (duration and pricing)."""
        ...

    async def patient_exists(self, patient_id: UUID) -> bool:
        """Check that a patient id refers to a stored patient."""
        ...


def advisory_lock_key(practitioner_id: UUID) -> int:
    """Stable signed 64-bit key for ``pg_advisory_xact_lock``."""
    digest = hashlib.blake2b(practitioner_id.bytes, digest_size=8).digest()
    return int.from_bytes(digest, "big", signed=True)


def _entity_values(appointment: Appointment) -> dict[str, Any]:
    """Column values for an appointment row."""
    values = {
        f.name: getattr(appointment, f.name)
        for f in fields(appointment)
        if f.name != "rescheduling_history"
    }
    for name in _DATETIME_FIELDS:
        if values[name] is not None:
            values[name] = as_utc(values[name])
    values["status"] = AppointmentStatus(appointment.status).value
    values["end_at"] = as_utc(appointment.end_at)
    return values


def _row_to_appointment(row: Any, history: list[RescheduleEntry] | None = None) -> Appointment:
    data = dict(row._mapping)
    data.pop("end_at", None)
    for name in _DATETIME_FIELDS:
        if data[name] is not None:
            data[name] = as_utc(data[name])
    data["status"] = AppointmentStatus(data["status"])
    return Appointment(**data, rescheduling_history=history or [])


def _row_to_history(row: Any) -> RescheduleEntry:
    return RescheduleEntry(
        original_start_at=as_utc(row.original_start_at),
        new_start_at=as_utc(row.new_start_at),
        reason=row.reason,
        rescheduled_by=row.rescheduled_by,
        rescheduled_at=as_utc(row.rescheduled_at),
    )


class SqlAppointmentRepository:
    """Appointment storage backed by SQLAlchemy Core."""

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session."""
        self.db = db

    @asynccontextmanager
    async def transaction(self, *practitioner_ids: UUID) -> AsyncIterator[None]:
        """
        Run a unit of work and commit it, or roll everything back.

        On PostgreSQL a transaction-scoped advisory lock is taken per
        practitioner so concurrent bookings in other processes queue behind
        this one until commit.
        """
        try:
            if self.db.get_bind().dialect.name == "postgresql":
                for key in sorted(advisory_lock_key(pid) for pid in set(practitioner_ids)):
                    await self.db.execute(select(func.pg_advisory_xact_lock(key)))
            yield
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    async def _load_history(self, appointment_ids: list[UUID]) -> dict[UUID, list[RescheduleEntry]]:
        history: dict[UUID, list[RescheduleEntry]] = {aid: [] for aid in appointment_ids}
        if not appointment_ids:
            return history

        stmt = (
            select(appointment_reschedules)
            .where(appointment_reschedules.c.appointment_id.in_(appointment_ids))
            .order_by(appointment_reschedules.c.rescheduled_at)
        )
        result = await self.db.execute(stmt)
        for row in result.fetchall():
            history[row.appointment_id].append(_row_to_history(row))
        return history

    async def _hydrate(self, rows: list[Any]) -> list[Appointment]:
        history = await self._load_history([row.id for row in rows])
        return [_row_to_appointment(row, history[row.id]) for row in rows]

    async def find_by_id(self, appointment_id: UUID) -> Appointment | None:
        """Load one appointment with its rescheduling history."""
        stmt = select(appointments).where(appointments.c.id == appointment_id)
        result = await self.db.execute(stmt)
        row = result.fetchone()

        if not row:
            return None

        return (await self._hydrate([row]))[0]

    def _active_conditions(self, practitioner_id: UUID, exclude_id: UUID | None) -> list:
        conditions = [
            appointments.c.practitioner_id == practitioner_id,
            appointments.c.status.in_([s.value for s in ACTIVE_STATUSES]),
        ]
        if exclude_id is not None:
            conditions.append(appointments.c.id != exclude_id)
        return conditions

    async def find_active_appointments(
        self,
        practitioner_id: UUID,
        exclude_id: UUID | None = None,
    ) -> list[Appointment]:
        """All scheduled/confirmed/in-progress appointments of a practitioner."""
        stmt = (
            select(appointments)
            .where(and_(*self._active_conditions(practitioner_id, exclude_id)))
            .order_by(appointments.c.start_at)
        )
        result = await self.db.execute(stmt)
        return await self._hydrate(result.fetchall())

    async def find_overlapping(
        self,
        practitioner_id: UUID,
        candidate: TimeRange,
        exclude_id: UUID | None = None,
    ) -> list[Appointment]:
        """Active appointments of a practitioner intersecting ``candidate``."""
        # Half-open intervals: touching endpoints are not an overlap
        conditions = self._active_conditions(practitioner_id, exclude_id) + [
            appointments.c.start_at < as_utc(candidate.end),
            appointments.c.end_at > as_utc(candidate.start),
        ]
        stmt = select(appointments).where(and_(*conditions)).order_by(appointments.c.start_at)
        result = await self.db.execute(stmt)
        return await self._hydrate(result.fetchall())

    async def add(self, appointment: Appointment) -> Appointment:
        """Insert a new appointment."""
        await self.db.execute(insert(appointments).values(**_entity_values(appointment)))
        return appointment

    async def update(
        self,
        appointment: Appointment,
        history_entry: RescheduleEntry | None = None,
    ) -> Appointment:
        """Persist changes to an appointment, appending a history entry if given."""
        values = _entity_values(appointment)
        values.pop("id")

        await self.db.execute(
            update(appointments).where(appointments.c.id == appointment.id).values(**values)
        )

        if history_entry is not None:
            await self.db.execute(
                insert(appointment_reschedules).values(
                    appointment_id=appointment.id,
                    original_start_at=as_utc(history_entry.original_start_at),
                    new_start_at=as_utc(history_entry.new_start_at),
                    reason=history_entry.reason,
                    rescheduled_by=history_entry.rescheduled_by,
                    rescheduled_at=as_utc(history_entry.rescheduled_at),
                )
            )

        return appointment

    async def list_appointments(self, filters: AppointmentFilters) -> tuple[int, list[Appointment]]:
        """Filtered, paginated appointments ordered by start time."""
        conditions: list = []

        if filters.status:
            conditions.append(appointments.c.status == filters.status.value)

        if filters.statuses:
            conditions.append(appointments.c.status.in_([s.value for s in filters.statuses]))

        if filters.patient_id:
            conditions.append(appointments.c.patient_id == filters.patient_id)

        if filters.practitioner_id:
            conditions.append(appointments.c.practitioner_id == filters.practitioner_id)

        if filters.therapy_id:
            conditions.append(appointments.c.therapy_id == filters.therapy_id)

        if filters.from_date:
            conditions.append(appointments.c.start_at >= as_utc(filters.from_date))

        if filters.to_date:
            conditions.append(appointments.c.start_at <= as_utc(filters.to_date))

        where = and_(*conditions) if conditions else True

        # Count total
        count_stmt = select(func.count()).select_from(appointments).where(where)
        total = (await self.db.execute(count_stmt)).scalar() or 0

        # Get paginated results
        offset = (filters.page - 1) * filters.page_size
        stmt = (
            select(appointments)
            .where(where)
            .order_by(appointments.c.start_at)
            .limit(filters.page_size)
            .offset(offset)
        )
        result = await self.db.execute(stmt)
        return total, await self._hydrate(result.fetchall())

    async def count_for_therapy(
        self,
        therapy_id: UUID,
        statuses: Iterable[AppointmentStatus],
    ) -> int:
        """Number of appointments of a therapy in the given statuses."""
        stmt = (
            select(func.count())
            .select_from(appointments)
            .where(
                appointments.c.therapy_id == therapy_id,
                appointments.c.status.in_([AppointmentStatus(s).value for s in statuses]),
            )
        )
        return (await self.db.execute(stmt)).scalar() or 0

    async def find_practitioner(self, practitioner_id: UUID) -> dict | None:
        """Practitioner record (status and availability template)."""
        result = await self.db.execute(
            select(practitioners).where(practitioners.c.id == practitioner_id)
        )
        row = result.mappings().first()
        return dict(row) if row else None

    async def find_therapy(self, therapy_id: UUID) -> dict | None:
        """Therapy record (duration and pricing)."""
        result = await self.db.execute(select(therapies).where(therapies.c.id == therapy_id))
        row = result.mappings().first()
        return dict(row) if row else None

    async def patient_exists(self, patient_id: UUID) -> bool:
        """Check that a patient id refers to a stored patient."""
        result = await self.db.execute(select(patients.c.id).where(patients.c.id == patient_id))
        return result.first() is not None


class InMemoryAppointmentRepository:
    """Dict-backed repository for tests and local experiments."""

    def __init__(
        self,
        practitioners: dict[UUID, dict] | None = None,
        therapies: dict[UUID, dict] | None = None,
        patients: Iterable[UUID] | None = None,
    ):
        """Initialize with optional reference data."""
        self.appointments: dict[UUID, Appointment] = {}
        self.practitioners = dict(practitioners or {})
        self.therapies = dict(therapies or {})
        self.patients = set(patients or ())

    @asynccontextmanager
    async def transaction(self, *practitioner_ids: UUID) -> AsyncIterator[None]:
        """Restore the previous state if the block raises."""
        snapshot = copy.deepcopy(self.appointments)
        try:
            yield
        except Exception:
            self.appointments = snapshot
            raise

    @staticmethod
    def _copy(appointment: Appointment) -> Appointment:
        return replace(appointment, rescheduling_history=list(appointment.rescheduling_history))

    async def find_by_id(self, appointment_id: UUID) -> Appointment | None:
        """Load one appointment with its rescheduling history."""
        stored = self.appointments.get(appointment_id)
        return self._copy(stored) if stored else None

    async def find_active_appointments(
        self,
        practitioner_id: UUID,
        exclude_id: UUID | None = None,
    ) -> list[Appointment]:
        """All scheduled/confirmed/in-progress appointments of a practitioner."""
        return sorted(
            (
                self._copy(a)
                for a in self.appointments.values()
                if a.practitioner_id == practitioner_id
                and a.status in ACTIVE_STATUSES
                and a.id != exclude_id
            ),
            key=lambda a: a.start_at,
        )

    async def find_overlapping(
        self,
        practitioner_id: UUID,
        candidate: TimeRange,
        exclude_id: UUID | None = None,
    ) -> list[Appointment]:
        """Active appointments of a practitioner intersecting ``candidate``."""
        active = await self.find_active_appointments(practitioner_id, exclude_id)
        # Suspend like a database round trip would, so callers can interleave
        await asyncio.sleep(0)
        return [
            a for a in active if intervals_overlap(candidate, interval_of(a.start_at, a.duration_minutes))
        ]

    async def add(self, appointment: Appointment) -> Appointment:
        """Insert a new appointment."""
        self.appointments[appointment.id] = self._copy(appointment)
        return appointment

    async def update(
        self,
        appointment: Appointment,
        history_entry: RescheduleEntry | None = None,
    ) -> Appointment:
        """Persist changes to an appointment, appending a history entry if given."""
        stored = self._copy(appointment)
        previous = self.appointments.get(appointment.id)
        stored.rescheduling_history = list(previous.rescheduling_history) if previous else []
        if history_entry is not None:
            stored.rescheduling_history.append(history_entry)
        self.appointments[appointment.id] = stored
        return appointment

    async def list_appointments(self, filters: AppointmentFilters) -> tuple[int, list[Appointment]]:
        """Filtered, paginated appointments ordered by start time."""
        items = [
            a
            for a in self.appointments.values()
            if (filters.status is None or a.status == filters.status)
            and (not filters.statuses or a.status in filters.statuses)
            and (filters.patient_id is None or a.patient_id == filters.patient_id)
            and (filters.practitioner_id is None or a.practitioner_id == filters.practitioner_id)
            and (filters.therapy_id is None or a.therapy_id == filters.therapy_id)
            and (filters.from_date is None or a.start_at >= as_utc(filters.from_date))
            and (filters.to_date is None or a.start_at <= as_utc(filters.to_date))
        ]
        items.sort(key=lambda a: a.start_at)
        offset = (filters.page - 1) * filters.page_size
        page = items[offset : offset + filters.page_size]
        return len(items), [self._copy(a) for a in page]

    async def count_for_therapy(
        self,
        therapy_id: UUID,
        statuses: Iterable[AppointmentStatus],
    ) -> int:
        """Number of appointments of a therapy in the given statuses."""
        wanted = {AppointmentStatus(s) for s in statuses}
        return sum(
            1 for a in self.appointments.values() if a.therapy_id == therapy_id and a.status in wanted
        )

    async def find_practitioner(self, practitioner_id: UUID) -> dict | None:
        """Practitioner record (status and availability template)."""
        return self.practitioners.get(practitioner_id)

    async def find_therapy(self, therapy_id: UUID) -> dict | None:
        """Therapy record (duration and pricing)."""
        return self.therapies.get(therapy_id)

    async def patient_exists(self, patient_id: UUID) -> bool:
        """Check that a patient id refers to a stored patient."""
        return patient_id in self.patients

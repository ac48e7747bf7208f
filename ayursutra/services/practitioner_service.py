"""Practitioner service for business logic."""

from datetime import UTC, date, datetime
from uuid import UUID

import structlog
from sqlalchemy import and_, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ayursutra.core.availability import (
    is_time_available,
    normalize_availability,
    parse_hhmm,
    weekday_name,
)
from ayursutra.core.entities import Appointment
from ayursutra.core.exceptions import ConflictError, NotFoundError
from ayursutra.core.lifecycle import AppointmentStatus
from ayursutra.core.ratings import RATING_DIMENSIONS, RatingAggregate, update_rating
from ayursutra.core.redis_client import CacheManager
from ayursutra.models.practitioners import practitioners
from ayursutra.repositories.appointments import SqlAppointmentRepository
from ayursutra.schemas.appointments import AppointmentFilters
from ayursutra.schemas.practitioners import PractitionerCreate, PractitionerUpdate

logger = structlog.get_logger()

# Attempts before a contended rating update gives up
RATING_UPDATE_ATTEMPTS = 3


def _availability_json(availability: dict | None) -> dict:
    return {day: schedule.to_dict() for day, schedule in normalize_availability(availability).items()}


def present_practitioner(row: dict) -> dict:
    """Add derived fields used by responses."""
    practitioner = dict(row)
    practitioner["full_name"] = f"{row['first_name']} {row['last_name']}"
    practitioner["availability"] = _availability_json(row.get("availability"))
    practitioner["rating_breakdown"] = {
        dimension: row.get(f"rating_{dimension}") or 0.0 for dimension in RATING_DIMENSIONS
    }
    return practitioner


class PractitionerService:
    """Service for practitioner operations."""

    # Cache TTL in seconds
    PRACTITIONER_CACHE_TTL = 900  # 15 minutes for individual practitioners
    PRACTITIONER_LIST_CACHE_TTL = 300  # 5 minutes for lists

    def __init__(self, cache_manager: CacheManager | None = None):
        """Initialize service with optional cache manager."""
        self.cache = cache_manager

    @staticmethod
    def _get_practitioner_cache_key(practitioner_id: UUID) -> str:
        """Generate cache key for practitioner."""
        return f"practitioner:{practitioner_id}"

    def _invalidate(self, practitioner_id: UUID | None = None) -> None:
        if not self.cache:
            return
        if practitioner_id is not None:
            self.cache.delete(self._get_practitioner_cache_key(practitioner_id))
        self.cache.delete_pattern("practitioner:list:*")

    async def create_practitioner(self, db: AsyncSession, data: PractitionerCreate) -> dict:
        """Create a new practitioner profile."""
        values = data.model_dump(exclude={"availability"})
        if data.availability:
            availability = {day: s.model_dump() for day, s in data.availability.items()}
        else:
            availability = None
        values["availability"] = _availability_json(availability)

        query = practitioners.insert().values(**values).returning(practitioners)
        result = await db.execute(query)
        practitioner = result.mappings().first()

        if not practitioner:
            raise ValueError("Failed to create practitioner")

        await db.commit()
        self._invalidate()

        logger.info("practitioner_created", practitioner_id=str(practitioner["id"]))
        return present_practitioner(practitioner)

    async def get_practitioner_by_id(self, db: AsyncSession, practitioner_id: UUID) -> dict | None:
        """Get practitioner by ID with caching."""
        if self.cache:
            cached = self.cache.get_json(self._get_practitioner_cache_key(practitioner_id))
            if cached:
                return cached

        query = select(practitioners).where(practitioners.c.id == practitioner_id)
        result = await db.execute(query)
        practitioner = result.mappings().first()

        if not practitioner:
            return None

        practitioner_dict = present_practitioner(practitioner)

        if self.cache:
            self.cache.set_json(
                self._get_practitioner_cache_key(practitioner_id),
                practitioner_dict,
                ttl=self.PRACTITIONER_CACHE_TTL,
            )

        return practitioner_dict

    async def get_practitioners(
        self,
        db: AsyncSession,
        skip: int = 0,
        limit: int = 50,
        specialization: str | None = None,
        include_inactive: bool = False,
    ) -> tuple[int, list[dict]]:
        """
        List practitioners, best rated first.

        Args:
            db: Database session
            skip: Number of records to skip
            limit: Maximum number of records to return
            specialization: Only practitioners offering this specialization
            include_inactive: Also return inactive, suspended or on-leave practitioners

        Returns:
            Tuple of (total count, page of practitioners)
        """
        cache_key = f"practitioner:list:{skip}:{limit}:{specialization}:{include_inactive}"
        if self.cache:
            cached = self.cache.get_json(cache_key)
            if cached:
                return cached[0], cached[1]

        conditions: list = []
        if not include_inactive:
            conditions.append(practitioners.c.status == "active")

        query = (
            select(practitioners)
            .where(and_(*conditions) if conditions else True)
            .order_by(
                practitioners.c.rating_average.desc(),
                practitioners.c.experience_years.desc(),
                practitioners.c.last_name,
            )
        )

        if specialization is None:
            count_query = (
                select(func.count())
                .select_from(practitioners)
                .where(and_(*conditions) if conditions else True)
            )
            total = (await db.execute(count_query)).scalar() or 0
            result = await db.execute(query.offset(skip).limit(limit))
            items = [present_practitioner(row) for row in result.mappings().all()]
        else:
            # Specializations are a JSON list; match case-insensitively in Python
            wanted = specialization.strip().lower()
            result = await db.execute(query)
            matching = [
                present_practitioner(row)
                for row in result.mappings().all()
                if any(s.lower() == wanted for s in row["specializations"] or [])
            ]
            total, items = len(matching), matching[skip : skip + limit]

        if self.cache:
            self.cache.set_json(cache_key, [total, items], ttl=self.PRACTITIONER_LIST_CACHE_TTL)

        return total, items

    async def update_practitioner(
        self,
        db: AsyncSession,
        practitioner_id: UUID,
        data: PractitionerUpdate,
    ) -> dict | None:
        """Update practitioner information."""
        update_values = data.model_dump(exclude_unset=True, exclude_none=True)
        if "status" in update_values:
            update_values["status"] = data.status.value

        if not update_values:
            return await self.get_practitioner_by_id(db, practitioner_id)

        update_values["updated_at"] = datetime.now(UTC)
        query = (
            update(practitioners)
            .where(practitioners.c.id == practitioner_id)
            .values(**update_values)
            .returning(practitioners)
        )

        result = await db.execute(query)
        updated = result.mappings().first()
        await db.commit()

        self._invalidate(practitioner_id)
        return present_practitioner(updated) if updated else None

    async def deactivate_practitioner(self, db: AsyncSession, practitioner_id: UUID) -> bool:
        """Soft delete a practitioner by marking them inactive."""
        query = (
            update(practitioners)
            .where(practitioners.c.id == practitioner_id)
            .values(status="inactive", updated_at=datetime.now(UTC))
        )
        result = await db.execute(query)
        await db.commit()

        if result.rowcount == 0:
            return False

        self._invalidate(practitioner_id)
        logger.info("practitioner_deactivated", practitioner_id=str(practitioner_id))
        return True

    async def update_availability(
        self,
        db: AsyncSession,
        practitioner_id: UUID,
        availability: dict[str, dict],
    ) -> dict:
        """
        Replace weekdays of a practitioner's weekly template.

        Weekdays not mentioned keep their current schedule.

        Raises:
            NotFoundError: If practitioner not found
            ValidationError: If a weekday or time window is invalid
        """
        result = await db.execute(
            select(practitioners.c.availability).where(practitioners.c.id == practitioner_id)
        )
        row = result.first()
        if row is None:
            raise NotFoundError("Practitioner not found")

        merged = _availability_json({**_availability_json(row.availability), **availability})

        query = (
            update(practitioners)
            .where(practitioners.c.id == practitioner_id)
            .values(availability=merged, updated_at=datetime.now(UTC))
            .returning(practitioners)
        )
        result = await db.execute(query)
        updated = result.mappings().first()
        await db.commit()

        self._invalidate(practitioner_id)
        logger.info("practitioner_availability_updated", practitioner_id=str(practitioner_id))
        return present_practitioner(updated)

    async def find_available_practitioners(
        self,
        db: AsyncSession,
        day: date,
        time_of_day: str,
    ) -> list[dict]:
        """
        Active practitioners whose weekly template covers a local date and time.

        Uses the same working-hours and break rules as booking checks.

        Args:
            db: Database session
            day: Local calendar date
            time_of_day: ``HH:MM`` wall-clock time

        Returns:
            Matching practitioners ordered by average rating, best first
        """
        parse_hhmm(time_of_day)
        weekday = weekday_name(day)

        query = (
            select(practitioners)
            .where(practitioners.c.status == "active")
            .order_by(practitioners.c.rating_average.desc(), practitioners.c.experience_years.desc())
        )
        result = await db.execute(query)

        return [
            present_practitioner(row)
            for row in result.mappings().all()
            if is_time_available(row["availability"], weekday, time_of_day)
        ]

    async def update_rating(
        self,
        db: AsyncSession,
        practitioner_id: UUID,
        rating: float,
        breakdown: dict[str, float] | None = None,
    ) -> dict:
        """
        Fold one review into a practitioner's rating aggregate.

        The write is conditional on the review count read, so two concurrent
        reviews cannot both build on the same previous average.

        Raises:
            NotFoundError: If practitioner not found
            ValidationError: If a rating is out of range
            ConflictError: If the aggregate keeps changing underneath
        """
        for _ in range(RATING_UPDATE_ATTEMPTS):
            result = await db.execute(select(practitioners).where(practitioners.c.id == practitioner_id))
            row = result.mappings().first()
            if row is None:
                raise NotFoundError("Practitioner not found")

            current = RatingAggregate(
                average_rating=row["rating_average"],
                total_reviews=row["rating_count"],
                breakdown={d: row[f"rating_{d}"] for d in RATING_DIMENSIONS},
            )
            new = update_rating(current, rating, breakdown)

            query = (
                update(practitioners)
                .where(
                    practitioners.c.id == practitioner_id,
                    practitioners.c.rating_count == current.total_reviews,
                )
                .values(
                    rating_average=new.average_rating,
                    rating_count=new.total_reviews,
                    updated_at=datetime.now(UTC),
                    **{f"rating_{d}": v for d, v in new.breakdown.items()},
                )
                .returning(practitioners)
            )
            result = await db.execute(query)
            updated = result.mappings().first()
            await db.commit()

            if updated is not None:
                self._invalidate(practitioner_id)
                logger.info(
                    "practitioner_rated",
                    practitioner_id=str(practitioner_id),
                    average_rating=new.average_rating,
                    total_reviews=new.total_reviews,
                )
                return present_practitioner(updated)

        raise ConflictError("Practitioner rating changed concurrently, please retry")

    async def get_upcoming_appointments(
        self,
        db: AsyncSession,
        practitioner_id: UUID,
        now: datetime,
        limit: int = 50,
    ) -> list[Appointment]:
        """Scheduled and confirmed appointments from ``now`` onwards."""
        filters = AppointmentFilters(
            practitioner_id=practitioner_id,
            statuses=[AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED],
            from_date=now,
            page_size=limit,
        )
        _, items = await SqlAppointmentRepository(db).list_appointments(filters)
        return items


"""Therapy service for business logic."""

from datetime import UTC, datetime
from decimal import Decimal
from uuid import UUID

import structlog
from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ayursutra.core.exceptions import ConflictError, NotFoundError, ValidationError
from ayursutra.core.lifecycle import QUALIFYING_STATUSES
from ayursutra.core.ratings import effective_price, format_duration, recompute_popularity
from ayursutra.core.redis_client import CacheManager
from ayursutra.models.therapies import therapies
from ayursutra.repositories.appointments import SqlAppointmentRepository
from ayursutra.schemas.therapies import TherapyCreate, TherapyUpdate

logger = structlog.get_logger()


def present_therapy(row: dict) -> dict:
    """Add derived pricing and duration fields."""
    therapy = dict(row)
    therapy["effective_price"] = effective_price(row["base_price"], row["package_discount"])
    therapy["formatted_duration"] = format_duration(row["duration_minutes"])
    return therapy


class TherapyService:
    """Service for therapy catalogue operations."""

    THERAPY_CACHE_TTL = 1800  # 30 minutes for individual therapies
    THERAPY_LIST_CACHE_TTL = 300  # 5 minutes for lists

    def __init__(self, cache_manager: CacheManager | None = None):
        """Initialize service with optional cache manager."""
        self.cache = cache_manager

    @staticmethod
    def _get_therapy_cache_key(therapy_id: UUID) -> str:
        """Generate cache key for therapy."""
        return f"therapy:{therapy_id}"

    def _invalidate(self, therapy_id: UUID | None = None) -> None:
        if not self.cache:
            return
        if therapy_id is not None:
            self.cache.delete(self._get_therapy_cache_key(therapy_id))
        self.cache.delete_pattern("therapy:list:*")

    async def create_therapy(self, db: AsyncSession, data: TherapyCreate, created_by: UUID) -> dict:
        """
        Add a therapy to the catalogue.

        Raises:
            ConflictError: If a therapy with the same name exists
            ValidationError: If maximum sessions are below the recommended count
        """
        if data.sessions_maximum < data.sessions_recommended:
            raise ValidationError("Maximum sessions cannot be less than recommended sessions")

        existing = await db.execute(select(therapies.c.id).where(therapies.c.name == data.name))
        if existing.first() is not None:
            raise ConflictError(f"Therapy '{data.name}' already exists")

        query = (
            therapies.insert()
            .values(**data.model_dump(), created_by=created_by)
            .returning(therapies)
        )
        result = await db.execute(query)
        therapy = result.mappings().first()

        if not therapy:
            raise ValueError("Failed to create therapy")

        await db.commit()
        self._invalidate()

        logger.info("therapy_created", therapy_id=str(therapy["id"]), name=therapy["name"])
        return present_therapy(therapy)

    async def get_therapy_by_id(self, db: AsyncSession, therapy_id: UUID) -> dict | None:
        """Get therapy by ID with caching."""
        if self.cache:
            cached = self.cache.get_json(self._get_therapy_cache_key(therapy_id))
            if cached:
                return cached

        result = await db.execute(select(therapies).where(therapies.c.id == therapy_id))
        therapy = result.mappings().first()

        if not therapy:
            return None

        therapy_dict = present_therapy(therapy)
        if self.cache:
            self.cache.set_json(
                self._get_therapy_cache_key(therapy_id), therapy_dict, ttl=self.THERAPY_CACHE_TTL
            )
        return therapy_dict

    async def get_therapies(
        self,
        db: AsyncSession,
        category: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[dict]:
        """Active therapies, most popular first, then best rated."""
        cache_key = f"therapy:list:{category}:{skip}:{limit}"
        if self.cache:
            cached = self.cache.get_json(cache_key)
            if cached is not None:
                return cached

        conditions = [therapies.c.status == "active"]
        if category:
            conditions.append(therapies.c.category == category)

        query = (
            select(therapies)
            .where(*conditions)
            .order_by(
                therapies.c.popularity.desc(),
                therapies.c.average_rating.desc(),
                therapies.c.name,
            )
            .offset(skip)
            .limit(limit)
        )
        result = await db.execute(query)
        items = [present_therapy(row) for row in result.mappings().all()]

        if self.cache:
            self.cache.set_json(cache_key, items, ttl=self.THERAPY_LIST_CACHE_TTL)
        return items

    async def get_popular_therapies(self, db: AsyncSession, limit: int = 10) -> list[dict]:
        """Top active therapies by popularity score."""
        return await self.get_therapies(db, limit=limit)

    async def search_therapies(
        self,
        db: AsyncSession,
        term: str,
        category: str | None = None,
        therapy_type: str | None = None,
        max_price: Decimal | None = None,
        max_duration: int | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[dict]:
        """
        Active therapies whose name or Sanskrit name contains ``term``.

        Matching is case-insensitive. Price is compared against the base
        price before any package discount. Results are ordered like the
        catalogue listing.
        """
        pattern = f"%{term}%"
        conditions = [
            therapies.c.status == "active",
            or_(therapies.c.name.ilike(pattern), therapies.c.sanskrit_name.ilike(pattern)),
        ]
        if category:
            conditions.append(therapies.c.category == category)
        if therapy_type:
            conditions.append(therapies.c.type == therapy_type)
        if max_price is not None:
            conditions.append(therapies.c.base_price <= max_price)
        if max_duration is not None:
            conditions.append(therapies.c.duration_minutes <= max_duration)

        query = (
            select(therapies)
            .where(*conditions)
            .order_by(
                therapies.c.popularity.desc(),
                therapies.c.average_rating.desc(),
                therapies.c.name,
            )
            .offset(skip)
            .limit(limit)
        )
        result = await db.execute(query)
        return [present_therapy(row) for row in result.mappings().all()]

    async def update_therapy(
        self,
        db: AsyncSession,
        therapy_id: UUID,
        data: TherapyUpdate,
        updated_by: UUID,
    ) -> dict:
        """
        Update a therapy.

        Raises:
            NotFoundError: If therapy not found
            ValidationError: If the resulting session plan is inconsistent
        """
        result = await db.execute(select(therapies).where(therapies.c.id == therapy_id))
        current = result.mappings().first()
        if current is None:
            raise NotFoundError("Therapy not found")

        update_values = data.model_dump(exclude_unset=True, exclude_none=True)
        if "status" in update_values:
            update_values["status"] = data.status.value

        recommended = update_values.get("sessions_recommended", current["sessions_recommended"])
        maximum = update_values.get("sessions_maximum", current["sessions_maximum"])
        if maximum < recommended:
            raise ValidationError("Maximum sessions cannot be less than recommended sessions")

        if not update_values:
            return present_therapy(current)

        query = (
            update(therapies)
            .where(therapies.c.id == therapy_id)
            .values(**update_values, updated_by=updated_by, updated_at=datetime.now(UTC))
            .returning(therapies)
        )
        result = await db.execute(query)
        updated = result.mappings().first()
        await db.commit()

        self._invalidate(therapy_id)
        return present_therapy(updated)

    async def recompute_popularity(self, db: AsyncSession, therapy_id: UUID) -> dict:
        """
        Refresh a therapy's popularity score from its ratings and bookings.

        Counts completed, scheduled and confirmed appointments of the therapy.

        Raises:
            NotFoundError: If therapy not found
        """
        result = await db.execute(select(therapies).where(therapies.c.id == therapy_id))
        therapy = result.mappings().first()
        if therapy is None:
            raise NotFoundError("Therapy not found")

        bookings = await SqlAppointmentRepository(db).count_for_therapy(
            therapy_id, QUALIFYING_STATUSES
        )
        popularity = recompute_popularity(
            therapy["average_rating"], therapy["total_reviews"], bookings
        )

        result = await db.execute(
            update(therapies)
            .where(therapies.c.id == therapy_id)
            .values(popularity=popularity, updated_at=datetime.now(UTC))
            .returning(therapies)
        )
        updated = result.mappings().first()
        await db.commit()

        self._invalidate(therapy_id)
        logger.info(
            "therapy_popularity_recomputed",
            therapy_id=str(therapy_id),
            popularity=popularity,
            qualifying_bookings=bookings,
        )
        return present_therapy(updated)

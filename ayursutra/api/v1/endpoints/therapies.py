"""Therapy catalogue endpoints."""

from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Query, status

from ayursutra.core.exceptions import NotFoundError
from ayursutra.dependencies import AdminUser, Cache, DatabaseSession
from ayursutra.schemas.therapies import TherapyCreate, TherapyResponse, TherapyUpdate
from ayursutra.services.therapy_service import TherapyService

router = APIRouter()


@router.get(
    "/",
    response_model=list[TherapyResponse],
    status_code=status.HTTP_200_OK,
    summary="List therapies",
)
async def list_therapies(
    db: DatabaseSession,
    cache: Cache,
    category: str | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
) -> list[dict]:
    """Active therapies, most popular first."""
    return await TherapyService(cache).get_therapies(db, category=category, skip=skip, limit=limit)


@router.post(
    "/",
    response_model=TherapyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create therapy",
)
async def create_therapy(
    data: TherapyCreate,
    admin: AdminUser,
    db: DatabaseSession,
    cache: Cache,
) -> dict:
    """Add a therapy to the catalogue (admin only)."""
    return await TherapyService(cache).create_therapy(db, data, created_by=admin.user_id)


@router.get(
    "/popular",
    response_model=list[TherapyResponse],
    status_code=status.HTTP_200_OK,
    summary="Most popular therapies",
)
async def popular_therapies(
    db: DatabaseSession,
    cache: Cache,
    limit: int = Query(10, ge=1, le=50),
) -> list[dict]:
    """Top active therapies by popularity score."""
    return await TherapyService(cache).get_popular_therapies(db, limit=limit)


@router.get(
    "/search",
    response_model=list[TherapyResponse],
    status_code=status.HTTP_200_OK,
    summary="Search therapies",
)
async def search_therapies(
    db: DatabaseSession,
    q: str = Query(..., min_length=1, max_length=100),
    category: str | None = Query(None),
    therapy_type: str | None = Query(None, alias="type"),
    max_price: Decimal | None = Query(None, ge=0),
    max_duration: int | None = Query(None, ge=1),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
) -> list[dict]:
    """Search active therapies by name or Sanskrit name."""
    return await TherapyService().search_therapies(
        db,
        q,
        category=category,
        therapy_type=therapy_type,
        max_price=max_price,
        max_duration=max_duration,
        skip=skip,
        limit=limit,
    )


@router.get(
    "/{therapy_id}",
    response_model=TherapyResponse,
    status_code=status.HTTP_200_OK,
    summary="Get therapy by ID",
)
async def get_therapy(therapy_id: UUID, db: DatabaseSession, cache: Cache) -> dict:
    """Therapy details including effective price."""
    therapy = await TherapyService(cache).get_therapy_by_id(db, therapy_id)
    if not therapy:
        raise NotFoundError("Therapy not found")
    return therapy


@router.put(
    "/{therapy_id}",
    response_model=TherapyResponse,
    status_code=status.HTTP_200_OK,
    summary="Update therapy",
)
async def update_therapy(
    therapy_id: UUID,
    data: TherapyUpdate,
    admin: AdminUser,
    db: DatabaseSession,
    cache: Cache,
) -> dict:
    """Update a therapy (admin only)."""
    return await TherapyService(cache).update_therapy(db, therapy_id, data, updated_by=admin.user_id)


@router.post(
    "/{therapy_id}/popularity",
    response_model=TherapyResponse,
    status_code=status.HTTP_200_OK,
    summary="Recompute popularity",
)
async def recompute_popularity(
    therapy_id: UUID,
    admin: AdminUser,
    db: DatabaseSession,
    cache: Cache,
) -> dict:
    """Refresh the popularity score from ratings and qualifying bookings."""
    return await TherapyService(cache).recompute_popularity(db, therapy_id)

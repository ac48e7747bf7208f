"""API v1 router configuration."""

from fastapi import APIRouter, Depends

from ayursutra.api.v1.endpoints import (
    appointments,
    health,
    notifications,
    patients,
    practitioners,
    therapies,
)
from ayursutra.dependencies import rate_limit

api_router = APIRouter()

# Health checks are exempt from rate limiting
api_router.include_router(health.router, tags=["Health"])

limited = [Depends(rate_limit)]
api_router.include_router(
    appointments.router, prefix="/appointments", tags=["Appointments"], dependencies=limited
)
api_router.include_router(
    practitioners.router, prefix="/practitioners", tags=["Practitioners"], dependencies=limited
)
api_router.include_router(
    therapies.router, prefix="/therapies", tags=["Therapies"], dependencies=limited
)
api_router.include_router(
    patients.router, prefix="/patients", tags=["Patients"], dependencies=limited
)
api_router.include_router(
    notifications.router, prefix="/notifications", tags=["Notifications"], dependencies=limited
)

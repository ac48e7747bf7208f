"""FastAPI dependencies."""

from dataclasses import dataclass
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ayursutra.config import settings
from ayursutra.core.clock import Clock, SystemClock
from ayursutra.core.entities import Appointment
from ayursutra.core.exceptions import ForbiddenException, RateLimitException
from ayursutra.core.redis_client import CacheManager, RateLimiter, get_cache_manager, get_redis_client
from ayursutra.core.security import Role, decode_access_token
from ayursutra.database import get_db
from ayursutra.models.patients import patients
from ayursutra.models.practitioners import practitioners
from ayursutra.repositories.appointments import SqlAppointmentRepository
from ayursutra.services.appointment_service import AppointmentService

# Security
security = HTTPBearer()

_system_clock = SystemClock()


@dataclass(frozen=True)
class CurrentUserClaims:
    """Identity taken from a validated access token."""

    user_id: UUID
    role: Role

    @property
    def is_admin(self) -> bool:
        """Whether the caller has the admin role."""
        return self.role == Role.ADMIN


def _credentials_error(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> CurrentUserClaims:
    """
    Extract and validate the caller's identity from a JWT.

    Args:
        credentials: Bearer token credentials

    Returns:
        User ID and role from the token

    Raises:
        HTTPException: If token is invalid, expired or lacks claims
    """
    payload = decode_access_token(credentials.credentials)

    if payload is None:
        raise _credentials_error()

    user_id_str = payload.get("sub")
    if user_id_str is None or not isinstance(user_id_str, str):
        raise _credentials_error()

    try:
        user_id = UUID(user_id_str)
    except ValueError:
        raise _credentials_error("Invalid user ID format")

    try:
        role = Role(payload.get("role", Role.PATIENT.value))
    except ValueError:
        raise _credentials_error("Unknown role")

    return CurrentUserClaims(user_id=user_id, role=role)


async def require_admin(
    user: Annotated[CurrentUserClaims, Depends(get_current_user)],
) -> CurrentUserClaims:
    """
    Restrict an endpoint to administrators.

    Raises:
        ForbiddenException: If the caller is not an admin
    """
    if not user.is_admin:
        raise ForbiddenException("Admin privileges required")
    return user


@dataclass(frozen=True)
class ActorScope:
    """The caller plus the patient or practitioner profile linked to their account."""

    user: CurrentUserClaims
    patient_id: UUID | None = None
    practitioner_id: UUID | None = None

    def can_access(self, appointment: Appointment) -> bool:
        """Admins see everything; others only appointments they take part in."""
        if self.user.is_admin:
            return True
        if self.user.role == Role.PATIENT:
            return appointment.patient_id == self.patient_id
        return appointment.practitioner_id == self.practitioner_id

    def ensure_access(self, appointment: Appointment) -> None:
        """
        Raises:
            ForbiddenException: If the caller does not take part in the appointment
        """
        if not self.can_access(appointment):
            raise ForbiddenException("Access denied")


async def get_actor_scope(
    user: Annotated[CurrentUserClaims, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ActorScope:
    """Resolve the profile linked to the caller's account."""
    if user.role == Role.PATIENT:
        result = await db.execute(select(patients.c.id).where(patients.c.user_id == user.user_id))
        return ActorScope(user=user, patient_id=result.scalar())
    if user.role == Role.PRACTITIONER:
        result = await db.execute(
            select(practitioners.c.id).where(practitioners.c.user_id == user.user_id)
        )
        return ActorScope(user=user, practitioner_id=result.scalar())
    return ActorScope(user=user)


def get_clock() -> Clock:
    """Clock used for "now" in scheduling decisions."""
    return _system_clock


def get_cache() -> CacheManager | None:
    """Cache manager, or None when caching is disabled."""
    return get_cache_manager()


async def get_appointment_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> AppointmentService:
    """Appointment lifecycle manager bound to the request's session."""
    return AppointmentService(SqlAppointmentRepository(db), clock=clock)


async def rate_limit(request: Request, response: Response) -> None:
    """
    Apply the per-client request budget.

    Keys on the client address; disabled when ``RATE_LIMIT_ENABLED`` is false.

    Raises:
        RateLimitException: If the client exhausted its budget for the window
    """
    if not settings.rate_limit_enabled:
        return

    client = request.client.host if request.client else "anonymous"
    result = RateLimiter(get_redis_client()).hit(
        client,
        limit=settings.rate_limit_per_window,
        window=settings.rate_limit_window_seconds,
    )

    response.headers["X-RateLimit-Limit"] = str(result.limit)
    response.headers["X-RateLimit-Remaining"] = str(result.remaining)

    if not result.allowed:
        raise RateLimitException(
            "Too many requests from this client, please try again later",
            retry_after=result.reset_after,
        )


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUser = Annotated[CurrentUserClaims, Depends(get_current_user)]
AdminUser = Annotated[CurrentUserClaims, Depends(require_admin)]
Actor = Annotated[ActorScope, Depends(get_actor_scope)]
Cache = Annotated[CacheManager | None, Depends(get_cache)]
ClockDep = Annotated[Clock, Depends(get_clock)]
AppointmentServiceDep = Annotated[AppointmentService, Depends(get_appointment_service)]

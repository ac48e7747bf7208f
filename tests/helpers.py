"""Shared helpers for API tests."""

from datetime import UTC, datetime, time, timedelta
from uuid import UUID
from zoneinfo import ZoneInfo

from ayursutra.config import settings
from ayursutra.core.security import Role, create_access_token

CLINIC_TZ = ZoneInfo(settings.clinic_timezone)


def next_weekday_at(weekday: int, hour: int, minute: int = 0, weeks_ahead: int = 1) -> datetime:
    """
    Clinic-local wall-clock time on a future weekday, as an aware UTC datetime.

    ``weekday`` follows ``date.weekday()`` (0 is Monday).
    """
    today = datetime.now(CLINIC_TZ).date()
    days = (weekday - today.weekday()) % 7 + 7 * weeks_ahead
    local_day = today + timedelta(days=days)
    local = datetime.combine(local_day, time(hour, minute), tzinfo=CLINIC_TZ)
    return local.astimezone(UTC)


def auth_headers_for(user_id: UUID, role: Role) -> dict[str, str]:
    token = create_access_token(user_id, role=role, expires_delta=timedelta(minutes=30))
    return {"Authorization": f"Bearer {token}"}

"""In-app notification endpoints.

Delivery is not implemented; the list is a fixed sample so clients can
build against the shape.
"""

from datetime import UTC, datetime, timedelta

from fastapi import APIRouter, status

from ayursutra.dependencies import CurrentUser
from ayursutra.schemas.notifications import (
    NotificationItem,
    NotificationListResponse,
    NotificationReadResponse,
)

router = APIRouter()


def _sample_notifications(now: datetime) -> list[NotificationItem]:
    return [
        NotificationItem(
            id="sample-reminder",
            type="appointment_reminder",
            title="Appointment Reminder",
            message="Your Abhyanga session is scheduled for tomorrow at 10:00 AM",
            created_at=now,
        ),
        NotificationItem(
            id="sample-pre-procedure",
            type="pre_procedure",
            title="Pre-procedure Instructions",
            message="Please avoid heavy meals 2 hours before your therapy session",
            created_at=now - timedelta(days=1),
        ),
    ]


@router.get(
    "/",
    response_model=NotificationListResponse,
    status_code=status.HTTP_200_OK,
    summary="List notifications",
)
async def list_notifications(current_user: CurrentUser) -> NotificationListResponse:
    """Notifications for the current user."""
    items = _sample_notifications(datetime.now(UTC))
    return NotificationListResponse(count=len(items), items=items)


@router.put(
    "/{notification_id}/read",
    response_model=NotificationReadResponse,
    status_code=status.HTTP_200_OK,
    summary="Mark notification as read",
)
async def mark_notification_read(
    notification_id: str,
    current_user: CurrentUser,
) -> NotificationReadResponse:
    """Acknowledge a read receipt."""
    return NotificationReadResponse(id=notification_id)

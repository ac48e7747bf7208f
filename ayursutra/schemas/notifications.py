"""In-app notification schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class NotificationItem(BaseModel):
    """One in-app notification."""

    id: str
    type: Literal["appointment_reminder", "pre_procedure", "post_procedure", "system"]
    title: str
    message: str
    is_read: bool = False
    created_at: datetime


class NotificationListResponse(BaseModel):
    """Notifications for the current user."""

    count: int
    items: list[NotificationItem]


class NotificationReadResponse(BaseModel):
    """Acknowledgement of a mark-as-read request."""

    id: str
    message: str = "Notification marked as read"

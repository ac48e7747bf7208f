"""Appointment schemas for request/response validation."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_serializer, model_validator

from ayursutra.core.lifecycle import AppointmentStatus
from ayursutra.core.scheduling import MIN_DURATION_MINUTES

__all__ = [
    "AppointmentCancel",
    "AppointmentComplete",
    "AppointmentCreate",
    "AppointmentFeedback",
    "AppointmentFilters",
    "AppointmentListResponse",
    "AppointmentReschedule",
    "AppointmentResponse",
    "AppointmentStatus",
    "AvailabilityCheckRequest",
    "AvailabilityCheckResponse",
    "PaymentStatus",
    "RescheduleEntryResponse",
]


class PaymentStatus(str, Enum):
    """Payment status enumeration."""

    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    REFUNDED = "refunded"


class AppointmentCreate(BaseModel):
    """Schema for booking a new appointment."""

    patient_id: UUID
    practitioner_id: UUID
    therapy_id: UUID
    start_at: datetime
    duration_minutes: int | None = Field(
        None,
        ge=MIN_DURATION_MINUTES,
        description="Defaults to the therapy's duration",
    )
    price_amount: Decimal | None = Field(
        None,
        ge=0,
        decimal_places=2,
        description="Defaults to the therapy's effective price",
    )
    currency: str | None = Field(None, min_length=3, max_length=3)
    discount_applied: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    session_number: int = Field(1, ge=1)
    total_sessions: int = Field(1, ge=1)
    patient_notes: str | None = Field(None, max_length=1000)
    admin_notes: str | None = Field(None, max_length=1000)

    @model_validator(mode="after")
    def validate_sessions(self) -> "AppointmentCreate":
        """Session number cannot exceed the planned number of sessions."""
        if self.session_number > self.total_sessions:
            raise ValueError("Session number cannot exceed total sessions")
        return self


class AppointmentReschedule(BaseModel):
    """Schema for moving an appointment to a new start time."""

    new_start_at: datetime
    reason: str | None = Field(None, max_length=500)


class AppointmentCancel(BaseModel):
    """Schema for cancelling an appointment."""

    reason: str = Field(..., min_length=1, max_length=500)


class AppointmentComplete(BaseModel):
    """Schema for completing an appointment."""

    practitioner_notes: str | None = Field(None, max_length=2000)


class AppointmentFeedback(BaseModel):
    """Schema for patient feedback on a completed appointment."""

    rating: int = Field(..., ge=1, le=5)
    comment: str | None = Field(None, max_length=500)


class RescheduleEntryResponse(BaseModel):
    """One entry of the rescheduling history."""

    original_start_at: datetime
    new_start_at: datetime
    reason: str | None
    rescheduled_by: UUID | None
    rescheduled_at: datetime

    model_config = {"from_attributes": True}


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: UUID
    patient_id: UUID
    practitioner_id: UUID
    therapy_id: UUID
    start_at: datetime
    end_at: datetime
    duration_minutes: int
    status: AppointmentStatus
    session_number: int
    total_sessions: int
    price_amount: Decimal
    currency: str
    discount_applied: Decimal
    payment_status: PaymentStatus
    practitioner_notes: str | None = None
    patient_notes: str | None = None
    admin_notes: str | None = None
    reminders_sent: dict[str, bool]
    feedback_rating: int | None = None
    feedback_comment: str | None = None
    feedback_submitted_at: datetime | None = None
    cancellation_reason: str | None = None
    cancelled_by: UUID | None = None
    cancelled_at: datetime | None = None
    rescheduling_history: list[RescheduleEntryResponse] = Field(default_factory=list)
    created_by: UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @field_serializer("price_amount", "discount_applied", when_used="json")
    def serialize_decimal(self, value: Decimal) -> float:
        """Serialize Decimal to float for JSON."""
        return float(value)


class AppointmentListResponse(BaseModel):
    """Schema for paginated appointment list response."""

    total: int
    page: int
    page_size: int
    items: list[AppointmentResponse]


class AppointmentFilters(BaseModel):
    """Schema for appointment filtering."""

    status: AppointmentStatus | None = None
    statuses: list[AppointmentStatus] | None = None
    patient_id: UUID | None = None
    practitioner_id: UUID | None = None
    therapy_id: UUID | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)


class AvailabilityCheckRequest(BaseModel):
    """Schema for checking whether a practitioner can take a booking."""

    practitioner_id: UUID
    start_at: datetime
    duration_minutes: int = Field(..., ge=MIN_DURATION_MINUTES)


class AvailabilityCheckResponse(BaseModel):
    """Result of an availability check."""

    practitioner_id: UUID
    start_at: datetime
    end_at: datetime
    available: bool
    within_working_hours: bool
    has_conflict: bool

"""Appointment entity used by the lifecycle manager and its repositories."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import UUID, uuid4

from ayursutra.core.lifecycle import AppointmentStatus


@dataclass(frozen=True)
class RescheduleEntry:
    """One immutable line of an appointment's rescheduling history."""

    original_start_at: datetime
    new_start_at: datetime
    reason: str | None
    rescheduled_by: UUID | None
    rescheduled_at: datetime


@dataclass
class Appointment:
    """A booked therapy session."""

    patient_id: UUID
    practitioner_id: UUID
    therapy_id: UUID
    start_at: datetime
    duration_minutes: int
    price_amount: Decimal
    created_by: UUID
    created_at: datetime
    updated_at: datetime
    id: UUID = field(default_factory=uuid4)
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    session_number: int = 1
    total_sessions: int = 1
    currency: str = "INR"
    discount_applied: Decimal = Decimal("0")
    payment_status: str = "pending"
    practitioner_notes: str | None = None
    patient_notes: str | None = None
    admin_notes: str | None = None
    reminder_email_24h: bool = False
    reminder_email_2h: bool = False
    reminder_sms_1h: bool = False
    feedback_rating: int | None = None
    feedback_comment: str | None = None
    feedback_submitted_at: datetime | None = None
    cancellation_reason: str | None = None
    cancelled_by: UUID | None = None
    cancelled_at: datetime | None = None
    rescheduling_history: list[RescheduleEntry] = field(default_factory=list)

    @property
    def end_at(self) -> datetime:
        """Instant the session ends."""
        return self.start_at + timedelta(minutes=self.duration_minutes)

    @property
    def reminders_sent(self) -> dict[str, bool]:
        """Reminder flags keyed by channel."""
        return {
            "email_24h": self.reminder_email_24h,
            "email_2h": self.reminder_email_2h,
            "sms_1h": self.reminder_sms_1h,
        }

    def reset_reminders(self) -> None:
        """Clear reminder flags; the reminder schedule anchors to ``start_at``."""
        self.reminder_email_24h = False
        self.reminder_email_2h = False
        self.reminder_sms_1h = False

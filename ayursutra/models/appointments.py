"""Appointments table model using SQLAlchemy Core."""

import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    Uuid,
    func,
    text,
)

from ayursutra.models.base import metadata

appointments = Table(
    "appointments",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid.uuid4),
    # References
    Column("patient_id", Uuid, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False),
    Column(
        "practitioner_id",
        Uuid,
        ForeignKey("practitioners.id", ondelete="RESTRICT"),
        nullable=False,
    ),
    Column("therapy_id", Uuid, ForeignKey("therapies.id", ondelete="RESTRICT"), nullable=False),
    # Slot; end_at is denormalised so the overlap query can use an index
    Column("start_at", DateTime(timezone=True), nullable=False),
    Column("duration_minutes", Integer, nullable=False),
    Column("end_at", DateTime(timezone=True), nullable=False),
    # Status management
    Column("status", Text, nullable=False, server_default="scheduled"),
    Column("session_number", Integer, nullable=False, server_default=text("1")),
    Column("total_sessions", Integer, nullable=False, server_default=text("1")),
    # Pricing
    Column("price_amount", Numeric(10, 2), nullable=False),
    Column("currency", String(3), nullable=False, server_default="INR"),
    Column("discount_applied", Numeric(10, 2), nullable=False, server_default=text("0")),
    Column("payment_status", Text, nullable=False, server_default="pending"),
    # Notes
    Column("practitioner_notes", Text),
    Column("patient_notes", Text),
    Column("admin_notes", Text),
    # Reminder flags, reset whenever start_at moves
    Column("reminder_email_24h", Boolean, nullable=False, server_default=text("false")),
    Column("reminder_email_2h", Boolean, nullable=False, server_default=text("false")),
    Column("reminder_sms_1h", Boolean, nullable=False, server_default=text("false")),
    # Feedback
    Column("feedback_rating", Integer),
    Column("feedback_comment", Text),
    Column("feedback_submitted_at", DateTime(timezone=True)),
    # Cancellation, set once
    Column("cancellation_reason", Text),
    Column("cancelled_by", Uuid),
    Column("cancelled_at", DateTime(timezone=True)),
    # Audit fields
    Column("created_by", Uuid, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    # Constraints
    CheckConstraint(
        "status IN ('scheduled', 'confirmed', 'in-progress', 'completed', "
        "'cancelled', 'no-show', 'rescheduled')",
        name="appointments_status_check",
    ),
    CheckConstraint(
        "payment_status IN ('pending', 'partial', 'paid', 'refunded')",
        name="appointments_payment_status_check",
    ),
    CheckConstraint("duration_minutes >= 15", name="appointments_duration_check"),
    CheckConstraint(
        "session_number >= 1 AND session_number <= total_sessions",
        name="appointments_session_check",
    ),
    CheckConstraint(
        "price_amount >= 0 AND discount_applied >= 0",
        name="appointments_pricing_check",
    ),
    CheckConstraint(
        "feedback_rating IS NULL OR (feedback_rating >= 1 AND feedback_rating <= 5)",
        name="appointments_feedback_rating_check",
    ),
    Index("ix_appointments_practitioner_slot", "practitioner_id", "start_at", "status"),
    Index("ix_appointments_patient_start", "patient_id", "start_at"),
    Index("ix_appointments_therapy_id", "therapy_id"),
)

# Append-only: one row per reschedule, never updated or deleted
appointment_reschedules = Table(
    "appointment_reschedules",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid.uuid4),
    Column(
        "appointment_id",
        Uuid,
        ForeignKey("appointments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("original_start_at", DateTime(timezone=True), nullable=False),
    Column("new_start_at", DateTime(timezone=True), nullable=False),
    Column("reason", Text),
    Column("rescheduled_by", Uuid),
    Column("rescheduled_at", DateTime(timezone=True), nullable=False),
)

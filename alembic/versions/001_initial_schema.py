"""Initial schema - practitioners, patients, therapies and appointments.

Revision ID: 001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Upgrade database schema."""
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    op.create_table(
        "practitioners",
        sa.Column(
            "id", postgresql.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False
        ),
        sa.Column("user_id", postgresql.UUID(), nullable=True),
        sa.Column("first_name", sa.VARCHAR(length=50), nullable=False),
        sa.Column("last_name", sa.VARCHAR(length=50), nullable=False),
        sa.Column("title", sa.VARCHAR(length=20), server_default="Therapist", nullable=False),
        sa.Column("specializations", postgresql.JSON(), nullable=False),
        sa.Column("experience_years", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("experience_description", sa.Text(), nullable=True),
        sa.Column("phone", sa.VARCHAR(length=20), nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("address", postgresql.JSON(), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("languages", postgresql.JSON(), nullable=True),
        sa.Column("availability", postgresql.JSON(), nullable=False),
        sa.Column(
            "default_session_minutes", sa.Integer(), server_default=sa.text("60"), nullable=False
        ),
        sa.Column("buffer_minutes", sa.Integer(), server_default=sa.text("15"), nullable=False),
        sa.Column(
            "max_patients_per_day", sa.Integer(), server_default=sa.text("8"), nullable=False
        ),
        sa.Column("rating_average", sa.Float(), server_default=sa.text("0"), nullable=False),
        sa.Column("rating_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("rating_professionalism", sa.Float(), server_default=sa.text("0"), nullable=False),
        sa.Column("rating_expertise", sa.Float(), server_default=sa.text("0"), nullable=False),
        sa.Column("rating_communication", sa.Float(), server_default=sa.text("0"), nullable=False),
        sa.Column("rating_punctuality", sa.Float(), server_default=sa.text("0"), nullable=False),
        sa.Column("status", sa.Text(), server_default="active", nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('active', 'inactive', 'suspended', 'on-leave')",
            name="practitioners_status_check",
        ),
        sa.CheckConstraint(
            "rating_average >= 0 AND rating_average <= 5", name="practitioners_rating_check"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_practitioners_user_id", "practitioners", ["user_id"], unique=True)
    op.create_index("ix_practitioners_status", "practitioners", ["status"])

    op.create_table(
        "patients",
        sa.Column(
            "id", postgresql.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False
        ),
        sa.Column("user_id", postgresql.UUID(), nullable=True),
        sa.Column("first_name", sa.VARCHAR(length=50), nullable=False),
        sa.Column("last_name", sa.VARCHAR(length=50), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=False),
        sa.Column("gender", sa.VARCHAR(length=20), nullable=False),
        sa.Column("phone", sa.VARCHAR(length=20), nullable=False),
        sa.Column("alternate_phone", sa.VARCHAR(length=20), nullable=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("address", postgresql.JSON(), nullable=True),
        sa.Column("emergency_contact", postgresql.JSON(), nullable=True),
        sa.Column("medical_history", postgresql.JSON(), nullable=True),
        sa.Column("status", sa.Text(), server_default="active", nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "gender IN ('male', 'female', 'other', 'prefer-not-to-say')",
            name="patients_gender_check",
        ),
        sa.CheckConstraint(
            "status IN ('active', 'inactive', 'suspended')", name="patients_status_check"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_patients_user_id", "patients", ["user_id"], unique=True)
    op.create_index("ix_patients_phone", "patients", ["phone"])
    op.create_index("ix_patients_status", "patients", ["status"])

    op.create_table(
        "therapies",
        sa.Column(
            "id", postgresql.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False
        ),
        sa.Column("name", sa.VARCHAR(length=100), nullable=False),
        sa.Column("sanskrit_name", sa.VARCHAR(length=100), nullable=True),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("benefits", postgresql.JSON(), nullable=True),
        sa.Column("indications", postgresql.JSON(), nullable=True),
        sa.Column("contraindications", postgresql.JSON(), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("sessions_recommended", sa.Integer(), server_default=sa.text("1"), nullable=False),
        sa.Column("sessions_maximum", sa.Integer(), server_default=sa.text("21"), nullable=False),
        sa.Column("session_frequency", sa.Text(), server_default="daily", nullable=False),
        sa.Column("base_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.VARCHAR(length=3), server_default="INR", nullable=False),
        sa.Column("package_discount", sa.Numeric(5, 2), server_default=sa.text("0"), nullable=False),
        sa.Column("status", sa.Text(), server_default="active", nullable=False),
        sa.Column("popularity", sa.Float(), server_default=sa.text("0"), nullable=False),
        sa.Column("average_rating", sa.Float(), server_default=sa.text("0"), nullable=False),
        sa.Column("total_reviews", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("created_by", postgresql.UUID(), nullable=False),
        sa.Column("updated_by", postgresql.UUID(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "duration_minutes >= 15 AND duration_minutes <= 480", name="therapies_duration_check"
        ),
        sa.CheckConstraint(
            "sessions_maximum >= sessions_recommended", name="therapies_sessions_check"
        ),
        sa.CheckConstraint(
            "package_discount >= 0 AND package_discount <= 50", name="therapies_discount_check"
        ),
        sa.CheckConstraint(
            "status IN ('active', 'inactive', 'seasonal', 'discontinued')",
            name="therapies_status_check",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index("ix_therapies_category", "therapies", ["category"])
    op.create_index("ix_therapies_status", "therapies", ["status"])

    op.create_table(
        "appointments",
        sa.Column(
            "id", postgresql.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False
        ),
        sa.Column("patient_id", postgresql.UUID(), nullable=False),
        sa.Column("practitioner_id", postgresql.UUID(), nullable=False),
        sa.Column("therapy_id", postgresql.UUID(), nullable=False),
        sa.Column("start_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("end_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("status", sa.Text(), server_default="scheduled", nullable=False),
        sa.Column("session_number", sa.Integer(), server_default=sa.text("1"), nullable=False),
        sa.Column("total_sessions", sa.Integer(), server_default=sa.text("1"), nullable=False),
        sa.Column("price_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.VARCHAR(length=3), server_default="INR", nullable=False),
        sa.Column(
            "discount_applied", sa.Numeric(10, 2), server_default=sa.text("0"), nullable=False
        ),
        sa.Column("payment_status", sa.Text(), server_default="pending", nullable=False),
        sa.Column("practitioner_notes", sa.Text(), nullable=True),
        sa.Column("patient_notes", sa.Text(), nullable=True),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column(
            "reminder_email_24h", sa.Boolean(), server_default=sa.text("false"), nullable=False
        ),
        sa.Column(
            "reminder_email_2h", sa.Boolean(), server_default=sa.text("false"), nullable=False
        ),
        sa.Column("reminder_sms_1h", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("feedback_rating", sa.Integer(), nullable=True),
        sa.Column("feedback_comment", sa.Text(), nullable=True),
        sa.Column("feedback_submitted_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("cancelled_by", postgresql.UUID(), nullable=True),
        sa.Column("cancelled_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("created_by", postgresql.UUID(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('scheduled', 'confirmed', 'in-progress', 'completed', "
            "'cancelled', 'no-show', 'rescheduled')",
            name="appointments_status_check",
        ),
        sa.CheckConstraint(
            "payment_status IN ('pending', 'partial', 'paid', 'refunded')",
            name="appointments_payment_status_check",
        ),
        sa.CheckConstraint("duration_minutes >= 15", name="appointments_duration_check"),
        sa.CheckConstraint(
            "session_number >= 1 AND session_number <= total_sessions",
            name="appointments_session_check",
        ),
        sa.CheckConstraint(
            "price_amount >= 0 AND discount_applied >= 0", name="appointments_pricing_check"
        ),
        sa.CheckConstraint(
            "feedback_rating IS NULL OR (feedback_rating >= 1 AND feedback_rating <= 5)",
            name="appointments_feedback_rating_check",
        ),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["practitioner_id"], ["practitioners.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["therapy_id"], ["therapies.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_appointments_practitioner_slot",
        "appointments",
        ["practitioner_id", "start_at", "status"],
    )
    op.create_index("ix_appointments_patient_start", "appointments", ["patient_id", "start_at"])
    op.create_index("ix_appointments_therapy_id", "appointments", ["therapy_id"])

    op.create_table(
        "appointment_reschedules",
        sa.Column(
            "id", postgresql.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False
        ),
        sa.Column("appointment_id", postgresql.UUID(), nullable=False),
        sa.Column("original_start_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("new_start_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("rescheduled_by", postgresql.UUID(), nullable=True),
        sa.Column("rescheduled_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["appointment_id"], ["appointments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_appointment_reschedules_appointment_id",
        "appointment_reschedules",
        ["appointment_id"],
    )


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index(
        "ix_appointment_reschedules_appointment_id", table_name="appointment_reschedules"
    )
    op.drop_table("appointment_reschedules")

    op.drop_index("ix_appointments_therapy_id", table_name="appointments")
    op.drop_index("ix_appointments_patient_start", table_name="appointments")
    op.drop_index("ix_appointments_practitioner_slot", table_name="appointments")
    op.drop_table("appointments")

    op.drop_index("ix_therapies_status", table_name="therapies")
    op.drop_index("ix_therapies_category", table_name="therapies")
    op.drop_table("therapies")

    op.drop_index("ix_patients_status", table_name="patients")
    op.drop_index("ix_patients_phone", table_name="patients")
    op.drop_index("ix_patients_user_id", table_name="patients")
    op.drop_table("patients")

    op.drop_index("ix_practitioners_status", table_name="practitioners")
    op.drop_index("ix_practitioners_user_id", table_name="practitioners")
    op.drop_table("practitioners")

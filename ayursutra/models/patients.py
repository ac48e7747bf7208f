"""Patient table model using SQLAlchemy Core."""

import uuid

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    String,
    Table,
    Text,
    Uuid,
    func,
)

from ayursutra.models.base import metadata

patients = Table(
    "patients",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid.uuid4),
    Column("user_id", Uuid, unique=True, index=True),
    # Personal information
    Column("first_name", String(50), nullable=False),
    Column("last_name", String(50), nullable=False),
    Column("date_of_birth", Date, nullable=False),
    Column("gender", String(20), nullable=False),
    Column("phone", String(20), nullable=False, index=True),
    Column("alternate_phone", String(20)),
    Column("email", Text),
    # Address and emergency contact
    Column("address", JSON),
    Column("emergency_contact", JSON),
    # Medical information (JSON for flexibility)
    Column("medical_history", JSON),
    # Constitution assessment: doshas, imbalance, pulse and tongue findings
    Column("ayurvedic_profile", JSON),
    Column("status", Text, nullable=False, server_default="active", index=True),
    Column("notes", Text),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint(
        "gender IN ('male', 'female', 'other', 'prefer-not-to-say')",
        name="patients_gender_check",
    ),
    CheckConstraint(
        "status IN ('active', 'inactive', 'suspended')",
        name="patients_status_check",
    ),
)

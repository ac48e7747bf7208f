"""Practitioner table model using SQLAlchemy Core."""

import uuid

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    Integer,
    String,
    Table,
    Text,
    Uuid,
    func,
    text,
)

from ayursutra.models.base import metadata

practitioners = Table(
    "practitioners",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid.uuid4),
    Column("user_id", Uuid, unique=True, index=True),
    # Identity
    Column("first_name", String(50), nullable=False),
    Column("last_name", String(50), nullable=False),
    Column("title", String(20), nullable=False, server_default="Therapist"),
    Column("specializations", JSON, nullable=False),
    # Experience
    Column("experience_years", Integer, nullable=False, server_default=text("0")),
    Column("experience_description", Text),
    # Contact
    Column("phone", String(20), nullable=False),
    Column("email", Text),
    Column("address", JSON),
    Column("bio", Text),
    Column("languages", JSON),
    # Weekly template keyed by weekday name
    Column("availability", JSON, nullable=False),
    # Session settings
    Column("default_session_minutes", Integer, nullable=False, server_default=text("60")),
    Column("buffer_minutes", Integer, nullable=False, server_default=text("15")),
    Column("max_patients_per_day", Integer, nullable=False, server_default=text("8")),
    # Ratings aggregate
    Column("rating_average", Float, nullable=False, server_default=text("0")),
    Column("rating_count", Integer, nullable=False, server_default=text("0")),
    Column("rating_professionalism", Float, nullable=False, server_default=text("0")),
    Column("rating_expertise", Float, nullable=False, server_default=text("0")),
    Column("rating_communication", Float, nullable=False, server_default=text("0")),
    Column("rating_punctuality", Float, nullable=False, server_default=text("0")),
    # Status
    Column("status", Text, nullable=False, server_default="active", index=True),
    Column("notes", Text),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint(
        "status IN ('active', 'inactive', 'suspended', 'on-leave')",
        name="practitioners_status_check",
    ),
    CheckConstraint("rating_average >= 0 AND rating_average <= 5", name="practitioners_rating_check"),
)

"""Therapy table model using SQLAlchemy Core."""

import uuid

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    Float,
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

therapies = Table(
    "therapies",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid.uuid4),
    Column("name", String(100), nullable=False, unique=True),
    Column("sanskrit_name", String(100)),
    Column("category", Text, nullable=False, index=True),
    Column("type", Text, nullable=False),
    Column("description", Text, nullable=False),
    Column("benefits", JSON),
    Column("indications", JSON),
    Column("contraindications", JSON),
    # Session plan
    Column("duration_minutes", Integer, nullable=False),
    Column("sessions_recommended", Integer, nullable=False, server_default=text("1")),
    Column("sessions_maximum", Integer, nullable=False, server_default=text("21")),
    Column("session_frequency", Text, nullable=False, server_default="daily"),
    # Pricing
    Column("base_price", Numeric(10, 2), nullable=False),
    Column("currency", String(3), nullable=False, server_default="INR"),
    Column("package_discount", Numeric(5, 2), nullable=False, server_default=text("0")),
    # Derived metrics
    Column("status", Text, nullable=False, server_default="active", index=True),
    Column("popularity", Float, nullable=False, server_default=text("0")),
    Column("average_rating", Float, nullable=False, server_default=text("0")),
    Column("total_reviews", Integer, nullable=False, server_default=text("0")),
    # Audit fields
    Column("created_by", Uuid, nullable=False),
    Column("updated_by", Uuid),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint(
        "duration_minutes >= 15 AND duration_minutes <= 480",
        name="therapies_duration_check",
    ),
    CheckConstraint("sessions_maximum >= sessions_recommended", name="therapies_sessions_check"),
    CheckConstraint(
        "package_discount >= 0 AND package_discount <= 50",
        name="therapies_discount_check",
    ),
    CheckConstraint(
        "status IN ('active', 'inactive', 'seasonal', 'discontinued')",
        name="therapies_status_check",
    ),
)

"""Therapy schemas for request/response validation."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_serializer, model_validator


class TherapyStatus(str, Enum):
    """Therapy status enumeration."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SEASONAL = "seasonal"
    DISCONTINUED = "discontinued"


class TherapyBase(BaseModel):
    """Base schema for therapy."""

    name: str = Field(..., min_length=1, max_length=100)
    sanskrit_name: str | None = Field(None, max_length=100)
    category: str = Field(..., min_length=1, max_length=50)
    type: str = Field(..., min_length=1, max_length=50)
    description: str = Field(..., min_length=1, max_length=2000)
    benefits: list[str] | None = None
    indications: list[str] | None = None
    contraindications: list[str] | None = None
    duration_minutes: int = Field(..., ge=15, le=480)
    sessions_recommended: int = Field(1, ge=1)
    sessions_maximum: int = Field(21, ge=1)
    session_frequency: str = Field("daily", max_length=50)
    base_price: Decimal = Field(..., ge=0, decimal_places=2)
    currency: str = Field("INR", min_length=3, max_length=3)
    package_discount: Decimal = Field(Decimal("0"), ge=0, le=50, decimal_places=2)


class TherapyCreate(TherapyBase):
    """Schema for creating a therapy."""

    @model_validator(mode="after")
    def validate_sessions(self) -> "TherapyCreate":
        """Maximum sessions cannot be below the recommended count."""
        if self.sessions_maximum < self.sessions_recommended:
            raise ValueError("Maximum sessions cannot be less than recommended sessions")
        return self


class TherapyUpdate(BaseModel):
    """Schema for updating a therapy."""

    sanskrit_name: str | None = Field(None, max_length=100)
    category: str | None = Field(None, min_length=1, max_length=50)
    type: str | None = Field(None, min_length=1, max_length=50)
    description: str | None = Field(None, min_length=1, max_length=2000)
    benefits: list[str] | None = None
    indications: list[str] | None = None
    contraindications: list[str] | None = None
    duration_minutes: int | None = Field(None, ge=15, le=480)
    sessions_recommended: int | None = Field(None, ge=1)
    sessions_maximum: int | None = Field(None, ge=1)
    session_frequency: str | None = Field(None, max_length=50)
    base_price: Decimal | None = Field(None, ge=0, decimal_places=2)
    package_discount: Decimal | None = Field(None, ge=0, le=50, decimal_places=2)
    status: TherapyStatus | None = None


class TherapyResponse(TherapyBase):
    """Therapy response schema."""

    id: UUID
    status: TherapyStatus
    popularity: float
    average_rating: float
    total_reviews: int
    effective_price: Decimal
    formatted_duration: str
    created_by: UUID
    updated_by: UUID | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @field_serializer("base_price", "package_discount", "effective_price", when_used="json")
    def serialize_decimal(self, value: Decimal) -> float:
        """Serialize Decimal to float for JSON."""
        return float(value)

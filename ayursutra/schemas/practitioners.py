"""Practitioner schemas for request/response validation."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from ayursutra.core.availability import DaySchedule, normalize_availability
from ayursutra.core.exceptions import ValidationError
from ayursutra.core.ratings import RATING_DIMENSIONS


class PractitionerStatus(str, Enum):
    """Practitioner status enumeration."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    ON_LEAVE = "on-leave"


# ============================================================================
# Availability Schemas
# ============================================================================


class DayScheduleSchema(BaseModel):
    """Working hours for one weekday."""

    available: bool = True
    start_time: str = Field("09:00", pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    end_time: str = Field("18:00", pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    break_start: str | None = Field("13:00", pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    break_end: str | None = Field("14:00", pattern=r"^([01]\d|2[0-3]):[0-5]\d$")


def _validate_week(value: dict[str, DayScheduleSchema] | None) -> dict[str, DayScheduleSchema] | None:
    if value is None:
        return value
    try:
        normalize_availability({day: DaySchedule(**s.model_dump()) for day, s in value.items()})
    except ValidationError as e:
        raise ValueError(e.message) from e
    return value


class AvailabilityUpdate(BaseModel):
    """Replace (part of) a practitioner's weekly template."""

    availability: dict[str, DayScheduleSchema]

    @field_validator("availability")
    @classmethod
    def validate_availability(cls, value):
        """Known weekdays with well-formed windows."""
        return _validate_week(value)


# ============================================================================
# Practitioner Base Schemas
# ============================================================================


class PractitionerBase(BaseModel):
    """Base schema for practitioner."""

    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    title: str = Field("Therapist", max_length=20)
    specializations: list[str] = Field(..., min_length=1)
    experience_years: int = Field(0, ge=0)
    experience_description: str | None = Field(None, max_length=1000)
    phone: str = Field(..., min_length=5, max_length=20)
    email: EmailStr | None = None
    address: dict[str, Any] | None = None
    bio: str | None = Field(None, max_length=2000)
    languages: list[str] | None = None
    default_session_minutes: int = Field(60, ge=15, le=480)
    buffer_minutes: int = Field(15, ge=0, le=120)
    max_patients_per_day: int = Field(8, ge=1, le=50)


class PractitionerCreate(PractitionerBase):
    """Schema for creating a practitioner."""

    user_id: UUID | None = None
    availability: dict[str, DayScheduleSchema] | None = Field(
        None,
        description="Weekly template; missing weekdays use clinic defaults",
    )

    @field_validator("availability")
    @classmethod
    def validate_availability(cls, value):
        """Known weekdays with well-formed windows."""
        return _validate_week(value)


class PractitionerUpdate(BaseModel):
    """Schema for updating a practitioner."""

    first_name: str | None = Field(None, min_length=1, max_length=50)
    last_name: str | None = Field(None, min_length=1, max_length=50)
    title: str | None = Field(None, max_length=20)
    specializations: list[str] | None = Field(None, min_length=1)
    experience_years: int | None = Field(None, ge=0)
    experience_description: str | None = None
    phone: str | None = Field(None, min_length=5, max_length=20)
    email: EmailStr | None = None
    address: dict[str, Any] | None = None
    bio: str | None = None
    languages: list[str] | None = None
    default_session_minutes: int | None = Field(None, ge=15, le=480)
    buffer_minutes: int | None = Field(None, ge=0, le=120)
    max_patients_per_day: int | None = Field(None, ge=1, le=50)
    status: PractitionerStatus | None = None
    notes: str | None = None


class PractitionerResponse(PractitionerBase):
    """Practitioner response schema."""

    id: UUID
    user_id: UUID | None = None
    full_name: str
    availability: dict[str, DayScheduleSchema]
    rating_average: float
    rating_count: int
    rating_breakdown: dict[str, float]
    status: PractitionerStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PractitionerListResponse(BaseModel):
    """Paginated practitioner list."""

    total: int
    items: list[PractitionerResponse]


# ============================================================================
# Rating Schemas
# ============================================================================


class RatingSubmit(BaseModel):
    """Schema for adding one rating to a practitioner."""

    rating: float = Field(..., ge=1, le=5)
    breakdown: dict[str, float] | None = Field(
        None,
        description=f"Optional sub-ratings; keys among {', '.join(RATING_DIMENSIONS)}",
    )

    @field_validator("breakdown")
    @classmethod
    def validate_breakdown(cls, value: dict[str, float] | None) -> dict[str, float] | None:
        """Only known dimensions with values in range (0 means not rated)."""
        if value is None:
            return value
        unknown = set(value) - set(RATING_DIMENSIONS)
        if unknown:
            raise ValueError(f"Unknown rating dimensions: {', '.join(sorted(unknown))}")
        for dimension, score in value.items():
            if score and not 1 <= score <= 5:
                raise ValueError(f"{dimension} rating must be between 1 and 5")
        return value


"""Patient schemas for request/response validation."""

from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, model_validator

from ayursutra.core.constitution import validate_constitution
from ayursutra.core.exceptions import ValidationError


class Gender(str, Enum):
    """Gender enumeration."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    PREFER_NOT_TO_SAY = "prefer-not-to-say"


class PatientStatus(str, Enum):
    """Patient status enumeration."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class DoshaImbalance(str, Enum):
    """Current dosha imbalance enumeration."""

    VATA = "vata"
    PITTA = "pitta"
    KAPHA = "kapha"
    MIXED = "mixed"
    BALANCED = "balanced"


class Constitution(BaseModel):
    """Prakriti as percentage shares of the three doshas."""

    vata: int = Field(0, ge=0, le=100)
    pitta: int = Field(0, ge=0, le=100)
    kapha: int = Field(0, ge=0, le=100)

    @model_validator(mode="after")
    def validate_total(self) -> "Constitution":
        """Shares must add up to about 100 once assessed."""
        try:
            validate_constitution(self.model_dump())
        except ValidationError as e:
            raise ValueError(e.message) from e
        return self


class AyurvedicProfile(BaseModel):
    """Practitioner's constitution assessment of a patient."""

    constitution: Constitution = Field(default_factory=Constitution)
    current_imbalance: DoshaImbalance = DoshaImbalance.BALANCED
    pulse_reading: str | None = Field(None, max_length=500)
    tongue_examination: str | None = Field(None, max_length=500)
    last_assessment_date: date | None = None
    assessed_by: UUID | None = None


class EmergencyContact(BaseModel):
    """Person to call in an emergency."""

    name: str = Field(..., min_length=1, max_length=100)
    relationship: str | None = Field(None, max_length=50)
    phone: str = Field(..., min_length=5, max_length=20)


class PatientBase(BaseModel):
    """Base patient schema with common fields."""

    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    date_of_birth: date
    gender: Gender
    phone: str = Field(..., min_length=5, max_length=20)
    alternate_phone: str | None = Field(None, max_length=20)
    email: EmailStr | None = None
    address: dict[str, Any] | None = None
    emergency_contact: EmergencyContact | None = None
    medical_history: dict[str, Any] | None = None
    ayurvedic_profile: AyurvedicProfile | None = None


class PatientCreate(PatientBase):
    """Schema for registering a patient."""

    user_id: UUID | None = None


class PatientUpdate(BaseModel):
    """Schema for updating a patient."""

    first_name: str | None = Field(None, min_length=1, max_length=50)
    last_name: str | None = Field(None, min_length=1, max_length=50)
    date_of_birth: date | None = None
    gender: Gender | None = None
    phone: str | None = Field(None, min_length=5, max_length=20)
    alternate_phone: str | None = Field(None, max_length=20)
    email: EmailStr | None = None
    address: dict[str, Any] | None = None
    emergency_contact: EmergencyContact | None = None
    medical_history: dict[str, Any] | None = None
    ayurvedic_profile: AyurvedicProfile | None = None
    status: PatientStatus | None = None
    notes: str | None = None


class PatientResponse(PatientBase):
    """Patient response schema."""

    id: UUID
    user_id: UUID | None = None
    full_name: str
    age: int
    dominant_constitution: str | None = None
    status: PatientStatus
    notes: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PatientListResponse(BaseModel):
    """Paginated patient list."""

    total: int
    items: list[PatientResponse]

"""Patient domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import empty_to_none, validate_phone

GENDERS = ("male", "female", "other")
BLOOD_GROUPS = ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")

OPTIONAL_TEXT_FIELDS = (
    "national_id",
    "gender",
    "address",
    "blood_group",
    "medical_history",
    "allergies",
)


class PatientFields(BaseModel):
    national_id: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    blood_group: Optional[str] = None
    medical_history: Optional[str] = None
    allergies: Optional[str] = None

    @field_validator(*OPTIONAL_TEXT_FIELDS, mode="before")
    @classmethod
    def blank_to_none(cls, v):
        return empty_to_none(v) if isinstance(v, str) else v

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def blank_date(cls, v):
        return None if v == "" else v

    @field_validator("date_of_birth")
    @classmethod
    def not_in_future(cls, v: Optional[date]) -> Optional[date]:
        if v and v > date.today():
            raise ValueError("Date of birth cannot be in the future")
        return v

    @field_validator("gender")
    @classmethod
    def validate_gender(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.lower()
        if v not in GENDERS:
            raise ValueError(f"gender must be one of: {', '.join(GENDERS)}")
        return v

    @field_validator("blood_group")
    @classmethod
    def validate_blood_group(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.upper().replace(" ", "")
        if v not in BLOOD_GROUPS:
            raise ValueError("Invalid blood group")
        return v


class PatientCreate(PatientFields):
    """Schema for registering a patient"""

    full_name: str
    phone: str

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Full name is required")
        return v

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Phone is required")
        return validate_phone(v)


class PatientUpdate(PatientFields):
    full_name: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Full name cannot be empty")
        return v.strip() if v else v

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Phone cannot be empty")
        return validate_phone(v)


class PatientResponse(BaseModel):
    id: str
    full_name: str
    phone: str
    national_id: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    blood_group: Optional[str] = None
    medical_history: Optional[str] = None
    allergies: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

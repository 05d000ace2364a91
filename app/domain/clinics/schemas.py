"""Clinic domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import empty_to_none, validate_currency, validate_email, validate_phone


class ClinicBase(BaseModel):
    phone: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None

    @field_validator("phone", "address", "website", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        return empty_to_none(v) if isinstance(v, str) else v

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(empty_to_none(v))


class ClinicCreate(ClinicBase):
    """Schema for creating the caller's clinic during onboarding"""

    name: str
    currency: str = "USD"

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Clinic name is required")
        return v

    @field_validator("currency")
    @classmethod
    def check_currency(cls, v: str) -> str:
        return validate_currency(v) or "USD"


class ClinicUpdate(ClinicBase):
    """Schema for updating clinic settings"""

    name: Optional[str] = None
    currency: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Clinic name cannot be empty")
        return v.strip() if v else v

    @field_validator("currency")
    @classmethod
    def check_currency(cls, v: Optional[str]) -> Optional[str]:
        return validate_currency(v)


class ClinicResponse(BaseModel):
    id: str
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    currency: str
    role: Optional[str] = None
    created_at: Optional[datetime] = None

"""Appointment domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import empty_to_none, validate_time_of_day

APPOINTMENT_STATUSES = ("scheduled", "completed", "cancelled", "no_show")


def _check_status(v: str) -> str:
    v = (v or "").strip().lower()
    if v not in APPOINTMENT_STATUSES:
        raise ValueError(f"status must be one of: {', '.join(APPOINTMENT_STATUSES)}")
    return v


class AppointmentCreate(BaseModel):
    patient_id: str
    appointment_date: date
    appointment_time: str
    reason: Optional[str] = None
    status: str = "scheduled"

    @field_validator("appointment_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        return validate_time_of_day(v)

    @field_validator("reason", mode="before")
    @classmethod
    def blank_reason(cls, v):
        return empty_to_none(v) if isinstance(v, str) else v

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        return _check_status(v)


class AppointmentUpdate(BaseModel):
    appointment_date: Optional[date] = None
    appointment_time: Optional[str] = None
    reason: Optional[str] = None
    status: Optional[str] = None

    @field_validator("appointment_time")
    @classmethod
    def validate_time(cls, v: Optional[str]) -> Optional[str]:
        return validate_time_of_day(v) if v is not None else v

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: Optional[str]) -> Optional[str]:
        return _check_status(v) if v is not None else v


class AppointmentStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        return _check_status(v)


class AppointmentResponse(BaseModel):
    id: str
    patient_id: str
    patient_name: Optional[str] = None
    appointment_date: date
    appointment_time: str
    reason: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None

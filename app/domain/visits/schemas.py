"""Visit domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import empty_to_none

NOTE_FIELDS = ("reason", "symptoms", "diagnosis", "doctor_notes", "treatment_plan")


class VisitCreate(BaseModel):
    patient_id: str
    appointment_id: Optional[str] = None
    visit_date: date
    reason: Optional[str] = None
    symptoms: Optional[str] = None
    diagnosis: Optional[str] = None
    doctor_notes: Optional[str] = None
    treatment_plan: Optional[str] = None
    # Closes the linked appointment when the visit is recorded
    complete_appointment: bool = True

    @field_validator("appointment_id", *NOTE_FIELDS, mode="before")
    @classmethod
    def blank_to_none(cls, v):
        return empty_to_none(v) if isinstance(v, str) else v


class VisitUpdate(BaseModel):
    visit_date: Optional[date] = None
    reason: Optional[str] = None
    symptoms: Optional[str] = None
    diagnosis: Optional[str] = None
    doctor_notes: Optional[str] = None
    treatment_plan: Optional[str] = None

    @field_validator(*NOTE_FIELDS, mode="before")
    @classmethod
    def blank_to_none(cls, v):
        return empty_to_none(v) if isinstance(v, str) else v


class VisitResponse(BaseModel):
    id: str
    patient_id: str
    patient_name: Optional[str] = None
    appointment_id: Optional[str] = None
    visit_date: date
    reason: Optional[str] = None
    symptoms: Optional[str] = None
    diagnosis: Optional[str] = None
    doctor_notes: Optional[str] = None
    treatment_plan: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None

"""Procedure domain schemas - the clinic's price list"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class ProcedureCreate(BaseModel):
    name: str
    description: Optional[str] = None
    default_cost: float = 0
    duration_minutes: Optional[int] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Procedure name is required")
        return v

    @field_validator("default_cost")
    @classmethod
    def validate_cost(cls, v: float) -> float:
        if v < 0:
            raise ValueError("default_cost cannot be negative")
        return round(v, 2)

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v <= 0:
            raise ValueError("duration_minutes must be positive")
        return v


class ProcedureUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    default_cost: Optional[float] = None
    duration_minutes: Optional[int] = None

    @field_validator("default_cost")
    @classmethod
    def validate_cost(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v < 0:
            raise ValueError("default_cost cannot be negative")
        return v


class ProcedureResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    default_cost: float
    duration_minutes: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

"""Invoice domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ...shared.validators import empty_to_none

PAYMENT_METHODS = ("cash", "mobile_money", "card")
INVOICE_STATUSES = ("unpaid", "partial", "paid")


class LineItem(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    description: str
    quantity: float = 1
    unit_price: float

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Line item description is required")
        return v

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("quantity must be greater than 0")
        return v

    @field_validator("unit_price")
    @classmethod
    def validate_unit_price(cls, v: float) -> float:
        if v < 0:
            raise ValueError("unit_price cannot be negative")
        return v


class InvoiceCreate(BaseModel):
    patient_id: str
    visit_id: Optional[str] = None
    line_items: list[LineItem]
    notes: Optional[str] = None
    due_date: Optional[date] = None

    @field_validator("visit_id", "notes", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        return empty_to_none(v) if isinstance(v, str) else v

    @field_validator("line_items")
    @classmethod
    def validate_line_items(cls, v: list[LineItem]) -> list[LineItem]:
        if not v:
            raise ValueError("At least one line item is required")
        return v


class PaymentCreate(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    amount: float
    payment_method: str = "cash"
    transaction_reference: Optional[str] = None

    @field_validator("payment_method")
    @classmethod
    def validate_method(cls, v: str) -> str:
        v = (v or "").strip().lower()
        if v not in PAYMENT_METHODS:
            raise ValueError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")
        return v

    @field_validator("transaction_reference", mode="before")
    @classmethod
    def blank_reference(cls, v):
        return empty_to_none(v) if isinstance(v, str) else v


class PaymentResponse(BaseModel):
    id: str
    amount: float
    payment_method: str
    transaction_reference: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class InvoiceResponse(BaseModel):
    id: str
    invoice_number: str
    patient_id: str
    patient_name: Optional[str] = None
    visit_id: Optional[str] = None
    line_items: list[dict]
    notes: Optional[str] = None
    total_amount: float
    amount_paid: float
    balance: float
    status: str
    due_date: Optional[date] = None
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    payments: list[PaymentResponse] = []

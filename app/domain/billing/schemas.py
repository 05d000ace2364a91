"""Billing domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class CheckoutRequest(BaseModel):
    """Schema for creating a checkout session. Presence checks happen in the service."""

    planId: Optional[str] = None
    clinicId: Optional[str] = None
    userId: Optional[str] = None
    userEmail: Optional[str] = None
    locale: str = "en"

    @field_validator("locale")
    @classmethod
    def validate_locale(cls, v: str) -> str:
        v = (v or "en").strip().lower()
        if not v.isalpha() or len(v) > 5:
            raise ValueError("locale must be a short language code")
        return v


class PortalRequest(BaseModel):
    """Schema for opening the customer portal"""

    clinicId: Optional[str] = None


class CheckoutResponse(BaseModel):
    url: str


class PlanResponse(BaseModel):
    id: str
    name: str
    price: int
    patient_limit: int
    team_limit: int
    features: list[str]
    is_free: bool


class VariantResponse(BaseModel):
    id: str
    name: Optional[str] = None
    status: Optional[str] = None
    price: Optional[int] = None
    plan: Optional[str] = None  # configured plan for this variant, if any


class SubscriptionResponse(BaseModel):
    clinic_id: str
    plan: str
    plan_name: str
    status: str
    cancel_at_period_end: bool
    current_period_end: Optional[datetime] = None
    has_subscription: bool


class UsageResponse(BaseModel):
    plan: str
    status: str
    patients_count: int
    patients_limit: int
    members_count: int
    pending_invitations: int
    members_limit: int
    can_add_patient: bool
    can_add_member: bool


# ============================================================================
# WEBHOOK ENVELOPE
# ============================================================================


class WebhookMeta(BaseModel):
    model_config = ConfigDict(extra="allow")

    event_name: str
    custom_data: Optional[dict[str, Any]] = None


class WebhookData(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    type: Optional[str] = None
    attributes: dict[str, Any] = {}
    relationships: dict[str, Any] = {}

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        # Provider ids arrive as strings, but tolerate numbers
        return None if v is None else str(v)

    @field_validator("attributes", "relationships", mode="before")
    @classmethod
    def coerce_mapping(cls, v):
        return v or {}


class WebhookEvent(BaseModel):
    """LemonSqueezy webhook envelope: {meta: {event_name, custom_data}, data: {...}}"""

    model_config = ConfigDict(extra="allow")

    meta: WebhookMeta
    data: WebhookData

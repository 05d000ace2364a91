"""Team domain schemas - Pydantic models for members and invitations"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email

INVITABLE_ROLES = ("admin", "doctor", "nurse", "receptionist", "member")


class InvitationCreate(BaseModel):
    email: str
    role: str = "member"

    @field_validator("email")
    @classmethod
    def validate_invite_email(cls, v: str) -> str:
        return validate_email(v)

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        v = (v or "").strip().lower()
        if v not in INVITABLE_ROLES:
            raise ValueError(f"role must be one of: {', '.join(INVITABLE_ROLES)}")
        return v


class InvitationAccept(BaseModel):
    token: str

    @field_validator("token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("token is required")
        return v


class InvitationResponse(BaseModel):
    id: str
    email: str
    role: str
    status: str
    expires_at: datetime
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class InvitationDetails(BaseModel):
    """What the accept page shows before sign-in"""

    clinic_name: str
    email: str
    role: str
    status: str
    expires_at: datetime
    is_expired: bool


class MemberResponse(BaseModel):
    id: str
    user_id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MemberRoleUpdate(BaseModel):
    role: str

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        v = (v or "").strip().lower()
        if v not in INVITABLE_ROLES:
            raise ValueError(f"role must be one of: {', '.join(INVITABLE_ROLES)}")
        return v

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError
from jose import jwt as jose_jwt
from sqlalchemy.orm import Session

from .config import SUPABASE_JWT_AUDIENCE, SUPABASE_JWT_SECRET
from .database import get_db
from .models import ClinicMember

logger = logging.getLogger(__name__)

# Browser sessions carry the token in a cookie, API clients send a Bearer header
security = HTTPBearer(auto_error=False)
ACCESS_TOKEN_COOKIE = "sb-access-token"
ALGORITHM = "HS256"

ADMIN_ROLES = ("owner", "admin")


@dataclass
class AuthUser:
    """Identity asserted by the auth provider's access token"""

    id: str
    email: Optional[str]
    full_name: str = ""
    role: str = "authenticated"


def decode_access_token(token: str) -> dict:
    """Verify a Supabase access token and return its claims"""
    try:
        return jose_jwt.decode(
            token,
            SUPABASE_JWT_SECRET,
            algorithms=[ALGORITHM],
            audience=SUPABASE_JWT_AUDIENCE,
        )
    except ExpiredSignatureError as e:
        raise HTTPException(
            status_code=401,
            detail="Token has expired. Please refresh your session.",
            headers={"X-Token-Expired": "true"},
        ) from e
    except JWTError as e:
        logger.warning(f"⚠️ JWT verification failed: {e}")
        raise HTTPException(status_code=401, detail="Invalid authentication token") from e


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> AuthUser:
    """Get current user from the Bearer header or the session cookie"""
    token = credentials.credentials if credentials else request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not token:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received, length: {len(token)}")
        raise HTTPException(
            status_code=401, detail="Invalid token format. Expected a valid JWT token."
        )

    claims = decode_access_token(token)
    user_id = claims.get("sub")
    if not user_id:
        logger.error(f"❌ Token missing user ID claim. Available claims: {list(claims.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    metadata = claims.get("user_metadata") or {}
    return AuthUser(
        id=user_id,
        email=claims.get("email"),
        full_name=metadata.get("full_name", ""),
        role=claims.get("role", "authenticated"),
    )


def get_user_clinic_ids(db: Session, user_id: str) -> list[str]:
    """Clinic ids the user belongs to, oldest membership first"""
    rows = (
        db.query(ClinicMember.clinic_id)
        .filter(ClinicMember.user_id == user_id)
        .order_by(ClinicMember.created_at.asc(), ClinicMember.id.asc())
        .all()
    )
    return [row.clinic_id for row in rows]


async def get_current_membership(
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ClinicMember:
    """
    Resolve the caller's tenant. A user works inside a single clinic, so the
    first membership wins.
    """
    clinic_ids = get_user_clinic_ids(db, user.id)
    if not clinic_ids:
        logger.info(f"ℹ️ User {user.id} has no clinic yet")
        raise HTTPException(
            status_code=403,
            detail="No clinic found. Please create your clinic first.",
            headers={"X-Onboarding-Required": "true"},
        )

    return (
        db.query(ClinicMember)
        .filter(ClinicMember.user_id == user.id, ClinicMember.clinic_id == clinic_ids[0])
        .first()
    )


async def get_clinic_admin(
    membership: ClinicMember = Depends(get_current_membership),
) -> ClinicMember:
    """Membership of the caller, restricted to owners and admins"""
    if membership.role not in ADMIN_ROLES:
        logger.warning(
            f"⚠️ User {membership.user_id} with role {membership.role} attempted an admin action"
        )
        raise HTTPException(
            status_code=403, detail="Only clinic owners and admins can perform this action"
        )
    return membership

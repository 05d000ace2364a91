"""
Test configuration and fixtures.

Provides:
- In-memory SQLite session, tables rebuilt for each test
- Supabase-style JWT minting for authenticated requests
- TestClient with the plan catalog, billing provider, webhook secret and
  rate limiters overridden
"""

import hashlib
import hmac
import json
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Generator, Optional

# Configure before the app reads its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
os.environ["SECURITY_HEADERS_ENABLED"] = "true"
os.environ.pop("RESEND_API_KEY", None)

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.orm import Session

from app.database import Base, SessionLocal, engine, get_db
from app.domain.billing.lemonsqueezy_service import BillingProviderError, get_billing_provider
from app.domain.billing.plans import PlanCatalog, build_plan_catalog, get_plan_catalog
from app.domain.billing.router import get_webhook_secret
from app.main import app
from app.models import Clinic, ClinicMember
from app.rate_limiter import rate_limit_billing_webhook, rate_limit_invitations

JWT_SECRET = "test-jwt-secret"
WEBHOOK_SECRET = "test-webhook-secret"
PROFESSIONAL_VARIANT = "111"
ENTERPRISE_VARIANT = "222"


# =============================================================================
# Fakes
# =============================================================================


@dataclass
class FakeBillingProvider:
    """Records calls instead of talking to LemonSqueezy"""

    checkout_url: str = "https://checkout.test/abc"
    portal_url: Optional[str] = "https://portal.test/xyz"
    fail: bool = False
    checkouts: list = field(default_factory=list)
    cancelled: list = field(default_factory=list)
    variants: list = field(default_factory=list)

    async def create_checkout(self, variant_id, email, custom, redirect_url):
        if self.fail:
            raise BillingProviderError("provider down")
        self.checkouts.append(
            {"variant_id": variant_id, "email": email, "custom": custom, "redirect_url": redirect_url}
        )
        return self.checkout_url

    async def get_customer_portal_url(self, subscription_id):
        if self.fail:
            raise BillingProviderError("provider down")
        return self.portal_url

    async def cancel_subscription(self, subscription_id):
        if self.fail:
            raise BillingProviderError("provider down")
        self.cancelled.append(subscription_id)
        return {}

    async def list_variants(self):
        if self.fail:
            raise BillingProviderError("provider down")
        return self.variants


# =============================================================================
# Helpers
# =============================================================================


def make_token(user_id: str, email: str = "user@test.com", expires_in: int = 3600) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "sub": user_id,
        "email": email,
        "aud": "authenticated",
        "role": "authenticated",
        "user_metadata": {"full_name": "Test User"},
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=expires_in)).timestamp()),
    }
    return jwt.encode(claims, JWT_SECRET, algorithm="HS256")


def auth_headers(user_id: str, email: str = "user@test.com") -> dict:
    return {"Authorization": f"Bearer {make_token(user_id, email)}"}


def sign_payload(payload: dict, secret: str = WEBHOOK_SECRET) -> tuple[bytes, str]:
    body = json.dumps(payload).encode()
    return body, hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


@dataclass
class ClinicContext:
    clinic: Clinic
    user_id: str
    email: str

    @property
    def clinic_id(self) -> str:
        return self.clinic.id

    @property
    def headers(self) -> dict:
        return auth_headers(self.user_id, self.email)


def add_member(db: Session, clinic_id: str, role: str = "member", email: Optional[str] = None) -> ClinicMember:
    user_id = str(uuid.uuid4())
    member = ClinicMember(
        clinic_id=clinic_id,
        user_id=user_id,
        email=email or f"{role}-{user_id[:8]}@test.com",
        role=role,
    )
    db.add(member)
    db.commit()
    return member


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def catalog() -> PlanCatalog:
    return build_plan_catalog(PROFESSIONAL_VARIANT, ENTERPRISE_VARIANT)


@pytest.fixture
def billing_provider() -> FakeBillingProvider:
    return FakeBillingProvider()


@pytest.fixture
def client(db: Session, catalog: PlanCatalog, billing_provider: FakeBillingProvider):
    def override_get_db():
        yield db

    async def no_rate_limit():
        return None

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_plan_catalog] = lambda: catalog
    app.dependency_overrides[get_billing_provider] = lambda: billing_provider
    app.dependency_overrides[get_webhook_secret] = lambda: WEBHOOK_SECRET
    app.dependency_overrides[rate_limit_billing_webhook] = no_rate_limit
    app.dependency_overrides[rate_limit_invitations] = no_rate_limit

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def owner(db: Session) -> ClinicContext:
    """A clinic with its owner, on the free plan (no subscription row)"""
    user_id = str(uuid.uuid4())
    email = "owner@clinic.test"
    clinic = Clinic(name="Sunrise Clinic", currency="USD", created_by=user_id)
    db.add(clinic)
    db.flush()
    db.add(ClinicMember(clinic_id=clinic.id, user_id=user_id, email=email, role="owner"))
    db.commit()
    db.refresh(clinic)
    return ClinicContext(clinic=clinic, user_id=user_id, email=email)

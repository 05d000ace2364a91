"""Billing router - FastAPI endpoints for checkout, portal and provider webhooks"""

import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ...auth import AuthUser, get_clinic_admin, get_current_membership, get_current_user
from ...config import LEMONSQUEEZY_WEBHOOK_SECRET
from ...database import get_db
from ...models import ClinicMember
from ...rate_limiter import rate_limit_billing_webhook
from ...webhook_security import WebhookSignatureError, verify_lemonsqueezy_webhook
from .lemonsqueezy_service import LemonSqueezyService, get_billing_provider
from .plans import PlanCatalog, get_plan_catalog
from .schemas import (
    CheckoutRequest,
    CheckoutResponse,
    PlanResponse,
    PortalRequest,
    SubscriptionResponse,
    UsageResponse,
    VariantResponse,
    WebhookEvent,
)
from .subscription_service import SubscriptionService
from .webhooks import process_webhook_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/billing", tags=["Billing"])


def get_subscription_service(
    db: Session = Depends(get_db),
    catalog: PlanCatalog = Depends(get_plan_catalog),
    provider: LemonSqueezyService = Depends(get_billing_provider),
) -> SubscriptionService:
    """Dependency injection for SubscriptionService"""
    return SubscriptionService(db, catalog, provider)


def get_webhook_secret() -> str:
    """Dependency injection for the webhook signing secret"""
    return LEMONSQUEEZY_WEBHOOK_SECRET


# ============================================================================
# CHECKOUT & PORTAL
# ============================================================================


@router.post("/create-checkout", response_model=CheckoutResponse)
async def create_checkout(
    body: CheckoutRequest,
    user: AuthUser = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Create a hosted checkout for a paid plan"""
    return await service.create_checkout(body, user)


@router.post("/portal", response_model=CheckoutResponse)
async def customer_portal(
    body: PortalRequest,
    user: AuthUser = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Get the provider's customer portal URL for the clinic"""
    return await service.get_portal_url(body, user)


@router.post("/cancel")
async def cancel_subscription(
    membership: ClinicMember = Depends(get_clinic_admin),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Request cancellation at the provider"""
    return await service.request_cancellation(membership.clinic_id)


# ============================================================================
# PLAN INFORMATION
# ============================================================================


@router.get("/plans", response_model=list[PlanResponse])
async def list_plans(service: SubscriptionService = Depends(get_subscription_service)):
    return service.list_plans()


@router.get("/variants", response_model=list[VariantResponse])
async def list_variants(
    membership: ClinicMember = Depends(get_clinic_admin),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Provider variants and the plan each one is mapped to"""
    return await service.list_provider_variants()


@router.get("/subscription", response_model=SubscriptionResponse)
async def get_subscription(
    membership: ClinicMember = Depends(get_current_membership),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Current plan and status of the caller's clinic"""
    return service.get_current_subscription(membership.clinic_id)


@router.get("/usage", response_model=UsageResponse)
async def get_usage(
    membership: ClinicMember = Depends(get_current_membership),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Patient and team usage against the plan limits"""
    return service.get_usage(membership.clinic_id)


# ============================================================================
# WEBHOOKS
# ============================================================================


@router.post("/webhook")
async def lemonsqueezy_webhook(
    request: Request,
    db: Session = Depends(get_db),
    catalog: PlanCatalog = Depends(get_plan_catalog),
    secret: str = Depends(get_webhook_secret),
    _: None = Depends(rate_limit_billing_webhook),
):
    """
    Handle LemonSqueezy subscription webhooks.

    The signature is checked against the raw body before anything is parsed.
    Accepted events always get 200; only an unparseable body returns 500.
    """
    try:
        raw_body = await verify_lemonsqueezy_webhook(request, secret)
    except WebhookSignatureError as e:
        return JSONResponse(status_code=400, content={"error": e.message})

    try:
        event = WebhookEvent.model_validate(json.loads(raw_body))
    except (ValueError, ValidationError) as e:
        logger.error(f"❌ Webhook handler error: could not parse payload: {e}")
        return JSONResponse(status_code=500, content={"error": "Webhook handler failed"})

    process_webhook_event(db, event, catalog)
    return {"received": True}

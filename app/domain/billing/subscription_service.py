"""Subscription service - Business logic for checkout, portal and plan information"""

import logging

from sqlalchemy.orm import Session

from ...auth import AuthUser, get_user_clinic_ids
from ...config import APP_URL
from ...plan_limits import get_usage
from .lemonsqueezy_service import BillingProviderError, LemonSqueezyService
from .plans import PlanCatalog
from .repository import SubscriptionRepository
from .schemas import CheckoutRequest, PortalRequest

logger = logging.getLogger(__name__)


class BillingRequestError(Exception):
    """Billing failure returned to the caller as {"error": message}"""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class SubscriptionService:
    """Service for subscription management"""

    def __init__(self, db: Session, catalog: PlanCatalog, provider: LemonSqueezyService):
        self.db = db
        self.catalog = catalog
        self.provider = provider
        self.repo = SubscriptionRepository()

    def _ensure_member(self, clinic_id: str, user: AuthUser) -> None:
        if clinic_id not in get_user_clinic_ids(self.db, user.id):
            logger.warning(f"🚫 User {user.id} tried to manage billing for clinic {clinic_id}")
            raise BillingRequestError(403, "Not a member of this clinic")

    async def create_checkout(self, request: CheckoutRequest, user: AuthUser) -> dict:
        """Create a hosted checkout for a paid plan. Local state only changes when the webhook arrives."""
        if not request.planId or not request.clinicId or not request.userId:
            raise BillingRequestError(400, "Missing required fields")

        self._ensure_member(request.clinicId, user)

        if not self.catalog.is_known(request.planId) or self.catalog.get(request.planId).is_free:
            raise BillingRequestError(400, "Invalid plan or free tier selected")

        plan = self.catalog.get(request.planId)
        success_url = f"{APP_URL}/{request.locale}/billing?success=true"

        try:
            url = await self.provider.create_checkout(
                variant_id=plan.variant_id,
                email=request.userEmail or user.email,
                custom={"clinic_id": request.clinicId, "user_id": request.userId},
                redirect_url=success_url,
            )
        except BillingProviderError as e:
            logger.error(f"❌ Failed to create checkout for clinic {request.clinicId}: {e}")
            raise BillingRequestError(500, "Failed to create checkout") from e

        logger.info(f"✅ Created {plan.id} checkout for clinic {request.clinicId}")
        return {"url": url}

    async def get_portal_url(self, request: PortalRequest, user: AuthUser) -> dict:
        """Customer portal link for the clinic's provider subscription"""
        if not request.clinicId:
            raise BillingRequestError(400, "Missing clinic ID")

        self._ensure_member(request.clinicId, user)

        subscription = self.repo.get_for_clinic(self.db, request.clinicId)
        if not subscription or not subscription.external_subscription_id:
            raise BillingRequestError(404, "No subscription found")

        try:
            portal_url = await self.provider.get_customer_portal_url(subscription.external_subscription_id)
        except BillingProviderError as e:
            logger.error(f"❌ Failed to get customer portal URL for clinic {request.clinicId}: {e}")
            raise BillingRequestError(500, "Failed to get customer portal URL") from e

        if not portal_url:
            raise BillingRequestError(500, "Portal URL not available")

        return {"url": portal_url}

    async def request_cancellation(self, clinic_id: str) -> dict:
        """
        Ask the provider to cancel. The local row is left untouched until the
        subscription_cancelled webhook is delivered.
        """
        state = self.repo.get_subscription_state(self.db, clinic_id)
        if not state.external_subscription_id or state.status == "canceled":
            raise BillingRequestError(400, "No active subscription found")

        try:
            await self.provider.cancel_subscription(state.external_subscription_id)
        except BillingProviderError as e:
            logger.error(f"❌ Failed to cancel subscription for clinic {clinic_id}: {e}")
            raise BillingRequestError(500, "Failed to cancel subscription") from e

        return {
            "success": True,
            "message": "Cancellation requested. Your plan will update once the billing provider confirms.",
        }

    def get_current_subscription(self, clinic_id: str) -> dict:
        state = self.repo.get_subscription_state(self.db, clinic_id)
        plan = self.catalog.get(state.plan)
        return {
            "clinic_id": clinic_id,
            "plan": plan.id,
            "plan_name": plan.name,
            "status": state.status,
            "cancel_at_period_end": state.cancel_at_period_end,
            "current_period_end": state.current_period_end,
            "has_subscription": state.has_subscription,
        }

    def get_usage(self, clinic_id: str) -> dict:
        return get_usage(self.db, clinic_id, self.catalog)

    def list_plans(self) -> list[dict]:
        return [plan.to_dict() for plan in self.catalog.all()]

    async def list_provider_variants(self) -> list[dict]:
        """Provider variants alongside the plan each is configured for, to check variant id setup"""
        try:
            variants = await self.provider.list_variants()
        except BillingProviderError as e:
            logger.error(f"❌ Failed to list LemonSqueezy variants: {e}")
            raise BillingRequestError(500, "Failed to list variants") from e

        configured = {plan.variant_id: plan.id for plan in self.catalog.all() if plan.variant_id}
        result = []
        for variant in variants:
            attrs = variant.get("attributes") or {}
            variant_id = str(variant.get("id"))
            result.append(
                {
                    "id": variant_id,
                    "name": attrs.get("name"),
                    "status": attrs.get("status"),
                    "price": attrs.get("price"),
                    "plan": configured.get(variant_id),
                }
            )
        return result

"""LemonSqueezy service - Integration with the LemonSqueezy JSON:API"""

import logging
from typing import Any, Optional

import httpx

from ...config import LEMONSQUEEZY_API_KEY, LEMONSQUEEZY_STORE_ID

logger = logging.getLogger(__name__)


class BillingProviderError(Exception):
    """Raised when the billing provider rejects a request or is not configured"""


class LemonSqueezyService:
    """Service for LemonSqueezy API operations"""

    BASE_URL = "https://api.lemonsqueezy.com/v1"

    def __init__(self, api_key: Optional[str] = LEMONSQUEEZY_API_KEY, store_id: Optional[str] = LEMONSQUEEZY_STORE_ID):
        self.api_key = api_key
        self.store_id = store_id

        if not self.api_key:
            logger.warning(
                "LEMONSQUEEZY_API_KEY not set; billing endpoints will fail until configured"
            )
        if not self.store_id:
            logger.warning("LEMONSQUEEZY_STORE_ID not set; checkouts cannot be created")

    def is_available(self) -> bool:
        """Check if the LemonSqueezy client is configured"""
        return bool(self.api_key)

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.api+json",
            "Content-Type": "application/vnd.api+json",
            "Authorization": f"Bearer {self.api_key}",
        }

    async def _request(self, method: str, path: str, **kwargs) -> dict[str, Any]:
        if not self.api_key:
            raise BillingProviderError("LemonSqueezy client not initialized")

        async with httpx.AsyncClient(timeout=20.0) as client:
            try:
                response = await client.request(
                    method, f"{self.BASE_URL}{path}", headers=self._headers(), **kwargs
                )
            except httpx.HTTPError as e:
                logger.error(f"❌ LemonSqueezy request {method} {path} failed: {e}")
                raise BillingProviderError(f"LemonSqueezy request failed: {e}") from e

        if response.status_code >= 400:
            logger.error(
                f"❌ LemonSqueezy {method} {path} returned {response.status_code}: {response.text[:500]}"
            )
            raise BillingProviderError(f"LemonSqueezy returned HTTP {response.status_code}")

        return response.json()

    async def create_checkout(
        self,
        variant_id: str,
        email: Optional[str],
        custom: dict[str, str],
        redirect_url: str,
    ) -> str:
        """Create a hosted checkout and return its URL"""
        if not self.store_id:
            raise BillingProviderError("Store ID not configured")

        logger.info(f"Creating LemonSqueezy checkout for store {self.store_id}, variant {variant_id}")
        payload = {
            "data": {
                "type": "checkouts",
                "attributes": {
                    "checkout_data": {"email": email, "custom": custom},
                    "product_options": {"redirect_url": redirect_url},
                },
                "relationships": {
                    "store": {"data": {"type": "stores", "id": str(self.store_id)}},
                    "variant": {"data": {"type": "variants", "id": str(variant_id)}},
                },
            }
        }
        response = await self._request("POST", "/checkouts", json=payload)
        url = (response.get("data") or {}).get("attributes", {}).get("url")
        if not url:
            raise BillingProviderError("Checkout created without a URL")
        return url

    async def get_subscription(self, subscription_id: str) -> dict[str, Any]:
        """Fetch a subscription resource"""
        response = await self._request("GET", f"/subscriptions/{subscription_id}")
        return response.get("data") or {}

    async def get_customer_portal_url(self, subscription_id: str) -> Optional[str]:
        """Signed customer portal URL for a subscription, if the provider returns one"""
        subscription = await self.get_subscription(subscription_id)
        urls = subscription.get("attributes", {}).get("urls") or {}
        return urls.get("customer_portal")

    async def cancel_subscription(self, subscription_id: str) -> dict[str, Any]:
        """Cancel a subscription at the end of the current period"""
        response = await self._request("DELETE", f"/subscriptions/{subscription_id}")
        logger.info(f"✅ Requested cancellation of LemonSqueezy subscription {subscription_id}")
        return response.get("data") or {}

    async def list_variants(self) -> list[dict[str, Any]]:
        """List product variants, used to look up variant ids when configuring plans"""
        response = await self._request("GET", "/variants")
        return response.get("data") or []


lemonsqueezy_service = LemonSqueezyService()


def get_billing_provider() -> LemonSqueezyService:
    """Dependency injection for the billing provider client"""
    return lemonsqueezy_service

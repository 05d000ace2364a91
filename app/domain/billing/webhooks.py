"""Billing webhooks - translate provider events into local subscription state

The webhook is the only writer of the subscriptions table. Every handler is an
upsert or overwrite keyed by clinic id or provider subscription id, so replays
of the same event converge on the same row.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.orm import Session

from .plans import PlanCatalog
from .repository import SubscriptionRepository
from .schemas import WebhookEvent

logger = logging.getLogger(__name__)

STATUS_MAP = {
    "active": "active",
    "on_trial": "active",
    "past_due": "past_due",
    "unpaid": "past_due",
    "cancelled": "canceled",
    "expired": "canceled",
}


def map_provider_status(provider_status: Optional[str]) -> str:
    """Map a LemonSqueezy subscription status onto active / past_due / canceled"""
    mapped = STATUS_MAP.get(provider_status or "")
    if mapped is None:
        # Unrecognised statuses (e.g. "paused") are treated as active
        logger.warning(f"⚠️ Unknown provider subscription status '{provider_status}', treating as active")
        return "active"
    return mapped


def parse_provider_timestamp(value) -> Optional[datetime]:
    """ISO-8601 provider timestamp → naive UTC datetime"""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"⚠️ Could not parse provider timestamp: {value}")
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def extract_custom_data(event: WebhookEvent) -> dict:
    """Checkout metadata travels on the subscription item, the subscription, or the envelope"""
    attrs = event.data.attributes
    first_item = attrs.get("first_subscription_item") or {}
    return first_item.get("custom_data") or attrs.get("custom_data") or event.meta.custom_data or {}


def extract_invoice_subscription_id(event: WebhookEvent) -> Optional[str]:
    """Subscription id referenced by a subscription-invoice payload"""
    relationship = (event.data.relationships.get("subscription") or {}).get("data") or {}
    subscription_id = relationship.get("id") or event.data.attributes.get("subscription_id")
    return str(subscription_id) if subscription_id else None


# ============================================================================
# EVENT HANDLERS
# ============================================================================


def handle_subscription_update(db: Session, event: WebhookEvent, catalog: PlanCatalog) -> None:
    """subscription_created / subscription_updated: upsert keyed by clinic id"""
    attrs = event.data.attributes
    clinic_id = extract_custom_data(event).get("clinic_id")
    if not clinic_id:
        logger.error(
            f"❌ No clinic_id in custom data for {event.meta.event_name} (subscription {event.data.id})"
        )
        return

    plan = catalog.plan_for_variant(attrs.get("variant_id"))
    status = map_provider_status(attrs.get("status"))
    renews_at = parse_provider_timestamp(attrs.get("renews_at"))
    customer_id = attrs.get("customer_id")

    SubscriptionRepository.upsert_for_clinic(
        db,
        str(clinic_id),
        plan=plan,
        status=status,
        external_customer_id=str(customer_id) if customer_id is not None else None,
        external_subscription_id=event.data.id,
        current_period_start=parse_provider_timestamp(attrs.get("created_at")) if renews_at else None,
        current_period_end=renews_at,
        cancel_at_period_end=bool(attrs.get("cancelled") or False),
    )
    logger.info(f"✅ Subscription updated for clinic {clinic_id}: {plan} ({status})")


def handle_subscription_cancelled(db: Session, event: WebhookEvent, catalog: PlanCatalog) -> None:
    """Drop to the free plan immediately, whatever the prior state"""
    if not event.data.id:
        logger.warning("⚠️ subscription_cancelled without a subscription id")
        return

    touched = SubscriptionRepository.update_by_external_subscription_id(
        db, event.data.id, status="canceled", plan="starter", cancel_at_period_end=True
    )
    logger.info(f"🔔 Subscription cancelled: {event.data.id} ({touched} row(s))")


def handle_subscription_resumed(db: Session, event: WebhookEvent, catalog: PlanCatalog) -> None:
    if not event.data.id:
        logger.warning("⚠️ subscription_resumed without a subscription id")
        return

    plan = catalog.plan_for_variant(event.data.attributes.get("variant_id"))
    touched = SubscriptionRepository.update_by_external_subscription_id(
        db, event.data.id, status="active", plan=plan, cancel_at_period_end=False
    )
    logger.info(f"✅ Subscription resumed: {event.data.id} on {plan} ({touched} row(s))")


def handle_payment_success(db: Session, event: WebhookEvent, catalog: PlanCatalog) -> None:
    subscription_id = extract_invoice_subscription_id(event)
    if not subscription_id:
        return

    SubscriptionRepository.update_by_external_subscription_id(db, subscription_id, status="active")
    logger.info(f"✅ Payment succeeded for subscription {subscription_id}")


def handle_payment_failed(db: Session, event: WebhookEvent, catalog: PlanCatalog) -> None:
    """Mark past due; the plan is left alone"""
    subscription_id = extract_invoice_subscription_id(event)
    if not subscription_id:
        return

    SubscriptionRepository.update_by_external_subscription_id(db, subscription_id, status="past_due")
    logger.warning(f"⚠️ Payment failed for subscription {subscription_id}")


EVENT_HANDLERS: dict[str, Callable[[Session, WebhookEvent, PlanCatalog], None]] = {
    "subscription_created": handle_subscription_update,
    "subscription_updated": handle_subscription_update,
    "subscription_cancelled": handle_subscription_cancelled,
    "subscription_resumed": handle_subscription_resumed,
    "subscription_payment_success": handle_payment_success,
    "subscription_payment_failed": handle_payment_failed,
}


def process_webhook_event(db: Session, event: WebhookEvent, catalog: PlanCatalog) -> bool:
    """
    Dispatch a verified event to its handler.

    Returns True if a handler ran, False for events we do not act on. Database
    errors inside a handler are logged and rolled back so the delivery is still
    acknowledged.
    """
    event_name = event.meta.event_name
    logger.info(f"🔔 LemonSqueezy webhook: {event_name}")

    handler = EVENT_HANDLERS.get(event_name)
    if handler is None:
        logger.info(f"Event {event_name} received and ignored (no handler)")
        return False

    try:
        handler(db, event, catalog)
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Failed to apply {event_name} for subscription {event.data.id}: {e}")
    return True

"""Billing repository - Database operations for clinic subscriptions"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import ClinicInvitation, ClinicMember, Patient, Subscription

logger = logging.getLogger(__name__)

# Columns a webhook is allowed to overwrite
SUBSCRIPTION_FIELDS = (
    "plan",
    "status",
    "external_customer_id",
    "external_subscription_id",
    "current_period_start",
    "current_period_end",
    "cancel_at_period_end",
)


@dataclass
class SubscriptionState:
    """Effective subscription of a clinic. Clinics without a row are starter/active."""

    clinic_id: str
    plan: str = "starter"
    status: str = "active"
    cancel_at_period_end: bool = False
    current_period_end: Optional[datetime] = None
    external_subscription_id: Optional[str] = None
    has_subscription: bool = False


class SubscriptionRepository:
    """Repository for subscription database operations"""

    @staticmethod
    def get_for_clinic(db: Session, clinic_id: str) -> Optional[Subscription]:
        return db.query(Subscription).filter(Subscription.clinic_id == clinic_id).first()

    @staticmethod
    def get_by_external_subscription_id(
        db: Session, external_subscription_id: str
    ) -> list[Subscription]:
        return (
            db.query(Subscription)
            .filter(Subscription.external_subscription_id == str(external_subscription_id))
            .all()
        )

    @staticmethod
    def upsert_for_clinic(db: Session, clinic_id: str, **fields) -> Subscription:
        """Insert or overwrite the clinic's subscription row in one transaction"""
        values = {k: v for k, v in fields.items() if k in SUBSCRIPTION_FIELDS}

        subscription = SubscriptionRepository.get_for_clinic(db, clinic_id)
        if subscription is None:
            subscription = Subscription(clinic_id=clinic_id)
            db.add(subscription)
        for key, value in values.items():
            setattr(subscription, key, value)
        subscription.updated_at = datetime.utcnow()

        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            subscription = SubscriptionRepository.get_for_clinic(db, clinic_id)
            if subscription is None:
                logger.error(f"❌ Subscription insert rejected for unknown clinic {clinic_id}: {e.orig}")
                raise
            # Another delivery created the row first; apply our values on top of it
            logger.warning(f"⚠️ Concurrent subscription insert for clinic {clinic_id}, retrying as update")
            for key, value in values.items():
                setattr(subscription, key, value)
            subscription.updated_at = datetime.utcnow()
            db.commit()

        db.refresh(subscription)
        return subscription

    @staticmethod
    def update_by_external_subscription_id(
        db: Session, external_subscription_id: str, **fields
    ) -> int:
        """Overwrite fields on every row carrying the provider subscription id; returns rows touched"""
        values = {k: v for k, v in fields.items() if k in SUBSCRIPTION_FIELDS}
        rows = SubscriptionRepository.get_by_external_subscription_id(db, external_subscription_id)
        now = datetime.utcnow()
        for subscription in rows:
            for key, value in values.items():
                setattr(subscription, key, value)
            subscription.updated_at = now
        db.commit()
        return len(rows)

    @staticmethod
    def get_subscription_state(db: Session, clinic_id: str) -> SubscriptionState:
        """Read boundary for plan checks: a missing row means the free plan"""
        subscription = SubscriptionRepository.get_for_clinic(db, clinic_id)
        if subscription is None:
            return SubscriptionState(clinic_id=clinic_id)
        return SubscriptionState(
            clinic_id=clinic_id,
            plan=subscription.plan or "starter",
            status=subscription.status or "active",
            cancel_at_period_end=bool(subscription.cancel_at_period_end),
            current_period_end=subscription.current_period_end,
            external_subscription_id=subscription.external_subscription_id,
            has_subscription=True,
        )

    @staticmethod
    def count_patients(db: Session, clinic_id: str) -> int:
        return db.query(Patient).filter(Patient.clinic_id == clinic_id).count()

    @staticmethod
    def count_members(db: Session, clinic_id: str) -> int:
        return db.query(ClinicMember).filter(ClinicMember.clinic_id == clinic_id).count()

    @staticmethod
    def count_pending_invitations(db: Session, clinic_id: str) -> int:
        return (
            db.query(ClinicInvitation)
            .filter(
                ClinicInvitation.clinic_id == clinic_id,
                ClinicInvitation.status == "pending",
                ClinicInvitation.expires_at > datetime.utcnow(),
            )
            .count()
        )

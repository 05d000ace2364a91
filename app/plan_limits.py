"""
Plan limits and utilities for subscription-based patient and team restrictions.
"""

import logging

from sqlalchemy.orm import Session

from .domain.billing.plans import UNLIMITED, PlanCatalog
from .domain.billing.repository import SubscriptionRepository

logger = logging.getLogger(__name__)

MEMBER_LIMIT_MESSAGE = "Member limit reached for your plan. Upgrade to invite more members."
PATIENT_LIMIT_MESSAGE = "Patient limit reached for your plan. Upgrade to add more patients."


class PlanLimitExceeded(Exception):
    """Raised when a create would push a clinic past its plan limit"""

    def __init__(self, message: str, resource: str, limit: int, current: int, plan: str):
        super().__init__(message)
        self.message = message
        self.resource = resource
        self.limit = limit
        self.current = current
        self.plan = plan

    def to_dict(self) -> dict:
        return {
            "detail": self.message,
            "upgrade_required": True,
            "resource": self.resource,
            "limit": self.limit,
            "current": self.current,
            "plan": self.plan,
        }


def exceeds_limit(count: int, limit: int) -> bool:
    """A count has reached its cap. -1 means unlimited."""
    if limit == UNLIMITED:
        return False
    return count >= limit


def get_patient_limit(db: Session, clinic_id: str, catalog: PlanCatalog) -> int:
    state = SubscriptionRepository.get_subscription_state(db, clinic_id)
    return catalog.get(state.plan).patient_limit


def get_member_limit(db: Session, clinic_id: str, catalog: PlanCatalog) -> int:
    state = SubscriptionRepository.get_subscription_state(db, clinic_id)
    return catalog.get(state.plan).team_limit


def count_team_seats(db: Session, clinic_id: str) -> int:
    """Members plus invitations that are still pending and unexpired"""
    return SubscriptionRepository.count_members(db, clinic_id) + SubscriptionRepository.count_pending_invitations(
        db, clinic_id
    )


def can_add_member(db: Session, clinic_id: str, catalog: PlanCatalog) -> bool:
    return not exceeds_limit(count_team_seats(db, clinic_id), get_member_limit(db, clinic_id, catalog))


def can_add_patient(db: Session, clinic_id: str, catalog: PlanCatalog) -> bool:
    return not exceeds_limit(
        SubscriptionRepository.count_patients(db, clinic_id), get_patient_limit(db, clinic_id, catalog)
    )


def ensure_can_add_patient(db: Session, clinic_id: str, catalog: PlanCatalog) -> None:
    """
    Raise PlanLimitExceeded when the clinic is at its patient cap.
    The count and the later insert are not atomic; two concurrent creates can both pass.
    """
    plan = SubscriptionRepository.get_subscription_state(db, clinic_id).plan
    limit = catalog.get(plan).patient_limit
    current = SubscriptionRepository.count_patients(db, clinic_id)
    if exceeds_limit(current, limit):
        logger.info(f"🚫 Clinic {clinic_id} hit patient limit ({current}/{limit}) on plan {plan}")
        raise PlanLimitExceeded(PATIENT_LIMIT_MESSAGE, "patients", limit, current, plan)


def ensure_can_add_member(db: Session, clinic_id: str, catalog: PlanCatalog) -> None:
    """Raise PlanLimitExceeded when members plus pending invitations fill the team cap"""
    plan = SubscriptionRepository.get_subscription_state(db, clinic_id).plan
    limit = catalog.get(plan).team_limit
    current = count_team_seats(db, clinic_id)
    if exceeds_limit(current, limit):
        logger.info(f"🚫 Clinic {clinic_id} hit team limit ({current}/{limit}) on plan {plan}")
        raise PlanLimitExceeded(MEMBER_LIMIT_MESSAGE, "team_members", limit, current, plan)


def get_usage(db: Session, clinic_id: str, catalog: PlanCatalog) -> dict:
    """Usage counters for the billing screen"""
    state = SubscriptionRepository.get_subscription_state(db, clinic_id)
    plan = catalog.get(state.plan)
    patients = SubscriptionRepository.count_patients(db, clinic_id)
    members = SubscriptionRepository.count_members(db, clinic_id)
    pending = SubscriptionRepository.count_pending_invitations(db, clinic_id)
    return {
        "plan": plan.id,
        "status": state.status,
        "patients_count": patients,
        "patients_limit": plan.patient_limit,
        "members_count": members,
        "pending_invitations": pending,
        "members_limit": plan.team_limit,
        "can_add_patient": not exceeds_limit(patients, plan.patient_limit),
        "can_add_member": not exceeds_limit(members + pending, plan.team_limit),
    }

"""Plan catalog - the static plan → limits mapping shared by checkout, webhooks and limits"""

from dataclasses import dataclass, field
from typing import Optional

from ...config import LEMONSQUEEZY_VARIANT_ENTERPRISE, LEMONSQUEEZY_VARIANT_PROFESSIONAL

UNLIMITED = -1
DEFAULT_PLAN = "starter"


@dataclass(frozen=True)
class Plan:
    id: str
    name: str
    price: int
    variant_id: Optional[str]  # None for the free tier
    patient_limit: int
    team_limit: int
    features: tuple[str, ...] = ()

    @property
    def is_free(self) -> bool:
        return not self.variant_id

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "patient_limit": self.patient_limit,
            "team_limit": self.team_limit,
            "features": list(self.features),
            "is_free": self.is_free,
        }


@dataclass(frozen=True)
class PlanCatalog:
    """Immutable set of plans, built once from configuration and injected where needed"""

    plans: tuple[Plan, ...] = field(default_factory=tuple)

    def get(self, plan_id: Optional[str]) -> Plan:
        """Plan by id; unknown ids fall back to the free plan"""
        for plan in self.plans:
            if plan.id == plan_id:
                return plan
        return self.default()

    def default(self) -> Plan:
        for plan in self.plans:
            if plan.id == DEFAULT_PLAN:
                return plan
        raise LookupError(f"Plan catalog has no '{DEFAULT_PLAN}' plan")

    def is_known(self, plan_id: Optional[str]) -> bool:
        return any(plan.id == plan_id for plan in self.plans)

    def plan_for_variant(self, variant_id) -> str:
        """Map a provider variant id to a plan id; unknown or missing variants map to starter"""
        if variant_id is None:
            return DEFAULT_PLAN
        variant = str(variant_id)
        for plan in self.plans:
            if plan.variant_id and plan.variant_id == variant:
                return plan.id
        return DEFAULT_PLAN

    def all(self) -> list[Plan]:
        return list(self.plans)


def build_plan_catalog(
    professional_variant: Optional[str] = LEMONSQUEEZY_VARIANT_PROFESSIONAL,
    enterprise_variant: Optional[str] = LEMONSQUEEZY_VARIANT_ENTERPRISE,
) -> PlanCatalog:
    return PlanCatalog(
        plans=(
            Plan(
                id="starter",
                name="Starter",
                price=0,
                variant_id=None,
                patient_limit=20,
                team_limit=1,
                features=("Basic patient management", "Appointment scheduling", "Invoice generation"),
            ),
            Plan(
                id="professional",
                name="Professional",
                price=49,
                variant_id=professional_variant,
                patient_limit=500,
                team_limit=3,
                features=(
                    "Everything in Starter",
                    "500 patients",
                    "3 team members",
                    "Priority email support",
                ),
            ),
            Plan(
                id="enterprise",
                name="Enterprise",
                price=149,
                variant_id=enterprise_variant,
                patient_limit=UNLIMITED,
                team_limit=UNLIMITED,
                features=(
                    "Everything in Professional",
                    "Unlimited patients",
                    "Unlimited team",
                    "Phone support",
                    "Custom integrations",
                ),
            ),
        )
    )


_catalog = build_plan_catalog()


def get_plan_catalog() -> PlanCatalog:
    """Dependency injection for the plan catalog"""
    return _catalog

"""Demo router - Seeds sample data for the demo experience"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_membership
from ...database import get_db
from ...models import ClinicMember
from .service import DemoService

router = APIRouter(prefix="/demo", tags=["Demo"])


def get_demo_service(db: Session = Depends(get_db)) -> DemoService:
    """Dependency injection for DemoService"""
    return DemoService(db)


@router.post("/seed")
async def seed_demo_data(
    membership: ClinicMember = Depends(get_current_membership),
    service: DemoService = Depends(get_demo_service),
):
    """Seed visits and invoices for the caller's clinic if it has none yet"""
    return service.seed(membership.clinic_id, membership.user_id)

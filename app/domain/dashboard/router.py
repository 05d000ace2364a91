"""Dashboard router - FastAPI endpoints for clinic statistics"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_membership
from ...database import get_db
from ...models import ClinicMember
from .service import DashboardService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


def get_dashboard_service(db: Session = Depends(get_db)) -> DashboardService:
    """Dependency injection for DashboardService"""
    return DashboardService(db)


@router.get("/stats")
async def get_dashboard_stats(
    membership: ClinicMember = Depends(get_current_membership),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Headline numbers and the most recent visits"""
    return service.get_stats(membership.clinic_id)


@router.get("/revenue")
async def get_monthly_revenue(
    membership: ClinicMember = Depends(get_current_membership),
    service: DashboardService = Depends(get_dashboard_service),
):
    return service.get_monthly_revenue(membership.clinic_id)

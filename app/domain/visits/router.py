"""Visit router - FastAPI endpoints for visits"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_membership
from ...database import get_db
from ...models import ClinicMember
from .schemas import VisitCreate, VisitResponse, VisitUpdate
from .service import VisitService

router = APIRouter(prefix="/visits", tags=["Visits"])


def get_visit_service(db: Session = Depends(get_db)) -> VisitService:
    """Dependency injection for VisitService"""
    return VisitService(db)


@router.get("", response_model=list[VisitResponse])
async def list_visits(
    patient_id: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    membership: ClinicMember = Depends(get_current_membership),
    service: VisitService = Depends(get_visit_service),
):
    return service.list_visits(membership.clinic_id, patient_id, limit)


@router.get("/{visit_id}", response_model=VisitResponse)
async def get_visit(
    visit_id: str,
    membership: ClinicMember = Depends(get_current_membership),
    service: VisitService = Depends(get_visit_service),
):
    return service.get_visit(visit_id, membership.clinic_id)


@router.post("", response_model=VisitResponse, status_code=201)
async def create_visit(
    data: VisitCreate,
    membership: ClinicMember = Depends(get_current_membership),
    service: VisitService = Depends(get_visit_service),
):
    return service.create_visit(data, membership.clinic_id, membership.user_id)


@router.patch("/{visit_id}", response_model=VisitResponse)
async def update_visit(
    visit_id: str,
    data: VisitUpdate,
    membership: ClinicMember = Depends(get_current_membership),
    service: VisitService = Depends(get_visit_service),
):
    return service.update_visit(visit_id, data, membership.clinic_id)

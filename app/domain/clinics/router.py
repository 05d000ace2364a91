"""Clinic router - onboarding and settings endpoints"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import AuthUser, get_clinic_admin, get_current_membership, get_current_user
from ...database import get_db
from ...models import ClinicMember
from .schemas import ClinicCreate, ClinicResponse, ClinicUpdate
from .service import ClinicService

router = APIRouter(prefix="/clinics", tags=["Clinics"])


def get_clinic_service(db: Session = Depends(get_db)) -> ClinicService:
    """Dependency injection for ClinicService"""
    return ClinicService(db)


@router.post("", response_model=ClinicResponse, status_code=201)
async def create_clinic(
    body: ClinicCreate,
    user: AuthUser = Depends(get_current_user),
    service: ClinicService = Depends(get_clinic_service),
):
    """Create the caller's clinic"""
    return service.create_clinic(body, user)


@router.get("/current", response_model=ClinicResponse)
async def get_current_clinic(
    membership: ClinicMember = Depends(get_current_membership),
    service: ClinicService = Depends(get_clinic_service),
):
    return service.get_clinic(membership)


@router.patch("/current", response_model=ClinicResponse)
async def update_current_clinic(
    body: ClinicUpdate,
    membership: ClinicMember = Depends(get_clinic_admin),
    service: ClinicService = Depends(get_clinic_service),
):
    """Update clinic settings (owners and admins)"""
    return service.update_clinic(body, membership)

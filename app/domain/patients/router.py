"""Patient router - FastAPI endpoints for patient records"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import AuthUser, get_current_membership, get_current_user
from ...database import get_db
from ...models import ClinicMember
from ..billing.plans import PlanCatalog, get_plan_catalog
from .schemas import PatientCreate, PatientResponse, PatientUpdate
from .service import PatientService

router = APIRouter(prefix="/patients", tags=["Patients"])


def get_patient_service(
    db: Session = Depends(get_db), catalog: PlanCatalog = Depends(get_plan_catalog)
) -> PatientService:
    """Dependency injection for PatientService"""
    return PatientService(db, catalog)


@router.get("", response_model=list[PatientResponse])
async def get_patients(
    search: Optional[str] = Query(None),
    membership: ClinicMember = Depends(get_current_membership),
    service: PatientService = Depends(get_patient_service),
):
    return service.get_patients(membership.clinic_id, search)


@router.get("/export")
async def export_patients_csv(
    search: Optional[str] = Query(None),
    membership: ClinicMember = Depends(get_current_membership),
    service: PatientService = Depends(get_patient_service),
):
    """Export patients as CSV"""
    return service.export_patients_csv(membership.clinic_id, search)


@router.get("/{patient_id}", response_model=PatientResponse)
async def get_patient(
    patient_id: str,
    membership: ClinicMember = Depends(get_current_membership),
    service: PatientService = Depends(get_patient_service),
):
    return service.get_patient(patient_id, membership.clinic_id)


@router.post("", response_model=PatientResponse, status_code=201)
async def create_patient(
    data: PatientCreate,
    membership: ClinicMember = Depends(get_current_membership),
    service: PatientService = Depends(get_patient_service),
):
    """Register a new patient (plan limited)"""
    return service.create_patient(data, membership.clinic_id)


@router.patch("/{patient_id}", response_model=PatientResponse)
async def update_patient(
    patient_id: str,
    data: PatientUpdate,
    membership: ClinicMember = Depends(get_current_membership),
    service: PatientService = Depends(get_patient_service),
):
    return service.update_patient(patient_id, data, membership.clinic_id)


@router.delete("/{patient_id}")
async def delete_patient(
    patient_id: str,
    user: AuthUser = Depends(get_current_user),
    membership: ClinicMember = Depends(get_current_membership),
    service: PatientService = Depends(get_patient_service),
):
    return service.delete_patient(patient_id, membership, user)

"""Procedure router - FastAPI endpoints for the price list"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_clinic_admin, get_current_membership
from ...database import get_db
from ...models import ClinicMember
from .schemas import ProcedureCreate, ProcedureResponse, ProcedureUpdate
from .service import ProcedureService

router = APIRouter(prefix="/procedures", tags=["Procedures"])


def get_procedure_service(db: Session = Depends(get_db)) -> ProcedureService:
    """Dependency injection for ProcedureService"""
    return ProcedureService(db)


@router.get("", response_model=list[ProcedureResponse])
async def list_procedures(
    membership: ClinicMember = Depends(get_current_membership),
    service: ProcedureService = Depends(get_procedure_service),
):
    return service.list_procedures(membership.clinic_id)


@router.post("", response_model=ProcedureResponse, status_code=201)
async def create_procedure(
    data: ProcedureCreate,
    membership: ClinicMember = Depends(get_clinic_admin),
    service: ProcedureService = Depends(get_procedure_service),
):
    return service.create_procedure(data, membership.clinic_id)


@router.patch("/{procedure_id}", response_model=ProcedureResponse)
async def update_procedure(
    procedure_id: str,
    data: ProcedureUpdate,
    membership: ClinicMember = Depends(get_clinic_admin),
    service: ProcedureService = Depends(get_procedure_service),
):
    return service.update_procedure(procedure_id, data, membership.clinic_id)


@router.delete("/{procedure_id}")
async def delete_procedure(
    procedure_id: str,
    membership: ClinicMember = Depends(get_clinic_admin),
    service: ProcedureService = Depends(get_procedure_service),
):
    return service.delete_procedure(procedure_id, membership.clinic_id)

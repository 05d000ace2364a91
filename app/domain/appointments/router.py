"""Appointment router - FastAPI endpoints for appointments"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_membership
from ...database import get_db
from ...models import ClinicMember
from .schemas import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentStatusUpdate,
    AppointmentUpdate,
)
from .service import AppointmentService

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db)


@router.get("", response_model=list[AppointmentResponse])
async def list_appointments(
    on_date: Optional[date] = Query(None, alias="date"),
    status: Optional[str] = Query(None),
    patient_id: Optional[str] = Query(None),
    membership: ClinicMember = Depends(get_current_membership),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.list_appointments(membership.clinic_id, on_date, status, patient_id)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: str,
    membership: ClinicMember = Depends(get_current_membership),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.get_appointment(appointment_id, membership.clinic_id)


@router.post("", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    data: AppointmentCreate,
    membership: ClinicMember = Depends(get_current_membership),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.create_appointment(data, membership.clinic_id)


@router.patch("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: str,
    data: AppointmentUpdate,
    membership: ClinicMember = Depends(get_current_membership),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.update_appointment(appointment_id, data, membership.clinic_id)


@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    appointment_id: str,
    data: AppointmentStatusUpdate,
    membership: ClinicMember = Depends(get_current_membership),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Mark an appointment scheduled, completed, cancelled or no-show"""
    return service.update_status(appointment_id, data.status, membership.clinic_id)


@router.delete("/{appointment_id}")
async def delete_appointment(
    appointment_id: str,
    membership: ClinicMember = Depends(get_current_membership),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.delete_appointment(appointment_id, membership.clinic_id)

"""Appointment service - scheduling for clinic patients"""

import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session, joinedload

from ...models import Appointment, Patient
from .schemas import AppointmentCreate, AppointmentUpdate

logger = logging.getLogger(__name__)


def appointment_to_response(appointment: Appointment) -> dict:
    return {
        "id": appointment.id,
        "patient_id": appointment.patient_id,
        "patient_name": appointment.patient.full_name if appointment.patient else None,
        "appointment_date": appointment.appointment_date,
        "appointment_time": appointment.appointment_time,
        "reason": appointment.reason,
        "status": appointment.status,
        "created_at": appointment.created_at,
    }


class AppointmentService:
    """Service layer for appointments"""

    def __init__(self, db: Session):
        self.db = db

    def _get(self, appointment_id: str, clinic_id: str) -> Appointment:
        appointment = (
            self.db.query(Appointment)
            .options(joinedload(Appointment.patient))
            .filter(Appointment.id == appointment_id, Appointment.clinic_id == clinic_id)
            .first()
        )
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        return appointment

    def list_appointments(
        self,
        clinic_id: str,
        on_date: Optional[date] = None,
        status: Optional[str] = None,
        patient_id: Optional[str] = None,
    ) -> list[dict]:
        query = (
            self.db.query(Appointment)
            .options(joinedload(Appointment.patient))
            .filter(Appointment.clinic_id == clinic_id)
        )
        if on_date:
            query = query.filter(Appointment.appointment_date == on_date)
        if status:
            query = query.filter(Appointment.status == status)
        if patient_id:
            query = query.filter(Appointment.patient_id == patient_id)

        appointments = query.order_by(
            Appointment.appointment_date.asc(), Appointment.appointment_time.asc()
        ).all()
        return [appointment_to_response(a) for a in appointments]

    def get_appointment(self, appointment_id: str, clinic_id: str) -> dict:
        return appointment_to_response(self._get(appointment_id, clinic_id))

    def create_appointment(self, data: AppointmentCreate, clinic_id: str) -> dict:
        patient = (
            self.db.query(Patient)
            .filter(Patient.id == data.patient_id, Patient.clinic_id == clinic_id)
            .first()
        )
        if not patient:
            raise HTTPException(status_code=404, detail="Patient not found")

        appointment = Appointment(clinic_id=clinic_id, **data.model_dump())
        self.db.add(appointment)
        self.db.commit()
        self.db.refresh(appointment)
        logger.info(f"✅ Appointment {appointment.id} booked for patient {patient.id}")
        return appointment_to_response(appointment)

    def update_appointment(self, appointment_id: str, data: AppointmentUpdate, clinic_id: str) -> dict:
        appointment = self._get(appointment_id, clinic_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            if value is None and key != "reason":
                continue
            setattr(appointment, key, value)
        self.db.commit()
        self.db.refresh(appointment)
        return appointment_to_response(appointment)

    def update_status(self, appointment_id: str, status: str, clinic_id: str) -> dict:
        appointment = self._get(appointment_id, clinic_id)
        appointment.status = status
        self.db.commit()
        self.db.refresh(appointment)
        logger.info(f"Appointment {appointment_id} marked {status}")
        return appointment_to_response(appointment)

    def delete_appointment(self, appointment_id: str, clinic_id: str) -> dict:
        appointment = self._get(appointment_id, clinic_id)
        self.db.delete(appointment)
        self.db.commit()
        return {"message": "Appointment deleted"}

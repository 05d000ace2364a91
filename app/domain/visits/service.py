"""Visit service - recording patient encounters"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session, joinedload

from ...models import Appointment, Patient
from ...models_visit import Visit
from .schemas import VisitCreate, VisitUpdate

logger = logging.getLogger(__name__)


def visit_to_response(visit: Visit) -> dict:
    return {
        "id": visit.id,
        "patient_id": visit.patient_id,
        "patient_name": visit.patient.full_name if visit.patient else None,
        "appointment_id": visit.appointment_id,
        "visit_date": visit.visit_date,
        "reason": visit.reason,
        "symptoms": visit.symptoms,
        "diagnosis": visit.diagnosis,
        "doctor_notes": visit.doctor_notes,
        "treatment_plan": visit.treatment_plan,
        "status": visit.status,
        "created_at": visit.created_at,
    }


class VisitService:
    """Service layer for visits"""

    def __init__(self, db: Session):
        self.db = db

    def _get(self, visit_id: str, clinic_id: str) -> Visit:
        visit = (
            self.db.query(Visit)
            .options(joinedload(Visit.patient))
            .filter(Visit.id == visit_id, Visit.clinic_id == clinic_id)
            .first()
        )
        if not visit:
            raise HTTPException(status_code=404, detail="Visit not found")
        return visit

    def list_visits(self, clinic_id: str, patient_id: Optional[str] = None, limit: int = 100) -> list[dict]:
        query = (
            self.db.query(Visit)
            .options(joinedload(Visit.patient))
            .filter(Visit.clinic_id == clinic_id)
        )
        if patient_id:
            query = query.filter(Visit.patient_id == patient_id)
        visits = query.order_by(Visit.visit_date.desc(), Visit.created_at.desc()).limit(limit).all()
        return [visit_to_response(v) for v in visits]

    def get_visit(self, visit_id: str, clinic_id: str) -> dict:
        return visit_to_response(self._get(visit_id, clinic_id))

    def create_visit(self, data: VisitCreate, clinic_id: str, user_id: str) -> dict:
        patient = (
            self.db.query(Patient)
            .filter(Patient.id == data.patient_id, Patient.clinic_id == clinic_id)
            .first()
        )
        if not patient:
            raise HTTPException(status_code=404, detail="Patient not found")

        appointment = None
        if data.appointment_id:
            appointment = (
                self.db.query(Appointment)
                .filter(
                    Appointment.id == data.appointment_id,
                    Appointment.clinic_id == clinic_id,
                    Appointment.patient_id == patient.id,
                )
                .first()
            )
            if not appointment:
                raise HTTPException(status_code=404, detail="Appointment not found for this patient")

        visit = Visit(
            clinic_id=clinic_id,
            created_by=user_id,
            **data.model_dump(exclude={"complete_appointment"}),
        )
        self.db.add(visit)
        if appointment is not None and data.complete_appointment:
            appointment.status = "completed"

        self.db.commit()
        self.db.refresh(visit)
        logger.info(f"✅ Visit {visit.id} recorded for patient {patient.id}")
        return visit_to_response(visit)

    def update_visit(self, visit_id: str, data: VisitUpdate, clinic_id: str) -> dict:
        visit = self._get(visit_id, clinic_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            if key == "visit_date" and value is None:
                continue
            setattr(visit, key, value)
        self.db.commit()
        self.db.refresh(visit)
        return visit_to_response(visit)

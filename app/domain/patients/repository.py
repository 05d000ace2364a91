"""Patient repository - Database operations for patients"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import Patient


class PatientRepository:
    """Repository for patient database operations"""

    @staticmethod
    def get_patients(db: Session, clinic_id: str, search: Optional[str] = None) -> list[Patient]:
        """Clinic patients, newest first, optionally filtered by name, phone or national id"""
        query = db.query(Patient).filter(Patient.clinic_id == clinic_id)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Patient.full_name.ilike(pattern),
                    Patient.phone.ilike(pattern),
                    Patient.national_id.ilike(pattern),
                )
            )
        return query.order_by(Patient.created_at.desc(), Patient.full_name.asc()).all()

    @staticmethod
    def get_patient_by_id(db: Session, patient_id: str, clinic_id: str) -> Optional[Patient]:
        return (
            db.query(Patient)
            .filter(Patient.id == patient_id, Patient.clinic_id == clinic_id)
            .first()
        )

    @staticmethod
    def create_patient(db: Session, clinic_id: str, **patient_data) -> Patient:
        patient = Patient(clinic_id=clinic_id, **patient_data)
        db.add(patient)
        db.commit()
        db.refresh(patient)
        return patient

    @staticmethod
    def update_patient(db: Session, patient: Patient, **updates) -> Patient:
        for key, value in updates.items():
            if hasattr(patient, key):
                setattr(patient, key, value)
        db.commit()
        db.refresh(patient)
        return patient

    @staticmethod
    def delete_patient(db: Session, patient: Patient) -> None:
        db.delete(patient)
        db.commit()

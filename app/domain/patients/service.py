"""Patient service - Business logic for patient records"""

import csv
import logging
from datetime import datetime
from io import StringIO
from typing import Optional

from fastapi import HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from ...auth import ADMIN_ROLES, AuthUser
from ...config import DEMO_EMAIL
from ...models import ClinicMember, Patient
from ...plan_limits import ensure_can_add_patient
from ..billing.plans import PlanCatalog
from .repository import PatientRepository
from .schemas import PatientCreate, PatientUpdate

logger = logging.getLogger(__name__)


class PatientService:
    """Service layer for patient business logic"""

    def __init__(self, db: Session, catalog: PlanCatalog):
        self.db = db
        self.catalog = catalog
        self.repo = PatientRepository()

    def get_patients(self, clinic_id: str, search: Optional[str] = None) -> list[Patient]:
        return self.repo.get_patients(self.db, clinic_id, search)

    def get_patient(self, patient_id: str, clinic_id: str) -> Patient:
        patient = self.repo.get_patient_by_id(self.db, patient_id, clinic_id)
        if not patient:
            raise HTTPException(status_code=404, detail="Patient not found")
        return patient

    def create_patient(self, data: PatientCreate, clinic_id: str) -> Patient:
        """Register a patient, subject to the plan's patient limit"""
        ensure_can_add_patient(self.db, clinic_id, self.catalog)

        patient = self.repo.create_patient(self.db, clinic_id, **data.model_dump())
        logger.info(f"✅ Patient {patient.id} created in clinic {clinic_id}")
        return patient

    def update_patient(self, patient_id: str, data: PatientUpdate, clinic_id: str) -> Patient:
        patient = self.get_patient(patient_id, clinic_id)
        updates = data.model_dump(exclude_unset=True)
        # Required columns are never cleared
        for key in ("full_name", "phone"):
            if key in updates and updates[key] is None:
                updates.pop(key)
        return self.repo.update_patient(self.db, patient, **updates)

    def delete_patient(self, patient_id: str, membership: ClinicMember, user: AuthUser) -> dict:
        """Only owners and admins may delete; the demo account is allowed for the walkthrough"""
        is_demo = bool(user.email) and user.email.lower() == DEMO_EMAIL.lower()
        if membership.role not in ADMIN_ROLES and not is_demo:
            logger.warning(f"⚠️ User {user.id} ({membership.role}) attempted to delete patient {patient_id}")
            raise HTTPException(status_code=403, detail="Only admins can delete patients")

        patient = self.get_patient(patient_id, membership.clinic_id)
        self.repo.delete_patient(self.db, patient)
        logger.info(f"🗑️ Patient {patient_id} deleted from clinic {membership.clinic_id}")
        return {"message": "Patient deleted"}

    def export_patients_csv(self, clinic_id: str, search: Optional[str] = None) -> StreamingResponse:
        """Export patients as CSV"""
        patients = self.repo.get_patients(self.db, clinic_id, search)

        output = StringIO()
        writer = csv.writer(output)
        writer.writerow(
            [
                "ID",
                "Full Name",
                "Phone",
                "National ID",
                "Date of Birth",
                "Gender",
                "Blood Group",
                "Address",
                "Allergies",
                "Created At",
            ]
        )
        for patient in patients:
            writer.writerow(
                [
                    patient.id,
                    patient.full_name,
                    patient.phone,
                    patient.national_id or "",
                    patient.date_of_birth.isoformat() if patient.date_of_birth else "",
                    patient.gender or "",
                    patient.blood_group or "",
                    patient.address or "",
                    patient.allergies or "",
                    patient.created_at.strftime("%Y-%m-%d %H:%M:%S") if patient.created_at else "",
                ]
            )

        output.seek(0)
        filename = f"patients_export_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv"
        logger.info(f"✅ CSV export successful: {filename} ({len(patients)} patients)")

        return StreamingResponse(
            iter([output.getvalue()]),
            media_type="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

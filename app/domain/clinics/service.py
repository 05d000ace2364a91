"""Clinic service - onboarding and clinic settings"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import AuthUser, get_user_clinic_ids
from ...models import Clinic, ClinicMember
from .schemas import ClinicCreate, ClinicUpdate

logger = logging.getLogger(__name__)


def clinic_to_response(clinic: Clinic, role: str = None) -> dict:
    return {
        "id": clinic.id,
        "name": clinic.name,
        "phone": clinic.phone,
        "address": clinic.address,
        "email": clinic.email,
        "website": clinic.website,
        "currency": clinic.currency,
        "role": role,
        "created_at": clinic.created_at,
    }


class ClinicService:
    """Service layer for clinic business logic"""

    def __init__(self, db: Session):
        self.db = db

    def create_clinic(self, data: ClinicCreate, user: AuthUser) -> dict:
        """Create a clinic and make the caller its owner. New clinics start on the free plan."""
        if get_user_clinic_ids(self.db, user.id):
            raise HTTPException(status_code=400, detail="You already belong to a clinic")

        clinic = Clinic(
            name=data.name,
            phone=data.phone,
            address=data.address,
            email=data.email,
            website=data.website,
            currency=data.currency,
            created_by=user.id,
        )
        self.db.add(clinic)
        self.db.flush()
        self.db.add(
            ClinicMember(
                clinic_id=clinic.id,
                user_id=user.id,
                email=user.email,
                full_name=user.full_name or None,
                role="owner",
            )
        )
        self.db.commit()
        self.db.refresh(clinic)

        logger.info(f"✅ Clinic {clinic.id} created by user {user.id}")
        return clinic_to_response(clinic, "owner")

    def get_clinic(self, membership: ClinicMember) -> dict:
        clinic = self.db.query(Clinic).filter(Clinic.id == membership.clinic_id).first()
        if not clinic:
            raise HTTPException(status_code=404, detail="Clinic not found")
        return clinic_to_response(clinic, membership.role)

    def update_clinic(self, data: ClinicUpdate, membership: ClinicMember) -> dict:
        clinic = self.db.query(Clinic).filter(Clinic.id == membership.clinic_id).first()
        if not clinic:
            raise HTTPException(status_code=404, detail="Clinic not found")

        for key, value in data.model_dump(exclude_unset=True).items():
            if key in ("name", "currency") and value is None:
                continue
            setattr(clinic, key, value)

        self.db.commit()
        self.db.refresh(clinic)
        logger.info(f"✅ Clinic {clinic.id} settings updated")
        return clinic_to_response(clinic, membership.role)

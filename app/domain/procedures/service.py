"""Procedure service - price list management"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Procedure
from .schemas import ProcedureCreate, ProcedureUpdate

logger = logging.getLogger(__name__)


class ProcedureService:
    def __init__(self, db: Session):
        self.db = db

    def list_procedures(self, clinic_id: str) -> list[Procedure]:
        return (
            self.db.query(Procedure)
            .filter(Procedure.clinic_id == clinic_id)
            .order_by(Procedure.name.asc())
            .all()
        )

    def get_procedure(self, procedure_id: str, clinic_id: str) -> Procedure:
        procedure = (
            self.db.query(Procedure)
            .filter(Procedure.id == procedure_id, Procedure.clinic_id == clinic_id)
            .first()
        )
        if not procedure:
            raise HTTPException(status_code=404, detail="Procedure not found")
        return procedure

    def create_procedure(self, data: ProcedureCreate, clinic_id: str) -> Procedure:
        procedure = Procedure(clinic_id=clinic_id, **data.model_dump())
        self.db.add(procedure)
        self.db.commit()
        self.db.refresh(procedure)
        logger.info(f"✅ Procedure '{procedure.name}' added to clinic {clinic_id}")
        return procedure

    def update_procedure(self, procedure_id: str, data: ProcedureUpdate, clinic_id: str) -> Procedure:
        procedure = self.get_procedure(procedure_id, clinic_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            if value is not None or key in ("description", "duration_minutes"):
                setattr(procedure, key, value)
        self.db.commit()
        self.db.refresh(procedure)
        return procedure

    def delete_procedure(self, procedure_id: str, clinic_id: str) -> dict:
        procedure = self.get_procedure(procedure_id, clinic_id)
        self.db.delete(procedure)
        self.db.commit()
        return {"message": "Procedure deleted"}

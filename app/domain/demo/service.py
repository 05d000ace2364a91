"""Demo service - Fills an empty demo clinic with sample visits and invoices"""

import logging
from datetime import date, datetime, timedelta

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Patient
from ...models_invoice import Invoice, Payment
from ...models_visit import Visit
from ..invoices.service import InvoiceService, calculate_total

logger = logging.getLogger(__name__)

SEED_PATIENTS = 5
DEMO_INVOICE_BASE = 1000


class DemoService:
    def __init__(self, db: Session):
        self.db = db

    def _invoice_number(self, index: int) -> str:
        candidate = f"INV-DEMO-{DEMO_INVOICE_BASE + index}"
        taken = self.db.query(Invoice.id).filter(Invoice.invoice_number == candidate).first()
        if taken:
            # Invoice numbers are global; another clinic already seeded this one
            return InvoiceService(self.db).generate_invoice_number()
        return candidate

    def seed(self, clinic_id: str, user_id: str) -> dict:
        """
        Insert one visit and one invoice for each of the first patients.
        Does nothing once the clinic has any visit.
        """
        visit_count = self.db.query(Visit.id).filter(Visit.clinic_id == clinic_id).count()
        if visit_count > 0:
            return {"success": True, "message": "Data already exists"}

        patients = (
            self.db.query(Patient)
            .filter(Patient.clinic_id == clinic_id)
            .order_by(Patient.created_at)
            .limit(SEED_PATIENTS)
            .all()
        )
        if not patients:
            raise HTTPException(status_code=400, detail="No patients found to seed")

        today = date.today()
        now = datetime.utcnow()

        for i, patient in enumerate(patients):
            visit = Visit(
                clinic_id=clinic_id,
                patient_id=patient.id,
                visit_date=today - timedelta(days=i),
                reason="Monthly Checkup" if i % 2 == 0 else "Routine Consultation",
                doctor_notes="Patient shows good progress.",
                diagnosis="General Wellness",
                treatment_plan="Continue current supplements.",
                status="completed",
                created_by=user_id,
            )
            self.db.add(visit)
            self.db.flush()

            line_items = [
                {"description": "Consultation Fee", "quantity": 1, "unit_price": 100},
                {"description": "Procedure Charge", "quantity": 1, "unit_price": 50 + i * 50},
            ]
            total = calculate_total(line_items)
            paid = i % 2 == 0

            invoice = Invoice(
                clinic_id=clinic_id,
                patient_id=patient.id,
                visit_id=visit.id,
                invoice_number=self._invoice_number(i),
                line_items=line_items,
                total_amount=total,
                amount_paid=total if paid else 0,
                status="paid" if paid else "unpaid",
                due_date=today + timedelta(days=7),
                paid_at=now if paid else None,
                created_by=user_id,
            )
            self.db.add(invoice)
            self.db.flush()

            if paid:
                self.db.add(
                    Payment(
                        clinic_id=clinic_id,
                        invoice_id=invoice.id,
                        amount=total,
                        payment_method="cash",
                        recorded_by=user_id,
                    )
                )

        self.db.commit()
        logger.info(f"✅ Seeded demo data for clinic {clinic_id}: {len(patients)} visits and invoices")
        return {"success": True, "message": "Demo data seeded successfully"}

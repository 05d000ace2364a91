"""Invoice service - Business logic for patient invoices and payments"""

import logging
import math
import random
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session, joinedload

from ...models import Patient
from ...models_invoice import Invoice, Payment
from ...models_visit import Visit
from .schemas import InvoiceCreate, PaymentCreate

logger = logging.getLogger(__name__)

INVOICE_NUMBER_ATTEMPTS = 10


def calculate_total(line_items: list[dict]) -> float:
    return round(sum(item["quantity"] * item["unit_price"] for item in line_items), 2)


def invoice_status_for(total: float, paid: float) -> str:
    """paid when the balance is cleared, partial when something was paid, otherwise unpaid"""
    if paid >= total:
        return "paid"
    if paid > 0:
        return "partial"
    return "unpaid"


def apply_payment(total: float, paid: float, amount: float) -> tuple[float, str]:
    """
    Validate a payment against the outstanding balance and return the new
    (amount_paid, status). Raises ValueError before anything is written.
    """
    if not math.isfinite(amount) or amount <= 0:
        raise ValueError("Amount must be greater than 0")

    balance = round(total - paid, 2)
    if round(amount, 2) > balance:
        raise ValueError("Amount exceeds balance")

    new_paid = round(paid + amount, 2)
    return new_paid, invoice_status_for(total, new_paid)


def invoice_to_response(invoice: Invoice) -> dict:
    return {
        "id": invoice.id,
        "invoice_number": invoice.invoice_number,
        "patient_id": invoice.patient_id,
        "patient_name": invoice.patient.full_name if invoice.patient else None,
        "visit_id": invoice.visit_id,
        "line_items": invoice.line_items or [],
        "notes": invoice.notes,
        "total_amount": invoice.total_amount,
        "amount_paid": invoice.amount_paid or 0,
        "balance": round(invoice.total_amount - (invoice.amount_paid or 0), 2),
        "status": invoice.status,
        "due_date": invoice.due_date,
        "paid_at": invoice.paid_at,
        "created_at": invoice.created_at,
        "payments": invoice.payments,
    }


class InvoiceService:
    """Service layer for invoices"""

    def __init__(self, db: Session):
        self.db = db

    def _get(self, invoice_id: str, clinic_id: str) -> Invoice:
        invoice = (
            self.db.query(Invoice)
            .options(joinedload(Invoice.patient), joinedload(Invoice.payments))
            .filter(Invoice.id == invoice_id, Invoice.clinic_id == clinic_id)
            .first()
        )
        if not invoice:
            raise HTTPException(status_code=404, detail="Invoice not found")
        return invoice

    def generate_invoice_number(self) -> str:
        """INV-YYYYMM-NNN, retried until unused"""
        prefix = f"INV-{datetime.now().strftime('%Y%m')}"
        for _ in range(INVOICE_NUMBER_ATTEMPTS):
            candidate = f"{prefix}-{random.randint(0, 999):03d}"  # noqa: S311 - not a secret
            exists = self.db.query(Invoice.id).filter(Invoice.invoice_number == candidate).first()
            if not exists:
                return candidate
        # Month is crowded; widen the suffix
        return f"{prefix}-{random.randint(1000, 999999)}"  # noqa: S311 - not a secret

    def list_invoices(
        self, clinic_id: str, status: Optional[str] = None, patient_id: Optional[str] = None
    ) -> list[dict]:
        query = (
            self.db.query(Invoice)
            .options(joinedload(Invoice.patient), joinedload(Invoice.payments))
            .filter(Invoice.clinic_id == clinic_id)
        )
        if status:
            query = query.filter(Invoice.status == status)
        if patient_id:
            query = query.filter(Invoice.patient_id == patient_id)
        invoices = query.order_by(Invoice.created_at.desc()).all()
        return [invoice_to_response(i) for i in invoices]

    def get_invoice(self, invoice_id: str, clinic_id: str) -> dict:
        return invoice_to_response(self._get(invoice_id, clinic_id))

    def get_invoice_model(self, invoice_id: str, clinic_id: str) -> Invoice:
        return self._get(invoice_id, clinic_id)

    def create_invoice(self, data: InvoiceCreate, clinic_id: str, user_id: str) -> dict:
        patient = (
            self.db.query(Patient)
            .filter(Patient.id == data.patient_id, Patient.clinic_id == clinic_id)
            .first()
        )
        if not patient:
            raise HTTPException(status_code=404, detail="Patient not found")

        if data.visit_id:
            visit = (
                self.db.query(Visit)
                .filter(Visit.id == data.visit_id, Visit.clinic_id == clinic_id)
                .first()
            )
            if not visit:
                raise HTTPException(status_code=404, detail="Visit not found")

        line_items = [item.model_dump() for item in data.line_items]
        total = calculate_total(line_items)
        if not math.isfinite(total) or total <= 0:
            raise HTTPException(status_code=400, detail="Invoice total must be greater than 0")

        invoice = Invoice(
            clinic_id=clinic_id,
            patient_id=patient.id,
            visit_id=data.visit_id,
            invoice_number=self.generate_invoice_number(),
            line_items=line_items,
            notes=data.notes,
            due_date=data.due_date,
            total_amount=total,
            amount_paid=0,
            status="unpaid",
            created_by=user_id,
        )
        self.db.add(invoice)
        self.db.commit()
        self.db.refresh(invoice)

        logger.info(f"✅ Invoice {invoice.invoice_number} created for patient {patient.id}: {total}")
        return invoice_to_response(invoice)

    def record_payment(self, invoice_id: str, data: PaymentCreate, clinic_id: str, user_id: str) -> dict:
        """Record a payment; the amount is checked against the balance before any write"""
        invoice = self._get(invoice_id, clinic_id)

        try:
            new_paid, new_status = apply_payment(
                invoice.total_amount, invoice.amount_paid or 0, data.amount
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        self.db.add(
            Payment(
                clinic_id=clinic_id,
                invoice_id=invoice.id,
                amount=round(data.amount, 2),
                payment_method=data.payment_method,
                transaction_reference=data.transaction_reference,
                recorded_by=user_id,
            )
        )
        invoice.amount_paid = new_paid
        invoice.status = new_status
        if new_status == "paid":
            invoice.paid_at = datetime.utcnow()

        self.db.commit()
        self.db.refresh(invoice)
        logger.info(f"💾 Payment of {data.amount} recorded on {invoice.invoice_number} ({new_status})")
        return invoice_to_response(invoice)

    def mark_as_paid(self, invoice_id: str, clinic_id: str) -> dict:
        invoice = self._get(invoice_id, clinic_id)
        invoice.status = "paid"
        invoice.amount_paid = invoice.total_amount
        invoice.paid_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(invoice)
        logger.info(f"✅ Invoice {invoice.invoice_number} marked as paid")
        return invoice_to_response(invoice)

    def delete_invoice(self, invoice_id: str, clinic_id: str) -> dict:
        invoice = self._get(invoice_id, clinic_id)
        if invoice.payments:
            raise HTTPException(status_code=400, detail="Invoices with payments cannot be deleted")
        self.db.delete(invoice)
        self.db.commit()
        return {"message": "Invoice deleted"}

"""Invoice router - FastAPI endpoints for invoices, payments and PDFs"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ...auth import get_current_membership
from ...database import get_db
from ...models import Clinic, ClinicMember
from .pdf import InvoicePDFGenerator
from .schemas import InvoiceCreate, InvoiceResponse, PaymentCreate
from .service import InvoiceService

router = APIRouter(prefix="/invoices", tags=["Invoices"])


def get_invoice_service(db: Session = Depends(get_db)) -> InvoiceService:
    """Dependency injection for InvoiceService"""
    return InvoiceService(db)


@router.get("", response_model=list[InvoiceResponse])
async def list_invoices(
    status: Optional[str] = Query(None),
    patient_id: Optional[str] = Query(None),
    membership: ClinicMember = Depends(get_current_membership),
    service: InvoiceService = Depends(get_invoice_service),
):
    return service.list_invoices(membership.clinic_id, status, patient_id)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: str,
    membership: ClinicMember = Depends(get_current_membership),
    service: InvoiceService = Depends(get_invoice_service),
):
    return service.get_invoice(invoice_id, membership.clinic_id)


@router.post("", response_model=InvoiceResponse, status_code=201)
async def create_invoice(
    data: InvoiceCreate,
    membership: ClinicMember = Depends(get_current_membership),
    service: InvoiceService = Depends(get_invoice_service),
):
    """Create an invoice from line items"""
    return service.create_invoice(data, membership.clinic_id, membership.user_id)


@router.post("/{invoice_id}/payments", response_model=InvoiceResponse)
async def record_payment(
    invoice_id: str,
    data: PaymentCreate,
    membership: ClinicMember = Depends(get_current_membership),
    service: InvoiceService = Depends(get_invoice_service),
):
    """Record a full or partial payment"""
    return service.record_payment(invoice_id, data, membership.clinic_id, membership.user_id)


@router.post("/{invoice_id}/mark-paid", response_model=InvoiceResponse)
async def mark_invoice_paid(
    invoice_id: str,
    membership: ClinicMember = Depends(get_current_membership),
    service: InvoiceService = Depends(get_invoice_service),
):
    return service.mark_as_paid(invoice_id, membership.clinic_id)


@router.delete("/{invoice_id}")
async def delete_invoice(
    invoice_id: str,
    membership: ClinicMember = Depends(get_current_membership),
    service: InvoiceService = Depends(get_invoice_service),
):
    return service.delete_invoice(invoice_id, membership.clinic_id)


@router.get("/{invoice_id}/pdf")
async def download_invoice_pdf(
    invoice_id: str,
    membership: ClinicMember = Depends(get_current_membership),
    service: InvoiceService = Depends(get_invoice_service),
    db: Session = Depends(get_db),
):
    """Download the invoice as a PDF"""
    invoice = service.get_invoice_model(invoice_id, membership.clinic_id)
    clinic = db.query(Clinic).filter(Clinic.id == membership.clinic_id).first()
    pdf_bytes = InvoicePDFGenerator(invoice, clinic).generate()
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{invoice.invoice_number}.pdf"'},
    )

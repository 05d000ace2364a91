"""
Invoice and Payment Models for patient billing
"""

from sqlalchemy import JSON, Column, Date, DateTime, Float, ForeignKey, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .models import generate_uuid


class Invoice(Base):
    """Invoice issued to a patient"""

    __tablename__ = "invoices"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    clinic_id = Column(String(36), ForeignKey("clinics.id"), nullable=False, index=True)
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False, index=True)
    visit_id = Column(String(36), ForeignKey("visits.id"), nullable=True)

    invoice_number = Column(String(50), unique=True, nullable=False, index=True)
    # [{"description": str, "quantity": float, "unit_price": float}]
    line_items = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=True)

    total_amount = Column(Float, nullable=False)
    amount_paid = Column(Float, default=0, nullable=False)
    status = Column(String(20), default="unpaid", nullable=False, index=True)  # unpaid, partial, paid

    due_date = Column(Date, nullable=True)
    paid_at = Column(DateTime, nullable=True)

    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    patient = relationship("Patient", back_populates="invoices")
    visit = relationship("Visit", back_populates="invoices")
    payments = relationship(
        "Payment", back_populates="invoice", cascade="all, delete-orphan", order_by="Payment.created_at"
    )


class Payment(Base):
    """A single payment recorded against an invoice"""

    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    clinic_id = Column(String(36), ForeignKey("clinics.id"), nullable=False, index=True)
    invoice_id = Column(String(36), ForeignKey("invoices.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    payment_method = Column(String(20), nullable=False)  # cash, mobile_money, card
    transaction_reference = Column(String(255), nullable=True)

    recorded_by = Column(String(36), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    invoice = relationship("Invoice", back_populates="payments")

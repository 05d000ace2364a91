"""
Visit Models for clinical encounters
"""

from sqlalchemy import Column, Date, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .models import generate_uuid


class Visit(Base):
    """A patient encounter, optionally tied to the appointment that produced it"""

    __tablename__ = "visits"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    clinic_id = Column(String(36), ForeignKey("clinics.id"), nullable=False, index=True)
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False, index=True)
    appointment_id = Column(String(36), ForeignKey("appointments.id"), nullable=True)

    visit_date = Column(Date, nullable=False, index=True)
    reason = Column(Text, nullable=True)
    symptoms = Column(Text, nullable=True)
    diagnosis = Column(Text, nullable=True)
    doctor_notes = Column(Text, nullable=True)
    treatment_plan = Column(Text, nullable=True)
    status = Column(String(20), default="completed", nullable=False)

    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    patient = relationship("Patient", back_populates="visits")
    invoices = relationship("Invoice", back_populates="visit")

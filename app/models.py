import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_uuid():
    """Generate a UUID primary key"""
    return str(uuid.uuid4())


class Clinic(Base):
    """A tenant. Every clinical and billing row belongs to exactly one clinic."""

    __tablename__ = "clinics"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    email = Column(String(255), nullable=True)
    website = Column(String(255), nullable=True)
    currency = Column(String(10), default="USD", nullable=False)
    created_by = Column(String(36), nullable=True)  # Auth provider user id of the creator

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    members = relationship("ClinicMember", back_populates="clinic", cascade="all, delete-orphan")
    invitations = relationship(
        "ClinicInvitation", back_populates="clinic", cascade="all, delete-orphan"
    )
    subscription = relationship("Subscription", back_populates="clinic", uselist=False)


class ClinicMember(Base):
    """Membership of an auth provider user in a clinic"""

    __tablename__ = "clinic_members"
    __table_args__ = (UniqueConstraint("clinic_id", "user_id", name="uq_clinic_member"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    clinic_id = Column(String(36), ForeignKey("clinics.id"), nullable=False, index=True)
    user_id = Column(String(36), nullable=False, index=True)  # Supabase auth.users id
    email = Column(String(255), nullable=True)
    full_name = Column(String(255), nullable=True)
    # owner, admin, doctor, nurse, receptionist, member
    role = Column(String(50), default="member", nullable=False)

    created_at = Column(DateTime, server_default=func.now())

    clinic = relationship("Clinic", back_populates="members")


class ClinicInvitation(Base):
    """Pending or resolved invitation to join a clinic"""

    __tablename__ = "clinic_invitations"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    clinic_id = Column(String(36), ForeignKey("clinics.id"), nullable=False, index=True)
    email = Column(String(255), nullable=False)
    role = Column(String(50), default="member", nullable=False)
    token = Column(String(64), unique=True, nullable=False, index=True)
    status = Column(String(20), default="pending", nullable=False)  # pending, accepted, expired, revoked
    expires_at = Column(DateTime, nullable=False)
    created_by = Column(String(36), nullable=True)
    accepted_by = Column(String(36), nullable=True)
    accepted_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())

    clinic = relationship("Clinic", back_populates="invitations")


class Subscription(Base):
    """Local mirror of the billing provider's subscription, one row per clinic.

    Only the billing webhook writes to this table. A clinic without a row is on
    the free starter plan.
    """

    __tablename__ = "subscriptions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    clinic_id = Column(String(36), ForeignKey("clinics.id"), unique=True, nullable=False, index=True)
    plan = Column(String(50), default="starter", nullable=False)  # starter, professional, enterprise
    status = Column(String(20), default="active", nullable=False)  # active, past_due, canceled
    external_customer_id = Column(String(255), nullable=True)
    external_subscription_id = Column(String(255), nullable=True, index=True)
    current_period_start = Column(DateTime, nullable=True)
    current_period_end = Column(DateTime, nullable=True)
    cancel_at_period_end = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    clinic = relationship("Clinic", back_populates="subscription")


class Patient(Base):
    __tablename__ = "patients"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    clinic_id = Column(String(36), ForeignKey("clinics.id"), nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    national_id = Column(String(100), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)
    blood_group = Column(String(10), nullable=True)
    medical_history = Column(Text, nullable=True)
    allergies = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    appointments = relationship("Appointment", back_populates="patient", cascade="all, delete-orphan")
    visits = relationship("Visit", back_populates="patient", cascade="all, delete-orphan")
    invoices = relationship("Invoice", back_populates="patient", cascade="all, delete-orphan")


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    clinic_id = Column(String(36), ForeignKey("clinics.id"), nullable=False, index=True)
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False, index=True)
    appointment_date = Column(Date, nullable=False, index=True)
    appointment_time = Column(String(10), nullable=False)  # HH:MM
    reason = Column(Text, nullable=True)
    # scheduled, completed, cancelled, no_show
    status = Column(String(20), default="scheduled", nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    patient = relationship("Patient", back_populates="appointments")


class Procedure(Base):
    """Clinic price list entry"""

    __tablename__ = "procedures"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    clinic_id = Column(String(36), ForeignKey("clinics.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    default_cost = Column(Float, default=0, nullable=False)
    duration_minutes = Column(Integer, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

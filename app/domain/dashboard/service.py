"""Dashboard service - Aggregates clinic activity for the home screen"""

import logging
from collections import OrderedDict
from datetime import date, datetime

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Appointment, Patient
from ...models_invoice import Invoice, Payment
from ...models_visit import Visit

logger = logging.getLogger(__name__)

RECENT_VISITS = 5
REVENUE_MONTHS = 6


def last_months(today: date, months: int = REVENUE_MONTHS) -> list[str]:
    """Month keys (YYYY-MM), oldest first, ending with the current month"""
    year, month = today.year, today.month
    keys = []
    for _ in range(months):
        keys.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            month = 12
            year -= 1
    return list(reversed(keys))


class DashboardService:
    """Read-only aggregates for a single clinic"""

    def __init__(self, db: Session):
        self.db = db

    def get_stats(self, clinic_id: str, today: date | None = None) -> dict:
        today = today or date.today()

        patient_count = (
            self.db.query(func.count(Patient.id)).filter(Patient.clinic_id == clinic_id).scalar() or 0
        )
        appointments_today = (
            self.db.query(func.count(Appointment.id))
            .filter(Appointment.clinic_id == clinic_id, Appointment.appointment_date == today)
            .scalar()
            or 0
        )

        outstanding = (
            self.db.query(Invoice.total_amount, Invoice.amount_paid)
            .filter(Invoice.clinic_id == clinic_id, Invoice.status != "paid")
            .all()
        )
        pending_amount = round(sum(total - (paid or 0) for total, paid in outstanding), 2)

        total_revenue = (
            self.db.query(func.coalesce(func.sum(Invoice.amount_paid), 0))
            .filter(Invoice.clinic_id == clinic_id)
            .scalar()
        )

        visits = (
            self.db.query(Visit)
            .options(joinedload(Visit.patient))
            .filter(Visit.clinic_id == clinic_id)
            .order_by(Visit.visit_date.desc(), Visit.created_at.desc())
            .limit(RECENT_VISITS)
            .all()
        )

        return {
            "patient_count": patient_count,
            "appointments_today": appointments_today,
            "pending_amount": pending_amount,
            "total_revenue": round(float(total_revenue or 0), 2),
            "recent_visits": [
                {
                    "id": v.id,
                    "patient_id": v.patient_id,
                    "patient_name": v.patient.full_name if v.patient else None,
                    "visit_date": v.visit_date,
                    "diagnosis": v.diagnosis,
                    "status": v.status,
                }
                for v in visits
            ],
        }

    def get_monthly_revenue(self, clinic_id: str, today: date | None = None) -> list[dict]:
        """Payments grouped by calendar month for the last six months"""
        today = today or date.today()
        months = last_months(today)
        start = datetime.strptime(months[0], "%Y-%m")

        # Grouped in Python so the same query works on SQLite and Postgres
        payments = (
            self.db.query(Payment.amount, Payment.created_at)
            .filter(Payment.clinic_id == clinic_id, Payment.created_at >= start)
            .all()
        )

        totals = OrderedDict((key, 0.0) for key in months)
        for amount, created_at in payments:
            if created_at is None:
                continue
            key = created_at.strftime("%Y-%m")
            if key in totals:
                totals[key] += amount or 0

        return [{"month": key, "revenue": round(value, 2)} for key, value in totals.items()]

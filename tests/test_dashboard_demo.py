"""Dashboard aggregates and demo seeding"""

from datetime import date, datetime

from app.domain.dashboard.service import DashboardService, last_months
from app.models import Appointment, Patient
from app.models_invoice import Invoice, Payment
from app.models_visit import Visit


def add_patients(db, clinic_id, count):
    patients = [
        Patient(clinic_id=clinic_id, full_name=f"Patient {i}", phone=f"07000000{i:02d}") for i in range(count)
    ]
    db.add_all(patients)
    db.commit()
    return patients


def test_last_months_wraps_year():
    assert last_months(date(2026, 2, 15), 4) == ["2025-11", "2025-12", "2026-01", "2026-02"]


def test_stats(db, owner):
    patients = add_patients(db, owner.clinic_id, 2)
    today = date.today()
    db.add(
        Appointment(
            clinic_id=owner.clinic_id, patient_id=patients[0].id, appointment_date=today, appointment_time="09:00"
        )
    )
    db.add(Visit(clinic_id=owner.clinic_id, patient_id=patients[1].id, visit_date=today, diagnosis="Flu"))
    db.add_all(
        [
            Invoice(
                clinic_id=owner.clinic_id, patient_id=patients[0].id, invoice_number="INV-T-1",
                line_items=[], total_amount=100, amount_paid=40, status="partial",
            ),
            Invoice(
                clinic_id=owner.clinic_id, patient_id=patients[1].id, invoice_number="INV-T-2",
                line_items=[], total_amount=50, amount_paid=50, status="paid",
            ),
        ]
    )
    db.commit()

    stats = DashboardService(db).get_stats(owner.clinic_id, today)

    assert stats["patient_count"] == 2
    assert stats["appointments_today"] == 1
    assert stats["pending_amount"] == 60
    assert stats["total_revenue"] == 90
    assert stats["recent_visits"][0]["patient_name"] == "Patient 1"


def test_monthly_revenue_groups_payments(db, owner):
    patient = add_patients(db, owner.clinic_id, 1)[0]
    invoice = Invoice(
        clinic_id=owner.clinic_id, patient_id=patient.id, invoice_number="INV-T-3",
        line_items=[], total_amount=500, amount_paid=0, status="unpaid",
    )
    db.add(invoice)
    db.flush()
    db.add_all(
        Payment(
            clinic_id=owner.clinic_id, invoice_id=invoice.id, amount=amount, payment_method="cash", created_at=paid_at
        )
        for amount, paid_at in [
            (100, datetime(2026, 10, 3)),
            (25.5, datetime(2026, 10, 20)),
            (40, datetime(2026, 8, 1)),
            (999, datetime(2025, 1, 1)),
        ]
    )
    db.commit()

    series = DashboardService(db).get_monthly_revenue(owner.clinic_id, date(2026, 10, 25))

    assert [point["month"] for point in series] == [
        "2026-05", "2026-06", "2026-07", "2026-08", "2026-09", "2026-10",
    ]
    revenue = {point["month"]: point["revenue"] for point in series}
    assert revenue["2026-10"] == 125.5
    assert revenue["2026-08"] == 40
    assert revenue["2026-09"] == 0


def test_dashboard_endpoint(client, owner):
    response = client.get("/dashboard/stats", headers=owner.headers)

    assert response.status_code == 200
    assert response.json()["patient_count"] == 0


def test_demo_seed_is_idempotent(client, db, owner):
    add_patients(db, owner.clinic_id, 6)

    first = client.post("/demo/seed", headers=owner.headers)
    second = client.post("/demo/seed", headers=owner.headers)

    assert first.json()["message"] == "Demo data seeded successfully"
    assert second.json()["message"] == "Data already exists"
    assert db.query(Visit).count() == 5
    invoices = db.query(Invoice).order_by(Invoice.invoice_number).all()
    assert [i.invoice_number for i in invoices] == [f"INV-DEMO-{1000 + i}" for i in range(5)]
    assert [i.status for i in invoices] == ["paid", "unpaid", "paid", "unpaid", "paid"]
    assert invoices[1].total_amount == 200


def test_demo_seed_needs_patients(client, owner):
    response = client.post("/demo/seed", headers=owner.headers)

    assert response.status_code == 400

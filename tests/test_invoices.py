"""Patient invoices: totals, payment arithmetic and PDF export"""

import json

import pytest

from app.domain.invoices.service import apply_payment, calculate_total, invoice_status_for
from app.models import Patient
from app.models_invoice import Invoice, Payment


@pytest.fixture
def patient(db, owner):
    patient = Patient(clinic_id=owner.clinic_id, full_name="Amina Yusuf", phone="0711111111")
    db.add(patient)
    db.commit()
    return patient


def create_invoice(client, owner, patient, items=None):
    items = items or [
        {"description": "Consultation", "quantity": 1, "unit_price": 60},
        {"description": "Dressing", "quantity": 2, "unit_price": 20},
    ]
    return client.post(
        "/invoices", json={"patient_id": patient.id, "line_items": items}, headers=owner.headers
    )


class TestPaymentArithmetic:
    def test_partial_then_full(self):
        paid, status = apply_payment(100, 0, 40)
        assert (paid, status) == (40, "partial")

        paid, status = apply_payment(100, paid, 60)
        assert (paid, status) == (100, "paid")

    def test_overpayment_rejected(self):
        with pytest.raises(ValueError, match="Amount exceeds balance"):
            apply_payment(100, 70, 30.01)

    def test_non_positive_rejected(self):
        with pytest.raises(ValueError, match="greater than 0"):
            apply_payment(100, 0, 0)

    @pytest.mark.parametrize("amount", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_rejected(self, amount):
        with pytest.raises(ValueError, match="greater than 0"):
            apply_payment(100, 0, amount)

    def test_status_for(self):
        assert invoice_status_for(100, 0) == "unpaid"
        assert invoice_status_for(100, 0.5) == "partial"
        assert invoice_status_for(100, 100) == "paid"

    def test_total(self):
        assert calculate_total([{"quantity": 3, "unit_price": 0.1}]) == 0.3


class TestInvoiceEndpoints:
    def test_create_computes_total(self, client, owner, patient):
        response = create_invoice(client, owner, patient)

        assert response.status_code == 201
        body = response.json()
        assert body["total_amount"] == 100
        assert body["balance"] == 100
        assert body["status"] == "unpaid"
        assert body["invoice_number"].startswith("INV-")
        assert body["patient_name"] == "Amina Yusuf"

    def test_zero_total_rejected(self, client, owner, patient):
        response = create_invoice(
            client, owner, patient, items=[{"description": "Free follow-up", "quantity": 1, "unit_price": 0}]
        )

        assert response.status_code == 400

    def test_empty_line_items_rejected(self, client, owner, patient):
        response = client.post(
            "/invoices", json={"patient_id": patient.id, "line_items": []}, headers=owner.headers
        )

        assert response.status_code == 422

    def test_partial_and_full_payment(self, client, owner, patient):
        invoice_id = create_invoice(client, owner, patient).json()["id"]

        partial = client.post(
            f"/invoices/{invoice_id}/payments",
            json={"amount": 30, "payment_method": "mobile_money", "transaction_reference": "MP123"},
            headers=owner.headers,
        )
        assert partial.status_code == 200
        assert partial.json()["status"] == "partial"
        assert partial.json()["balance"] == 70

        full = client.post(
            f"/invoices/{invoice_id}/payments", json={"amount": 70, "payment_method": "cash"}, headers=owner.headers
        )
        assert full.json()["status"] == "paid"
        assert full.json()["paid_at"] is not None
        assert len(full.json()["payments"]) == 2

    def test_overpayment_leaves_invoice_untouched(self, client, db, owner, patient):
        invoice_id = create_invoice(client, owner, patient).json()["id"]

        response = client.post(
            f"/invoices/{invoice_id}/payments", json={"amount": 100.5, "payment_method": "card"}, headers=owner.headers
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Amount exceeds balance"
        db.expire_all()
        assert db.query(Payment).count() == 0
        assert db.query(Invoice).filter(Invoice.id == invoice_id).one().amount_paid == 0

    @pytest.mark.parametrize("amount", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_payment_rejected_without_mutation(self, client, db, owner, patient, amount):
        invoice_id = create_invoice(client, owner, patient).json()["id"]

        response = client.post(
            f"/invoices/{invoice_id}/payments",
            content=json.dumps({"amount": amount, "payment_method": "cash"}),
            headers={**owner.headers, "Content-Type": "application/json"},
        )

        assert response.status_code == 422
        assert response.json()["detail"][0]["type"] == "finite_number"
        db.expire_all()
        assert db.query(Payment).count() == 0
        assert db.query(Invoice).filter(Invoice.id == invoice_id).one().amount_paid == 0

    @pytest.mark.parametrize("field", ["quantity", "unit_price"])
    def test_non_finite_line_item_rejected(self, client, db, owner, patient, field):
        item = {"description": "Consultation", "quantity": 1, "unit_price": 60, field: float("nan")}
        body = json.dumps({"patient_id": patient.id, "line_items": [item]})

        response = client.post("/invoices", content=body, headers={**owner.headers, "Content-Type": "application/json"})

        assert response.status_code == 422
        assert db.query(Invoice).count() == 0

    def test_unknown_payment_method(self, client, owner, patient):
        invoice_id = create_invoice(client, owner, patient).json()["id"]

        response = client.post(
            f"/invoices/{invoice_id}/payments", json={"amount": 10, "payment_method": "cheque"}, headers=owner.headers
        )

        assert response.status_code == 422

    def test_mark_paid(self, client, owner, patient):
        invoice_id = create_invoice(client, owner, patient).json()["id"]

        body = client.post(f"/invoices/{invoice_id}/mark-paid", headers=owner.headers).json()

        assert body["status"] == "paid"
        assert body["balance"] == 0

    def test_cannot_delete_with_payments(self, client, owner, patient):
        invoice_id = create_invoice(client, owner, patient).json()["id"]
        client.post(f"/invoices/{invoice_id}/payments", json={"amount": 10}, headers=owner.headers)

        response = client.delete(f"/invoices/{invoice_id}", headers=owner.headers)

        assert response.status_code == 400

    def test_filter_by_status(self, client, owner, patient):
        first = create_invoice(client, owner, patient).json()["id"]
        create_invoice(client, owner, patient)
        client.post(f"/invoices/{first}/mark-paid", headers=owner.headers)

        response = client.get("/invoices", params={"status": "paid"}, headers=owner.headers)

        assert [i["id"] for i in response.json()] == [first]

    def test_pdf_download(self, client, owner, patient):
        invoice = create_invoice(client, owner, patient).json()

        response = client.get(f"/invoices/{invoice['id']}/pdf", headers=owner.headers)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")
        assert invoice["invoice_number"] in response.headers["content-disposition"]

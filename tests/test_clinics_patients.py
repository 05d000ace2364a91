"""Clinic onboarding and patient records"""

from conftest import add_member, auth_headers

from app.models import ClinicMember, Patient


class TestClinics:
    def test_create_clinic_makes_caller_owner(self, client, db):
        headers = auth_headers("founder", "founder@test.com")

        response = client.post(
            "/clinics", json={"name": "Harbor Clinic", "currency": "kes", "phone": "+254 700 000000"}, headers=headers
        )

        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Harbor Clinic"
        assert body["currency"] == "KES"
        assert body["role"] == "owner"
        member = db.query(ClinicMember).filter(ClinicMember.user_id == "founder").one()
        assert member.role == "owner"

    def test_new_clinic_is_on_starter(self, client):
        headers = auth_headers("founder", "founder@test.com")
        client.post("/clinics", json={"name": "Harbor Clinic"}, headers=headers)

        body = client.get("/api/billing/subscription", headers=headers).json()

        assert body["plan"] == "starter"
        assert body["has_subscription"] is False

    def test_second_clinic_rejected(self, client, owner):
        response = client.post("/clinics", json={"name": "Another"}, headers=owner.headers)

        assert response.status_code == 400

    def test_user_without_clinic_must_onboard(self, client):
        response = client.get("/clinics/current", headers=auth_headers("nobody"))

        assert response.status_code == 403
        assert response.headers["X-Onboarding-Required"] == "true"

    def test_members_cannot_update_settings(self, client, db, owner):
        member = add_member(db, owner.clinic_id, role="receptionist")

        response = client.patch(
            "/clinics/current", json={"name": "Renamed"}, headers=auth_headers(member.user_id, member.email)
        )

        assert response.status_code == 403

    def test_owner_updates_settings(self, client, owner):
        response = client.patch("/clinics/current", json={"address": "12 Main St"}, headers=owner.headers)

        assert response.status_code == 200
        assert response.json()["address"] == "12 Main St"


class TestPatients:
    def test_create_normalises_blank_fields(self, client, owner):
        response = client.post(
            "/patients",
            json={"full_name": "Amina Yusuf", "phone": "0712345678", "national_id": "", "blood_group": "o+"},
            headers=owner.headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["national_id"] is None
        assert body["blood_group"] == "O+"

    def test_phone_required(self, client, owner):
        response = client.post("/patients", json={"full_name": "No Phone"}, headers=owner.headers)

        assert response.status_code == 422

    def test_search(self, client, db, owner):
        db.add_all(
            [
                Patient(clinic_id=owner.clinic_id, full_name="Amina Yusuf", phone="0711111111"),
                Patient(clinic_id=owner.clinic_id, full_name="Brian Otieno", phone="0722222222"),
            ]
        )
        db.commit()

        response = client.get("/patients", params={"search": "amina"}, headers=owner.headers)

        assert [p["full_name"] for p in response.json()] == ["Amina Yusuf"]

    def test_patients_are_clinic_scoped(self, client, db, owner):
        patient = Patient(clinic_id="other-clinic", full_name="Elsewhere", phone="0733333333")
        db.add(patient)
        db.commit()

        response = client.get(f"/patients/{patient.id}", headers=owner.headers)

        assert response.status_code == 404

    def test_only_admins_delete(self, client, db, owner):
        patient = Patient(clinic_id=owner.clinic_id, full_name="Amina Yusuf", phone="0711111111")
        db.add(patient)
        db.commit()
        nurse = add_member(db, owner.clinic_id, role="nurse")

        denied = client.delete(f"/patients/{patient.id}", headers=auth_headers(nurse.user_id, nurse.email))
        allowed = client.delete(f"/patients/{patient.id}", headers=owner.headers)

        assert denied.status_code == 403
        assert denied.json()["detail"] == "Only admins can delete patients"
        assert allowed.status_code == 200

    def test_export_csv(self, client, db, owner):
        db.add(Patient(clinic_id=owner.clinic_id, full_name="Amina Yusuf", phone="0711111111"))
        db.commit()

        response = client.get("/patients/export", headers=owner.headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "Amina Yusuf" in response.text

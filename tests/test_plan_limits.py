"""Plan limit enforcement for patients and team seats"""

from datetime import datetime, timedelta

import pytest
from conftest import add_member

from app.models import ClinicInvitation, Patient, Subscription
from app.plan_limits import PlanLimitExceeded, can_add_member, ensure_can_add_patient, exceeds_limit


def add_patients(db, clinic_id, count):
    for i in range(count):
        db.add(Patient(clinic_id=clinic_id, full_name=f"Patient {i}", phone=f"07000000{i:02d}"))
    db.commit()


def set_plan(db, clinic_id, plan):
    db.add(Subscription(clinic_id=clinic_id, plan=plan, status="active", external_subscription_id="sub_x"))
    db.commit()


def test_exceeds_limit():
    assert exceeds_limit(20, 20) is True
    assert exceeds_limit(19, 20) is False
    assert exceeds_limit(10_000, -1) is False


def test_starter_rejects_21st_patient(client, db, owner):
    add_patients(db, owner.clinic_id, 20)

    response = client.post(
        "/patients", json={"full_name": "One Too Many", "phone": "0712345678"}, headers=owner.headers
    )

    assert response.status_code == 403
    assert response.headers["X-Upgrade-Required"] == "true"
    body = response.json()
    assert body["upgrade_required"] is True
    assert body["limit"] == 20
    assert body["current"] == 20
    assert db.query(Patient).filter(Patient.clinic_id == owner.clinic_id).count() == 20


def test_starter_accepts_20th_patient(client, db, owner):
    add_patients(db, owner.clinic_id, 19)

    response = client.post(
        "/patients", json={"full_name": "Last Seat", "phone": "0712345678"}, headers=owner.headers
    )

    assert response.status_code == 201


def test_enterprise_is_unlimited(db, owner, catalog):
    set_plan(db, owner.clinic_id, "enterprise")
    add_patients(db, owner.clinic_id, 25)

    ensure_can_add_patient(db, owner.clinic_id, catalog)


def test_canceled_subscription_falls_back_to_starter_limits(db, owner, catalog):
    db.add(Subscription(clinic_id=owner.clinic_id, plan="starter", status="canceled"))
    db.commit()
    add_patients(db, owner.clinic_id, 20)

    with pytest.raises(PlanLimitExceeded):
        ensure_can_add_patient(db, owner.clinic_id, catalog)


def test_pending_invitations_take_team_seats(db, owner, catalog):
    set_plan(db, owner.clinic_id, "professional")
    add_member(db, owner.clinic_id)
    db.add(
        ClinicInvitation(
            clinic_id=owner.clinic_id,
            email="pending@test.com",
            token="tok-pending",
            status="pending",
            expires_at=datetime.utcnow() + timedelta(days=3),
        )
    )
    db.commit()

    assert can_add_member(db, owner.clinic_id, catalog) is False


def test_expired_invitations_free_their_seat(db, owner, catalog):
    set_plan(db, owner.clinic_id, "professional")
    add_member(db, owner.clinic_id)
    db.add(
        ClinicInvitation(
            clinic_id=owner.clinic_id,
            email="late@test.com",
            token="tok-expired",
            status="pending",
            expires_at=datetime.utcnow() - timedelta(days=1),
        )
    )
    db.commit()

    assert can_add_member(db, owner.clinic_id, catalog) is True

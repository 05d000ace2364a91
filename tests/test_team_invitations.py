"""Team invitations: create, email delivery, public lookup and acceptance"""

from datetime import datetime, timedelta

import pytest
from conftest import add_member, auth_headers

from app.domain.team import service as team_service
from app.email_service import EmailDeliveryError
from app.models import ClinicInvitation, ClinicMember, Subscription


@pytest.fixture
def professional(db, owner):
    db.add(
        Subscription(
            clinic_id=owner.clinic_id, plan="professional", status="active", external_subscription_id="sub_p"
        )
    )
    db.commit()
    return owner


def make_invitation(db, clinic_id, email="new@test.com", token="tok-123", status="pending", days=7):
    invitation = ClinicInvitation(
        clinic_id=clinic_id,
        email=email,
        role="doctor",
        token=token,
        status=status,
        expires_at=datetime.utcnow() + timedelta(days=days),
    )
    db.add(invitation)
    db.commit()
    return invitation


class TestInvite:
    def test_invite_creates_pending_invitation(self, client, db, professional):
        response = client.post(
            "/team/invitations", json={"email": "Doc@Test.com", "role": "doctor"}, headers=professional.headers
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        invitation = db.query(ClinicInvitation).filter(ClinicInvitation.id == body["invitation_id"]).one()
        assert invitation.email == "doc@test.com"
        assert invitation.status == "pending"
        assert invitation.expires_at > datetime.utcnow() + timedelta(days=6)

    def test_starter_cannot_invite(self, client, owner):
        response = client.post(
            "/team/invitations", json={"email": "doc@test.com", "role": "doctor"}, headers=owner.headers
        )

        assert response.status_code == 403
        assert response.json()["detail"] == "Member limit reached for your plan. Upgrade to invite more members."
        assert response.json()["upgrade_required"] is True

    def test_email_failure_keeps_invitation(self, client, db, professional, monkeypatch):
        async def failing_send(**kwargs):
            raise EmailDeliveryError("smtp down")

        monkeypatch.setattr(team_service, "send_invitation_email", failing_send)

        response = client.post(
            "/team/invitations", json={"email": "doc@test.com", "role": "doctor"}, headers=professional.headers
        )

        assert response.status_code == 207
        body = response.json()
        assert body["success"] is False
        assert body["invitation_created"] is True
        assert db.query(ClinicInvitation).filter(ClinicInvitation.id == body["invitation_id"]).count() == 1

    def test_duplicate_pending_invitation(self, client, db, professional):
        make_invitation(db, professional.clinic_id, email="doc@test.com")

        response = client.post(
            "/team/invitations", json={"email": "doc@test.com", "role": "doctor"}, headers=professional.headers
        )

        assert response.status_code == 400

    def test_only_admins_invite(self, client, db, professional):
        member = add_member(db, professional.clinic_id, role="nurse")

        response = client.post(
            "/team/invitations",
            json={"email": "doc@test.com", "role": "doctor"},
            headers=auth_headers(member.user_id, member.email),
        )

        assert response.status_code == 403

    def test_invalid_role(self, client, professional):
        response = client.post(
            "/team/invitations", json={"email": "doc@test.com", "role": "owner"}, headers=professional.headers
        )

        assert response.status_code == 422


class TestAccept:
    def test_public_lookup(self, client, db, owner):
        make_invitation(db, owner.clinic_id)

        response = client.get("/team/invite/tok-123")

        assert response.status_code == 200
        body = response.json()
        assert body["clinic_name"] == "Sunrise Clinic"
        assert body["role"] == "doctor"
        assert body["is_expired"] is False

    def test_accept_creates_membership(self, client, db, owner):
        make_invitation(db, owner.clinic_id)

        response = client.post(
            "/team/invite/accept", json={"token": "tok-123"}, headers=auth_headers("new-user", "new@test.com")
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "clinic_id": owner.clinic_id}
        member = db.query(ClinicMember).filter(ClinicMember.user_id == "new-user").one()
        assert member.role == "doctor"
        db.expire_all()
        invitation = db.query(ClinicInvitation).filter(ClinicInvitation.token == "tok-123").one()
        assert invitation.status == "accepted"
        assert invitation.accepted_by == "new-user"

    def test_token_is_single_use(self, client, db, owner):
        make_invitation(db, owner.clinic_id)
        headers = auth_headers("new-user", "new@test.com")
        client.post("/team/invite/accept", json={"token": "tok-123"}, headers=headers)

        response = client.post("/team/invite/accept", json={"token": "tok-123"}, headers=headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "Invitation has already been used"

    def test_expired_invitation(self, client, db, owner):
        make_invitation(db, owner.clinic_id, days=-1)

        response = client.post(
            "/team/invite/accept", json={"token": "tok-123"}, headers=auth_headers("new-user", "new@test.com")
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invitation has expired"
        db.expire_all()
        assert db.query(ClinicInvitation).filter(ClinicInvitation.token == "tok-123").one().status == "expired"
        assert db.query(ClinicMember).filter(ClinicMember.user_id == "new-user").count() == 0

    def test_revoked_invitation(self, client, db, owner):
        make_invitation(db, owner.clinic_id, status="revoked")

        response = client.post(
            "/team/invite/accept", json={"token": "tok-123"}, headers=auth_headers("new-user", "new@test.com")
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invitation has been revoked"

    def test_unknown_token(self, client):
        response = client.post(
            "/team/invite/accept", json={"token": "nope"}, headers=auth_headers("new-user", "new@test.com")
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid invitation"

    def test_accept_requires_sign_in(self, client, db, owner):
        make_invitation(db, owner.clinic_id)

        response = client.post("/team/invite/accept", json={"token": "tok-123"})

        assert response.status_code == 401


class TestMembers:
    def test_revoke_frees_seat(self, client, db, professional):
        invitation = make_invitation(db, professional.clinic_id)

        response = client.delete(f"/team/invitations/{invitation.id}", headers=professional.headers)

        assert response.status_code == 200
        db.expire_all()
        assert db.query(ClinicInvitation).filter(ClinicInvitation.id == invitation.id).one().status == "revoked"

    def test_owner_cannot_be_removed(self, client, db, owner):
        owner_member = db.query(ClinicMember).filter(ClinicMember.user_id == owner.user_id).one()

        response = client.delete(f"/team/members/{owner_member.id}", headers=owner.headers)

        assert response.status_code == 400

    def test_list_members(self, client, db, owner):
        add_member(db, owner.clinic_id, role="nurse")

        response = client.get("/team/members", headers=owner.headers)

        assert response.status_code == 200
        assert {m["role"] for m in response.json()} == {"owner", "nurse"}


class TestRoleChanges:
    def test_admin_changes_staff_role(self, client, db, owner):
        admin = add_member(db, owner.clinic_id, role="admin")
        nurse = add_member(db, owner.clinic_id, role="nurse")

        response = client.patch(
            f"/team/members/{nurse.id}", json={"role": "doctor"}, headers=auth_headers(admin.user_id, admin.email)
        )

        assert response.status_code == 200
        assert response.json()["role"] == "doctor"

    def test_admin_cannot_demote_another_admin(self, client, db, owner):
        admin = add_member(db, owner.clinic_id, role="admin")
        other_admin = add_member(db, owner.clinic_id, role="admin")

        response = client.patch(
            f"/team/members/{other_admin.id}",
            json={"role": "member"},
            headers=auth_headers(admin.user_id, admin.email),
        )

        assert response.status_code == 403
        db.expire_all()
        assert db.query(ClinicMember).filter(ClinicMember.id == other_admin.id).one().role == "admin"

    def test_admin_cannot_promote_to_admin(self, client, db, owner):
        admin = add_member(db, owner.clinic_id, role="admin")
        nurse = add_member(db, owner.clinic_id, role="nurse")

        response = client.patch(
            f"/team/members/{nurse.id}", json={"role": "admin"}, headers=auth_headers(admin.user_id, admin.email)
        )

        assert response.status_code == 403

    def test_owner_demotes_admin(self, client, db, owner):
        admin = add_member(db, owner.clinic_id, role="admin")

        response = client.patch(f"/team/members/{admin.id}", json={"role": "member"}, headers=owner.headers)

        assert response.status_code == 200
        assert response.json()["role"] == "member"

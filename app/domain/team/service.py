"""Team service - Invitations and membership"""

import logging
import secrets
from datetime import datetime, timedelta

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...auth import ADMIN_ROLES, AuthUser
from ...config import APP_URL, INVITE_EXPIRY_DAYS, INVITE_REQUIRE_EMAIL_MATCH
from ...email_service import EmailDeliveryError, send_invitation_email
from ...models import ClinicInvitation, ClinicMember
from ...plan_limits import ensure_can_add_member
from ..billing.plans import PlanCatalog
from .repository import TeamRepository
from .schemas import InvitationCreate

logger = logging.getLogger(__name__)

DEFAULT_CLINIC_NAME = "ZahiFlow"
EMAIL_FAILED_MESSAGE = "Invitation created but failed to send email. Please try resending."


def build_invite_link(token: str) -> str:
    return f"{APP_URL}/invite/accept?token={token}"


class TeamService:
    """Service layer for team management"""

    def __init__(self, db: Session, catalog: PlanCatalog):
        self.db = db
        self.catalog = catalog
        self.repo = TeamRepository()

    def list_members(self, clinic_id: str) -> list[ClinicMember]:
        return self.repo.get_members(self.db, clinic_id)

    def list_invitations(self, clinic_id: str) -> list[ClinicInvitation]:
        return self.repo.get_pending_invitations(self.db, clinic_id)

    async def _send(self, invitation: ClinicInvitation) -> bool:
        clinic = self.repo.get_clinic(self.db, invitation.clinic_id)
        clinic_name = clinic.name if clinic and clinic.name else DEFAULT_CLINIC_NAME
        try:
            await send_invitation_email(
                to=invitation.email,
                clinic_name=clinic_name,
                role=invitation.role,
                invite_link=build_invite_link(invitation.token),
            )
            return True
        except EmailDeliveryError as e:
            logger.error(f"❌ Failed to send invitation email to {invitation.email}: {e}")
            return False

    async def invite(self, data: InvitationCreate, membership: ClinicMember) -> dict:
        """
        Create an invitation and email its link.

        The invitation is kept when the email fails; the caller gets a
        partial-success result and can resend.
        """
        clinic_id = membership.clinic_id
        ensure_can_add_member(self.db, clinic_id, self.catalog)

        if self.repo.get_member_by_email(self.db, clinic_id, data.email):
            raise HTTPException(status_code=400, detail="This person is already a member of your clinic")
        if self.repo.get_pending_invitation_for_email(self.db, clinic_id, data.email):
            raise HTTPException(
                status_code=400, detail="An invitation is already pending for this email"
            )

        invitation = self.repo.create_invitation(
            self.db,
            ClinicInvitation(
                clinic_id=clinic_id,
                email=data.email,
                role=data.role,
                token=secrets.token_urlsafe(32),
                status="pending",
                expires_at=datetime.utcnow() + timedelta(days=INVITE_EXPIRY_DAYS),
                created_by=membership.user_id,
            ),
        )
        logger.info(f"✅ Invitation {invitation.id} created for {data.email} in clinic {clinic_id}")

        if not await self._send(invitation):
            return {
                "success": False,
                "invitation_created": True,
                "invitation_id": invitation.id,
                "error": EMAIL_FAILED_MESSAGE,
            }

        return {"success": True, "invitation_created": True, "invitation_id": invitation.id}

    async def resend(self, invitation_id: str, clinic_id: str) -> dict:
        """Re-send a pending invitation, extending its expiry"""
        invitation = self.repo.get_invitation(self.db, clinic_id, invitation_id)
        if not invitation:
            raise HTTPException(status_code=404, detail="Invitation not found")
        if invitation.status != "pending":
            raise HTTPException(status_code=400, detail="Only pending invitations can be resent")

        invitation.expires_at = datetime.utcnow() + timedelta(days=INVITE_EXPIRY_DAYS)
        self.db.commit()

        if not await self._send(invitation):
            raise HTTPException(status_code=502, detail="Failed to send invitation email")
        return {"success": True}

    def revoke(self, invitation_id: str, clinic_id: str) -> dict:
        invitation = self.repo.get_invitation(self.db, clinic_id, invitation_id)
        if not invitation:
            raise HTTPException(status_code=404, detail="Invitation not found")
        if invitation.status != "pending":
            raise HTTPException(status_code=400, detail="Only pending invitations can be revoked")

        invitation.status = "revoked"
        self.db.commit()
        logger.info(f"🚫 Invitation {invitation_id} revoked")
        return {"success": True}

    def get_invitation(self, token: str) -> dict:
        """Display metadata for the accept page; no authentication required"""
        invitation = self.repo.get_invitation_by_token(self.db, token)
        if not invitation:
            raise HTTPException(status_code=404, detail="Invitation not found")

        clinic = self.repo.get_clinic(self.db, invitation.clinic_id)
        is_expired = invitation.expires_at <= datetime.utcnow()
        return {
            "clinic_name": clinic.name if clinic else DEFAULT_CLINIC_NAME,
            "email": invitation.email,
            "role": invitation.role,
            "status": "expired" if invitation.status == "pending" and is_expired else invitation.status,
            "expires_at": invitation.expires_at,
            "is_expired": is_expired,
        }

    def accept(self, token: str, user: AuthUser) -> dict:
        """
        Consume an invitation: validate it and create the membership in one transaction.
        """
        invitation = self.repo.get_invitation_by_token(self.db, token, for_update=True)
        if not invitation:
            raise HTTPException(status_code=400, detail="Invalid invitation")

        if invitation.status == "accepted":
            raise HTTPException(status_code=400, detail="Invitation has already been used")
        if invitation.status == "revoked":
            raise HTTPException(status_code=400, detail="Invitation has been revoked")
        if invitation.status == "expired" or invitation.expires_at <= datetime.utcnow():
            if invitation.status != "expired":
                invitation.status = "expired"
                self.db.commit()
            raise HTTPException(status_code=400, detail="Invitation has expired")

        if INVITE_REQUIRE_EMAIL_MATCH and (user.email or "").lower() != invitation.email.lower():
            logger.warning(f"🚫 User {user.id} tried to accept invitation sent to {invitation.email}")
            raise HTTPException(
                status_code=403, detail="This invitation was sent to a different email address"
            )

        member = self.repo.get_member_by_user(self.db, invitation.clinic_id, user.id)
        if member is None:
            self.db.add(
                ClinicMember(
                    clinic_id=invitation.clinic_id,
                    user_id=user.id,
                    email=user.email,
                    full_name=user.full_name or None,
                    role=invitation.role,
                )
            )

        invitation.status = "accepted"
        invitation.accepted_by = user.id
        invitation.accepted_at = datetime.utcnow()

        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to accept invitation {invitation.id}: {e}")
            raise HTTPException(status_code=409, detail="Invitation could not be accepted, please retry") from e

        logger.info(f"✅ User {user.id} joined clinic {invitation.clinic_id} as {invitation.role}")
        return {"success": True, "clinic_id": invitation.clinic_id}

    def update_member_role(self, member_id: str, role: str, membership: ClinicMember) -> ClinicMember:
        """Admins manage staff roles; granting or revoking admin is reserved to the owner"""
        member = self.repo.get_member(self.db, membership.clinic_id, member_id)
        if not member:
            raise HTTPException(status_code=404, detail="Member not found")
        if member.role == "owner":
            raise HTTPException(status_code=400, detail="The clinic owner's role cannot be changed")
        if (member.role in ADMIN_ROLES or role in ADMIN_ROLES) and membership.role != "owner":
            logger.warning(
                f"⚠️ User {membership.user_id} ({membership.role}) tried to change admin role of member {member_id}"
            )
            raise HTTPException(status_code=403, detail="Only the owner can grant or change an admin role")

        member.role = role
        self.db.commit()
        self.db.refresh(member)
        return member

    def remove_member(self, member_id: str, membership: ClinicMember) -> dict:
        member = self.repo.get_member(self.db, membership.clinic_id, member_id)
        if not member:
            raise HTTPException(status_code=404, detail="Member not found")
        if member.role == "owner":
            raise HTTPException(status_code=400, detail="The clinic owner cannot be removed")
        if member.user_id == membership.user_id:
            raise HTTPException(status_code=400, detail="You cannot remove yourself")
        if member.role in ADMIN_ROLES and membership.role != "owner":
            raise HTTPException(status_code=403, detail="Only the owner can remove an admin")

        self.db.delete(member)
        self.db.commit()
        return {"message": "Member removed"}

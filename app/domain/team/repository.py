"""Team repository - Database operations for members and invitations"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Clinic, ClinicInvitation, ClinicMember


class TeamRepository:
    """Repository for team database operations"""

    @staticmethod
    def get_clinic(db: Session, clinic_id: str) -> Optional[Clinic]:
        return db.query(Clinic).filter(Clinic.id == clinic_id).first()

    @staticmethod
    def get_members(db: Session, clinic_id: str) -> list[ClinicMember]:
        return (
            db.query(ClinicMember)
            .filter(ClinicMember.clinic_id == clinic_id)
            .order_by(ClinicMember.created_at.asc())
            .all()
        )

    @staticmethod
    def get_member(db: Session, clinic_id: str, member_id: str) -> Optional[ClinicMember]:
        return (
            db.query(ClinicMember)
            .filter(ClinicMember.clinic_id == clinic_id, ClinicMember.id == member_id)
            .first()
        )

    @staticmethod
    def get_member_by_user(db: Session, clinic_id: str, user_id: str) -> Optional[ClinicMember]:
        return (
            db.query(ClinicMember)
            .filter(ClinicMember.clinic_id == clinic_id, ClinicMember.user_id == user_id)
            .first()
        )

    @staticmethod
    def get_member_by_email(db: Session, clinic_id: str, email: str) -> Optional[ClinicMember]:
        return (
            db.query(ClinicMember)
            .filter(
                ClinicMember.clinic_id == clinic_id,
                func.lower(ClinicMember.email) == email.lower(),
            )
            .first()
        )

    @staticmethod
    def get_pending_invitations(db: Session, clinic_id: str) -> list[ClinicInvitation]:
        return (
            db.query(ClinicInvitation)
            .filter(
                ClinicInvitation.clinic_id == clinic_id,
                ClinicInvitation.status == "pending",
                ClinicInvitation.expires_at > datetime.utcnow(),
            )
            .order_by(ClinicInvitation.created_at.desc())
            .all()
        )

    @staticmethod
    def get_pending_invitation_for_email(
        db: Session, clinic_id: str, email: str
    ) -> Optional[ClinicInvitation]:
        return (
            db.query(ClinicInvitation)
            .filter(
                ClinicInvitation.clinic_id == clinic_id,
                func.lower(ClinicInvitation.email) == email.lower(),
                ClinicInvitation.status == "pending",
                ClinicInvitation.expires_at > datetime.utcnow(),
            )
            .first()
        )

    @staticmethod
    def get_invitation(db: Session, clinic_id: str, invitation_id: str) -> Optional[ClinicInvitation]:
        return (
            db.query(ClinicInvitation)
            .filter(ClinicInvitation.clinic_id == clinic_id, ClinicInvitation.id == invitation_id)
            .first()
        )

    @staticmethod
    def get_invitation_by_token(
        db: Session, token: str, for_update: bool = False
    ) -> Optional[ClinicInvitation]:
        query = db.query(ClinicInvitation).filter(ClinicInvitation.token == token)
        if for_update:
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def create_invitation(db: Session, invitation: ClinicInvitation) -> ClinicInvitation:
        db.add(invitation)
        db.commit()
        db.refresh(invitation)
        return invitation

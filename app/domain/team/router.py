"""Team router - members and invitation endpoints"""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ...auth import AuthUser, get_clinic_admin, get_current_membership, get_current_user
from ...database import get_db
from ...models import ClinicMember
from ...rate_limiter import rate_limit_invitations
from ..billing.plans import PlanCatalog, get_plan_catalog
from .schemas import (
    InvitationAccept,
    InvitationCreate,
    InvitationDetails,
    InvitationResponse,
    MemberResponse,
    MemberRoleUpdate,
)
from .service import TeamService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/team", tags=["Team"])


def get_team_service(
    db: Session = Depends(get_db), catalog: PlanCatalog = Depends(get_plan_catalog)
) -> TeamService:
    """Dependency injection for TeamService"""
    return TeamService(db, catalog)


@router.get("/members", response_model=list[MemberResponse])
async def list_members(
    membership: ClinicMember = Depends(get_current_membership),
    service: TeamService = Depends(get_team_service),
):
    return service.list_members(membership.clinic_id)


@router.patch("/members/{member_id}", response_model=MemberResponse)
async def update_member_role(
    member_id: str,
    body: MemberRoleUpdate,
    membership: ClinicMember = Depends(get_clinic_admin),
    service: TeamService = Depends(get_team_service),
):
    return service.update_member_role(member_id, body.role, membership)


@router.delete("/members/{member_id}")
async def remove_member(
    member_id: str,
    membership: ClinicMember = Depends(get_clinic_admin),
    service: TeamService = Depends(get_team_service),
):
    return service.remove_member(member_id, membership)


# ============================================================================
# INVITATIONS
# ============================================================================


@router.get("/invitations", response_model=list[InvitationResponse])
async def list_invitations(
    membership: ClinicMember = Depends(get_clinic_admin),
    service: TeamService = Depends(get_team_service),
):
    """Pending, unexpired invitations"""
    return service.list_invitations(membership.clinic_id)


@router.post("/invitations", status_code=201)
async def invite_member(
    body: InvitationCreate,
    response: Response,
    membership: ClinicMember = Depends(get_clinic_admin),
    service: TeamService = Depends(get_team_service),
    _: None = Depends(rate_limit_invitations),
):
    """Invite someone to the clinic by email"""
    result = await service.invite(body, membership)
    if not result["success"]:
        # Invitation stored, email not delivered
        response.status_code = 207
    return result


@router.post("/invitations/{invitation_id}/resend")
async def resend_invitation(
    invitation_id: str,
    membership: ClinicMember = Depends(get_clinic_admin),
    service: TeamService = Depends(get_team_service),
    _: None = Depends(rate_limit_invitations),
):
    return await service.resend(invitation_id, membership.clinic_id)


@router.delete("/invitations/{invitation_id}")
async def revoke_invitation(
    invitation_id: str,
    membership: ClinicMember = Depends(get_clinic_admin),
    service: TeamService = Depends(get_team_service),
):
    return service.revoke(invitation_id, membership.clinic_id)


@router.get("/invite/{token}", response_model=InvitationDetails)
async def get_invitation(token: str, service: TeamService = Depends(get_team_service)):
    """Public lookup used by the accept page before the user signs in"""
    return service.get_invitation(token)


@router.post("/invite/accept")
async def accept_invitation(
    body: InvitationAccept,
    user: AuthUser = Depends(get_current_user),
    service: TeamService = Depends(get_team_service),
):
    return service.accept(body.token, user)

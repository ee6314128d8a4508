"""
Club Management Router

Club membership and invitation API
- clubs: create, list, lookup by subdomain, update, roster
- invites: single, bulk, confirm, onboarding
- self-service join

Every response uses the {success, data | error} envelope.
"""
from fastapi import APIRouter, Depends

from app.auth.models import AuthUser
from app.envelope import success_response

from .dependencies import get_current_user, get_membership_service
from .models import (
    BulkInviteRequest,
    ClubCreate,
    ClubUpdate,
    ConfirmInviteRequest,
    InviteRequest,
    JoinClubRequest,
    OnboardingRequest,
)
from .service import MembershipService

router = APIRouter(prefix="/clubs", tags=["Clubs"])


# =============================================
# Clubs
# =============================================

@router.post("")
async def create_club(
    body: ClubCreate,
    user: AuthUser = Depends(get_current_user),
    service: MembershipService = Depends(get_membership_service),
):
    """
    Create a club

    The caller becomes its owner, its first active member and an admin.
    """
    club = await service.create_club(user, body.model_dump())
    return success_response(club, status_code=201)


@router.get("")
async def list_my_clubs(
    user: AuthUser = Depends(get_current_user),
    service: MembershipService = Depends(get_membership_service),
):
    """Clubs the caller belongs to"""
    return success_response(await service.list_my_clubs(user))


# =============================================
# Invites
# =============================================

@router.post("/invite")
async def invite_member(
    body: InviteRequest,
    user: AuthUser = Depends(get_current_user),
    service: MembershipService = Depends(get_membership_service),
):
    """Invite one person (club owner only)"""
    member = await service.invite_member(
        user,
        body.club_id,
        body.email,
        body.first_name,
        body.last_name,
        body.member_type,
    )
    return success_response(member, status_code=201)


@router.post("/bulk-invite")
async def bulk_invite(
    body: BulkInviteRequest,
    user: AuthUser = Depends(get_current_user),
    service: MembershipService = Depends(get_membership_service),
):
    """
    Invite several people at once

    Entries succeed or fail independently; the response lists both.
    """
    result = await service.bulk_invite(
        user,
        body.club_id,
        [entry.model_dump() for entry in body.members],
    )
    return success_response(result.model_dump(), status_code=201)


@router.post("/confirm-invite")
async def confirm_invite(
    body: ConfirmInviteRequest,
    user: AuthUser = Depends(get_current_user),
    service: MembershipService = Depends(get_membership_service),
):
    member = await service.confirm_invite(user, body.token)
    return success_response(member)


@router.post("/onboarding")
async def onboarding(
    body: OnboardingRequest,
    user: AuthUser = Depends(get_current_user),
    service: MembershipService = Depends(get_membership_service),
):
    """Confirm an invite and fill in the member profile"""
    profile = body.model_dump(exclude={"invite_token"})
    member = await service.onboard_and_confirm(user, body.invite_token, profile)
    return success_response(member)


@router.post("/join")
async def join_club(
    body: JoinClubRequest,
    user: AuthUser = Depends(get_current_user),
    service: MembershipService = Depends(get_membership_service),
):
    member = await service.join_club(user, body.club_id, body.member_type)
    return success_response(member, status_code=201)


# =============================================
# Club by id / subdomain
# =============================================

@router.get("/{club_id:int}/members")
async def list_club_members(
    club_id: int,
    user: AuthUser = Depends(get_current_user),
    service: MembershipService = Depends(get_membership_service),
):
    """Member roster (owner or active member)"""
    return success_response(await service.list_club_members(user, club_id))


@router.put("/{club_id:int}")
async def update_club(
    club_id: int,
    body: ClubUpdate,
    user: AuthUser = Depends(get_current_user),
    service: MembershipService = Depends(get_membership_service),
):
    """Update club details (owner only)"""
    club = await service.update_club(user, club_id, body.model_dump(exclude_none=True))
    return success_response(club)


@router.get("/{subdomain}")
async def get_club_by_subdomain(
    subdomain: str,
    user: AuthUser = Depends(get_current_user),
    service: MembershipService = Depends(get_membership_service),
):
    """Club by subdomain (owner or active member)"""
    return success_response(await service.get_club_by_subdomain(user, subdomain))

"""Family, onboarding and people API endpoints."""

from fastapi import APIRouter, Depends
from sqlmodel import Session

from familyhub.api.deps import get_current_user, require_family
from familyhub.database import get_session
from familyhub.errors import NotFound
from familyhub.models.user import Family, Profile
from familyhub.schemas.family import (
    AcceptInviteRequest,
    CreateFamilyRequest,
    FamilyIdResponse,
    FamilyMemberResponse,
    MemberProfileResponse,
    OnboardingInviteResponse,
    PeopleDataResponse,
    PendingInviteResponse,
)
from familyhub.services.context import RequestContext
from familyhub.services.family_service import create_family, list_active_members
from familyhub.services.invite_service import (
    list_invites_for_email,
    list_pending_invites,
    redeem_invite_by_code,
    redeem_invite_by_id,
)
from familyhub.utils.dates import to_iso

router = APIRouter(tags=["family"])


# --- Onboarding ---

@router.post("/onboarding/create-family", response_model=FamilyIdResponse)
def onboarding_create_family(
    request: CreateFamilyRequest,
    user: Profile = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Create a new family; the caller becomes its admin."""
    family = create_family(session, user.id, request.name)
    return FamilyIdResponse(family_id=family.id)


@router.post("/onboarding/accept-invite", response_model=FamilyIdResponse)
def onboarding_accept_invite(
    request: AcceptInviteRequest,
    user: Profile = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Join a family with an invite id or a hand-typed code."""
    if request.invite_id:
        family_id = redeem_invite_by_id(session, user.id, request.invite_id)
    else:
        family_id = redeem_invite_by_code(session, user.id, request.code)
    return FamilyIdResponse(family_id=family_id)


@router.get("/onboarding/invites", response_model=list[OnboardingInviteResponse])
def onboarding_invites(
    user: Profile = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Pending invites addressed to the caller's email."""
    return [
        OnboardingInviteResponse(
            id=invite.id,
            family_id=family.id,
            family_name=family.name,
            family_slug=family.slug,
            email=invite.email,
            expires_at=to_iso(invite.expires_at),
            created_at=to_iso(invite.created_at) or "",
        )
        for invite, family in list_invites_for_email(session, user.email)
    ]


# --- People ---

@router.get("/people/data", response_model=PeopleDataResponse)
def people_data(
    ctx: RequestContext = Depends(require_family),
    session: Session = Depends(get_session),
):
    """Family name, active members and (for admins) pending invites."""
    family = session.get(Family, ctx.family_id)
    if not family:
        raise NotFound("Family not found")

    members = [
        FamilyMemberResponse(
            user_id=m.user_id,
            role=m.role,
            status=m.status,
            display_name=p.display_name or p.email,
            email=p.email,
            avatar_url=p.avatar_url,
            created_at=to_iso(m.created_at) or "",
        )
        for m, p in list_active_members(session, family.id)
    ]

    pending = []
    if ctx.is_admin:
        pending = [
            PendingInviteResponse(
                id=inv.id,
                code=inv.code,
                email=inv.email,
                status=inv.status,
                expires_at=to_iso(inv.expires_at),
                created_at=to_iso(inv.created_at) or "",
            )
            for inv in list_pending_invites(session, family.id)
        ]

    return PeopleDataResponse(
        family_name=family.name,
        family_members=members,
        pending_invites=pending,
        active_family_id=family.id,
        user_id=ctx.user_id,
    )


@router.get("/family/members", response_model=list[MemberProfileResponse])
def family_members(
    ctx: RequestContext = Depends(require_family),
    session: Session = Depends(get_session),
):
    """Active members of the caller's family, excluding the caller."""
    return [
        MemberProfileResponse(
            id=p.id,
            email=p.email,
            full_name=p.full_name,
            display_name=p.display_name or p.email,
            avatar_url=p.avatar_url,
        )
        for _, p in list_active_members(session, ctx.family_id)
        if p.id != ctx.user_id
    ]

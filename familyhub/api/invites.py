"""Family invite API endpoints: issue and revoke (admin only)."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from familyhub.api.deps import require_admin
from familyhub.database import get_session
from familyhub.schemas.family import (
    InviteCreateRequest,
    InviteCreateResponse,
    InviteRevokeRequest,
    OkResponse,
)
from familyhub.services.context import RequestContext
from familyhub.services.invite_service import issue_invite, revoke_invite

router = APIRouter(prefix="/invites", tags=["invites"])


@router.post("/create", response_model=InviteCreateResponse)
def create_invite(
    request: Optional[InviteCreateRequest] = None,
    ctx: RequestContext = Depends(require_admin),
    session: Session = Depends(get_session),
):
    """Create an invite code for the active family. Sharing it is up to the caller."""
    issued = issue_invite(session, ctx, email=request.email if request else None)
    return InviteCreateResponse(code=issued.code, url=issued.url)


@router.post("/revoke", response_model=OkResponse)
def revoke(
    request: InviteRevokeRequest,
    ctx: RequestContext = Depends(require_admin),
    session: Session = Depends(get_session),
):
    """Revoke a pending invite of the active family."""
    revoke_invite(session, ctx, request.invite_id)
    return OkResponse()

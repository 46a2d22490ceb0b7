"""Common API dependencies: current user extraction, request context, role checks."""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from familyhub.database import get_session
from familyhub.errors import Unauthorized
from familyhub.models.user import Profile
from familyhub.services.context import RequestContext
from familyhub.services.family_service import get_member_role
from familyhub.utils.security import decode_token

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> Profile:
    """Extract and validate a confirmed user from the JWT access token."""
    if credentials is None:
        raise Unauthorized()

    try:
        payload = decode_token(credentials.credentials)
    except Exception:
        raise Unauthorized("Invalid or expired token")

    if payload.get("type") != "access":
        raise Unauthorized("Invalid token type")

    user = session.get(Profile, payload.get("sub"))
    if not user or user.email_confirmed_at is None:
        raise Unauthorized()
    return user


def get_request_context(
    user: Profile = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> RequestContext:
    """Resolve the caller's active family and role once per request."""
    family_id = user.active_family_id
    role = get_member_role(session, family_id, user.id) if family_id else None
    if family_id and role is None:
        # Pointer to a family the user is no longer an active member of
        family_id = None
    return RequestContext(user_id=user.id, email=user.email, family_id=family_id, role=role)


def require_family(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
    """Require the caller to have an active family."""
    ctx.require_family()
    return ctx


def require_admin(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
    """Require the caller to be an admin of their active family."""
    ctx.require_admin()
    return ctx

"""Account business logic: signup, email confirmation, login and token refresh.

Email delivery is outside this service; the confirmation link is logged
instead of sent.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from familyhub.config import settings
from familyhub.errors import FamilyHubError, InvalidRequest, Unauthorized
from familyhub.models.user import Profile
from familyhub.services.invite_service import normalize_code, redeem_invite_by_code
from familyhub.utils.security import (
    create_access_token,
    create_confirmation_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)


def _display_name_from_email(email: str) -> str:
    """'jane.doe@example.com' -> 'Jane Doe'."""
    local = email.split("@", 1)[0]
    return " ".join(part.capitalize() for part in local.replace("_", " ").replace(".", " ").split()) or "User"


def signup(
    email: str,
    password: str,
    full_name: Optional[str],
    invite_code: Optional[str],
    session: Session,
) -> Profile:
    """Create an unconfirmed account and emit its confirmation link."""
    email = email.strip().lower()
    existing = session.exec(select(Profile).where(Profile.email == email)).first()
    if existing:
        raise InvalidRequest("An account with this email already exists")

    profile = Profile(
        email=email,
        password_hash=hash_password(password),
        full_name=full_name.strip() if full_name else None,
        display_name=(full_name.strip() if full_name else None) or _display_name_from_email(email),
        pending_invite_code=normalize_code(invite_code) if invite_code else None,
    )
    try:
        session.add(profile)
        session.commit()
        session.refresh(profile)
    except IntegrityError as e:
        session.rollback()
        raise InvalidRequest("An account with this email already exists") from e

    token = create_confirmation_token(profile.id, profile.email)
    logger.info(
        "Confirmation link for %s: %s/auth/confirm?token=%s",
        profile.email,
        settings.app_url.rstrip("/"),
        token,
    )
    return profile


def confirm_email(token: str, session: Session) -> tuple[Profile, Optional[str]]:
    """Mark the account confirmed and redeem the invite code given at signup.

    The redemption is best effort: a stale code leaves the user without a
    family (they can still join or create one during onboarding).
    Returns the profile and the family joined, if any.
    """
    try:
        payload = decode_token(token)
    except Exception:
        raise InvalidRequest("Invalid or expired confirmation link")

    if payload.get("type") != "confirm":
        raise InvalidRequest("Invalid or expired confirmation link")

    profile = session.get(Profile, payload.get("sub"))
    if not profile or profile.email != payload.get("email"):
        raise InvalidRequest("Invalid or expired confirmation link")

    if profile.email_confirmed_at is None:
        profile.email_confirmed_at = datetime.now(timezone.utc)
        session.add(profile)
        session.commit()
        session.refresh(profile)

    family_id = None
    code = profile.pending_invite_code
    if code:
        try:
            family_id = redeem_invite_by_code(session, profile.id, code)
        except FamilyHubError as e:
            logger.warning("Signup invite for %s not redeemed: %s", profile.id, e.message)
        profile.pending_invite_code = None
        session.add(profile)
        session.commit()
        session.refresh(profile)

    return profile, family_id


def login(email: str, password: str, session: Session) -> dict:
    """Verify credentials and issue tokens."""
    profile = session.exec(select(Profile).where(Profile.email == email.strip().lower())).first()
    if not profile or not verify_password(password, profile.password_hash):
        raise Unauthorized("Invalid email or password")
    if profile.email_confirmed_at is None:
        raise Unauthorized("Email not confirmed")

    return {
        "user_id": profile.id,
        "access_token": create_access_token(profile.id),
        "refresh_token": create_refresh_token(profile.id),
        "token_type": "bearer",
    }


def refresh_access_token(refresh_token: str, session: Session) -> str:
    """Validate refresh token and issue new access token."""
    try:
        payload = decode_token(refresh_token)
    except Exception:
        raise Unauthorized("Invalid or expired refresh token")

    if payload.get("type") != "refresh":
        raise Unauthorized("Invalid token type")

    profile = session.get(Profile, payload.get("sub"))
    if not profile or profile.email_confirmed_at is None:
        raise Unauthorized("User not found")

    return create_access_token(profile.id)


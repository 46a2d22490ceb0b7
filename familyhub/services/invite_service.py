"""Family invite issuance, redemption and revocation.

An invite is a short code, unique among the *pending* invites of one family,
that grants membership when redeemed. Every invite ends in exactly one
terminal state (accepted or revoked) and is immutable afterwards.

Collision checking at issuance is advisory: two concurrent issuers can pass
the check with the same code. Redemption closes its own race with a
conditional update on ``status``, so two redeemers can never both win.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from familyhub.config import settings
from familyhub.errors import (
    CodeGenerationExhausted,
    InvalidOrExpiredInvite,
    NotFoundOrAlreadyProcessed,
    PersistenceFailure,
)
from familyhub.models.invite import FamilyInvite
from familyhub.models.membership import FamilyMember
from familyhub.models.user import Family, Profile
from familyhub.services.context import RequestContext

logger = logging.getLogger(__name__)

_invites = FamilyInvite.__table__
_members = FamilyMember.__table__
_profiles = Profile.__table__


@dataclass
class IssuedInvite:
    invite: FamilyInvite
    code: str
    url: str


# --- Codes ---

def generate_invite_code(length: Optional[int] = None, alphabet: Optional[str] = None) -> str:
    """Random human-typable code, e.g. 'K7Q2ZD'."""
    length = length or settings.invite_code_length
    alphabet = alphabet or settings.invite_code_alphabet
    return "".join(secrets.choice(alphabet) for _ in range(length))


def normalize_code(code: str) -> str:
    """Codes are typed by hand; lookups are case-insensitive."""
    return code.strip().upper()


def is_code_available(session: Session, family_id: str, code: str) -> bool:
    """True if no *pending* invite of this family already uses ``code``."""
    existing = session.exec(
        select(FamilyInvite.id).where(
            FamilyInvite.family_id == family_id,
            FamilyInvite.code == code,
            FamilyInvite.status == "pending",
        )
    ).first()
    return existing is None


def generate_unique_code(session: Session, family_id: str) -> str:
    """Generate a code not pending in the family, within a bounded number of attempts."""
    for attempt in range(1, settings.invite_code_max_attempts + 1):
        code = generate_invite_code()
        if is_code_available(session, family_id, code):
            return code
        logger.debug("Invite code collision in family %s (attempt %d)", family_id, attempt)

    logger.warning(
        "Invite code generation exhausted for family %s after %d attempts",
        family_id,
        settings.invite_code_max_attempts,
    )
    raise CodeGenerationExhausted()


def build_invite_url(code: str) -> str:
    return f"{settings.app_url.rstrip('/')}/signup?code={code}"


# --- Issuance ---

def issue_invite(session: Session, ctx: RequestContext, email: Optional[str] = None) -> IssuedInvite:
    """Create a pending invite for the caller's active family. Admin only."""
    family_id = ctx.require_admin()

    code = generate_unique_code(session, family_id)
    now = datetime.now(timezone.utc)
    invite = FamilyInvite(
        family_id=family_id,
        code=code,
        email=email.strip().lower() if email else None,
        status="pending",
        invited_by=ctx.user_id,
        expires_at=now + timedelta(days=settings.invite_expire_days),
        created_at=now,
    )
    try:
        session.add(invite)
        session.commit()
        session.refresh(invite)
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to store invite for family %s: %s", family_id, e)
        raise PersistenceFailure() from e

    logger.info("Invite %s issued for family %s by %s", invite.id, family_id, ctx.user_id)
    return IssuedInvite(invite=invite, code=code, url=build_invite_url(code))


# --- Redemption ---

def upsert_membership(
    session: Session,
    family_id: str,
    user_id: str,
    role: str = "member",
    now: Optional[datetime] = None,
) -> None:
    """Insert an active membership, or reactivate the existing row for the pair.

    ``role`` applies to new rows only. On conflict the role column is not
    overwritten (a plain upsert would reset it to ``role``), so redeeming an
    invite never demotes an admin.
    """
    now = now or datetime.now(timezone.utc)
    stmt = sqlite_insert(_members).values(
        family_id=family_id,
        user_id=user_id,
        role=role,
        status="active",
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[_members.c.family_id, _members.c.user_id],
        set_={"status": "active", "updated_at": now},
    )
    session.connection().execute(stmt)


def set_active_family(session: Session, user_id: str, family_id: str, now: Optional[datetime] = None) -> None:
    """Point the user's profile at ``family_id`` inside the current transaction."""
    session.connection().execute(
        update(_profiles)
        .where(_profiles.c.id == user_id)
        .values(active_family_id=family_id, updated_at=now or datetime.now(timezone.utc))
    )


def _accept(session: Session, invite: FamilyInvite, user_id: str, now: datetime) -> bool:
    """Accept ``invite`` for ``user_id`` inside the current transaction.

    Returns False if the invite left the pending state (or expired) since it
    was read; nothing is written in that case.
    """
    result = session.connection().execute(
        update(_invites)
        .where(
            _invites.c.id == invite.id,
            _invites.c.status == "pending",
            _invites.c.expires_at > now,
        )
        .values(status="accepted", accepted_by=user_id, accepted_at=now)
    )
    if result.rowcount != 1:
        return False

    upsert_membership(session, invite.family_id, user_id, role="member", now=now)
    set_active_family(session, user_id, invite.family_id, now)
    return True


def _redeem(session: Session, invite: Optional[FamilyInvite], user_id: str, now: datetime, error: str) -> str:
    if invite is None:
        raise InvalidOrExpiredInvite(error)

    invite_id, family_id = invite.id, invite.family_id
    try:
        accepted = _accept(session, invite, user_id, now)
        if not accepted:
            session.rollback()
            raise InvalidOrExpiredInvite(error)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to redeem invite %s for %s: %s", invite_id, user_id, e)
        raise PersistenceFailure() from e

    logger.info("Invite %s accepted by %s (family %s)", invite_id, user_id, family_id)
    return family_id


def redeem_invite_by_id(session: Session, user_id: str, invite_id: str) -> str:
    """Redeem an invite the caller already holds a reference to. Returns the family id."""
    now = datetime.now(timezone.utc)
    invite = session.exec(
        select(FamilyInvite).where(
            FamilyInvite.id == invite_id,
            FamilyInvite.status == "pending",
            FamilyInvite.expires_at > now,
        )
    ).first()
    return _redeem(session, invite, user_id, now, "Invalid or expired invitation")


def redeem_invite_by_code(session: Session, user_id: str, code: str) -> str:
    """Redeem a hand-typed code. Returns the family id.

    Lookup, status swap, membership upsert and profile update run in one
    transaction. Wrong, expired, revoked and used codes fail identically.
    """
    now = datetime.now(timezone.utc)
    # Codes are only unique per family; the newest pending invite wins.
    invite = session.exec(
        select(FamilyInvite)
        .where(
            FamilyInvite.code == normalize_code(code),
            FamilyInvite.status == "pending",
            FamilyInvite.expires_at > now,
        )
        .order_by(FamilyInvite.created_at.desc())
    ).first()
    return _redeem(session, invite, user_id, now, "Invalid or expired code")


# --- Revocation ---

def revoke_invite(session: Session, ctx: RequestContext, invite_id: str) -> None:
    """Revoke a pending invite of the caller's family. Admin only."""
    family_id = ctx.require_admin()
    now = datetime.now(timezone.utc)
    try:
        result = session.connection().execute(
            update(_invites)
            .where(
                _invites.c.id == invite_id,
                _invites.c.family_id == family_id,
                _invites.c.status == "pending",
            )
            .values(status="revoked", revoked_at=now)
        )
        if result.rowcount == 0:
            session.rollback()
            raise NotFoundOrAlreadyProcessed()
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to revoke invite %s: %s", invite_id, e)
        raise PersistenceFailure() from e

    logger.info("Invite %s revoked by %s", invite_id, ctx.user_id)


# --- Queries ---

def list_pending_invites(session: Session, family_id: str) -> list[FamilyInvite]:
    return list(
        session.exec(
            select(FamilyInvite)
            .where(FamilyInvite.family_id == family_id, FamilyInvite.status == "pending")
            .order_by(FamilyInvite.created_at.desc())
        ).all()
    )


def list_invites_for_email(session: Session, email: str) -> list[tuple[FamilyInvite, Family]]:
    """Pending, unexpired invites addressed to ``email``, with their family."""
    now = datetime.now(timezone.utc)
    rows = session.exec(
        select(FamilyInvite, Family)
        .join(Family, Family.id == FamilyInvite.family_id)
        .where(
            FamilyInvite.email == email.strip().lower(),
            FamilyInvite.status == "pending",
            FamilyInvite.expires_at > now,
        )
        .order_by(FamilyInvite.created_at.desc())
    ).all()
    return list(rows)

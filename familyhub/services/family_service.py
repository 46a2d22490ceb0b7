"""Family creation and membership queries."""

import logging
import secrets
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from familyhub.errors import InvalidRequest, PersistenceFailure
from familyhub.models.membership import FamilyMember
from familyhub.models.user import Family, Profile
from familyhub.services.invite_service import set_active_family, upsert_membership
from familyhub.utils.slug import slugify

logger = logging.getLogger(__name__)


def create_family(session: Session, user_id: str, name: str) -> Family:
    """Create a family with the caller as its admin and make it their active family."""
    name = name.strip()
    slug = slugify(name) or f"family-{secrets.token_hex(3)}"

    existing = session.exec(select(Family.id).where(Family.slug == slug)).first()
    if existing:
        raise InvalidRequest("A family with this name already exists")

    now = datetime.now(timezone.utc)
    family = Family(name=name, slug=slug, created_by=user_id, created_at=now)
    try:
        session.add(family)
        session.flush()
        upsert_membership(session, family.id, user_id, role="admin", now=now)
        set_active_family(session, user_id, family.id, now)
        session.commit()
        session.refresh(family)
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to create family %r: %s", name, e)
        raise PersistenceFailure("Failed to create family") from e

    logger.info("Family %s (%s) created by %s", family.id, slug, user_id)
    return family


def get_member_role(session: Session, family_id: str, user_id: str) -> str | None:
    """Role of the user's *active* membership in the family, if any."""
    return session.exec(
        select(FamilyMember.role).where(
            FamilyMember.family_id == family_id,
            FamilyMember.user_id == user_id,
            FamilyMember.status == "active",
        )
    ).first()


def list_active_members(session: Session, family_id: str) -> list[tuple[FamilyMember, Profile]]:
    rows = session.exec(
        select(FamilyMember, Profile)
        .join(Profile, Profile.id == FamilyMember.user_id)
        .where(FamilyMember.family_id == family_id, FamilyMember.status == "active")
        .order_by(FamilyMember.created_at)
    ).all()
    return list(rows)


def active_member_ids(session: Session, family_id: str, user_ids: list[str]) -> set[str]:
    """The subset of ``user_ids`` that are active members of the family."""
    if not user_ids:
        return set()
    found = session.exec(
        select(FamilyMember.user_id).where(
            FamilyMember.family_id == family_id,
            FamilyMember.status == "active",
            FamilyMember.user_id.in_(user_ids),  # type: ignore
        )
    ).all()
    return set(found)

"""Event API endpoints: create, list, RSVP, member invitations and updates."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import Session, select

from familyhub.api.deps import require_family
from familyhub.database import get_session
from familyhub.models.event import Event, EventInvitation, EventRsvp, EventUpdate
from familyhub.models.user import Profile
from familyhub.schemas.event import (
    EventCreateRequest,
    EventCreateResponse,
    EventInviteRequest,
    EventInviteResponse,
    EventResponse,
    EventUpdateCreateRequest,
    EventUpdateResponse,
    InvitedMember,
    RsvpRequest,
)
from familyhub.schemas.family import OkResponse
from familyhub.schemas.post import AuthorResponse
from familyhub.services.context import RequestContext
from familyhub.services.family_service import active_member_ids
from familyhub.utils.dates import to_iso

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])

_rsvps = EventRsvp.__table__


def _get_family_event(session: Session, event_id: str, family_id: str) -> Event:
    event = session.get(Event, event_id)
    if not event or event.family_id != family_id:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


def _author(session: Session, user_id: str) -> AuthorResponse:
    profile = session.get(Profile, user_id)
    name = profile.display_name if profile and profile.display_name else "User"
    return AuthorResponse(id=user_id, display_name=name)


@router.post("/create", response_model=EventCreateResponse)
def create_event(
    request: EventCreateRequest,
    ctx: RequestContext = Depends(require_family),
    session: Session = Depends(get_session),
):
    """Create a family event."""
    event = Event(
        family_id=ctx.family_id,
        title=request.title,
        description=request.description.strip() if request.description else None,
        starts_at=request.starts_at,
        ends_at=request.ends_at,
        location=request.location.strip() if request.location else None,
        created_by=ctx.user_id,
    )
    session.add(event)
    session.commit()
    session.refresh(event)
    return EventCreateResponse(id=event.id)


@router.get("", response_model=list[EventResponse])
def list_events(
    upcoming: bool = Query(False, description="Only events that have not started yet"),
    ctx: RequestContext = Depends(require_family),
    session: Session = Depends(get_session),
):
    """Family events by start time, with RSVP counts and the caller's RSVP."""
    query = select(Event).where(Event.family_id == ctx.family_id)
    if upcoming:
        query = query.where(Event.starts_at >= datetime.now(timezone.utc))
    events = session.exec(query.order_by(Event.starts_at)).all()

    rsvps = []
    if events:
        rsvps = session.exec(
            select(EventRsvp).where(EventRsvp.event_id.in_([e.id for e in events]))  # type: ignore
        ).all()

    results = []
    for e in events:
        event_rsvps = [r for r in rsvps if r.event_id == e.id]
        mine = next((r.status for r in event_rsvps if r.user_id == ctx.user_id), None)
        results.append(
            EventResponse(
                id=e.id,
                title=e.title,
                description=e.description,
                starts_at=to_iso(e.starts_at),
                ends_at=to_iso(e.ends_at),
                location=e.location,
                created_by=e.created_by,
                going_count=sum(1 for r in event_rsvps if r.status == "going"),
                maybe_count=sum(1 for r in event_rsvps if r.status == "maybe"),
                my_rsvp=mine,
            )
        )
    return results


@router.post("/rsvp", response_model=OkResponse)
def rsvp(
    request: RsvpRequest,
    ctx: RequestContext = Depends(require_family),
    session: Session = Depends(get_session),
):
    """Set the caller's RSVP for an event; repeated calls overwrite it."""
    _get_family_event(session, request.event_id, ctx.family_id)

    now = datetime.now(timezone.utc)
    stmt = sqlite_insert(_rsvps).values(
        event_id=request.event_id,
        user_id=ctx.user_id,
        status=request.status,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[_rsvps.c.event_id, _rsvps.c.user_id],
        set_={"status": request.status, "updated_at": now},
    )
    session.connection().execute(stmt)
    session.commit()
    return OkResponse()


@router.post("/invite", response_model=EventInviteResponse)
def invite_members(
    request: EventInviteRequest,
    ctx: RequestContext = Depends(require_family),
    session: Session = Depends(get_session),
):
    """Invite family members to an event."""
    _get_family_event(session, request.event_id, ctx.family_id)

    found = active_member_ids(session, ctx.family_id, request.member_ids)
    if len(found) != len(request.member_ids):
        raise HTTPException(status_code=400, detail="Some members not found in family")

    for member_id in request.member_ids:
        session.add(
            EventInvitation(
                event_id=request.event_id,
                invited_user_id=member_id,
                invited_by=ctx.user_id,
            )
        )
    session.commit()

    profiles = session.exec(
        select(Profile).where(Profile.id.in_(request.member_ids))  # type: ignore
    ).all()
    logger.info("Sent %d invitation(s) for event %s", len(profiles), request.event_id)

    return EventInviteResponse(
        message=f"Invitations sent to {len(profiles)} family member(s)",
        invited_members=[
            InvitedMember(id=p.id, name=p.full_name or p.display_name, email=p.email)
            for p in profiles
        ],
    )


@router.post("/updates", response_model=EventUpdateResponse)
def create_update(
    request: EventUpdateCreateRequest,
    ctx: RequestContext = Depends(require_family),
    session: Session = Depends(get_session),
):
    """Post an update on an event."""
    _get_family_event(session, request.event_id, ctx.family_id)

    update = EventUpdate(event_id=request.event_id, author_id=ctx.user_id, content=request.content)
    session.add(update)
    session.commit()
    session.refresh(update)

    return EventUpdateResponse(
        id=update.id,
        content=update.content,
        author=_author(session, ctx.user_id),
        created_at=to_iso(update.created_at) or "",
    )


@router.get("/updates", response_model=list[EventUpdateResponse])
def list_updates(
    event_id: str = Query(..., alias="eventId"),
    ctx: RequestContext = Depends(require_family),
    session: Session = Depends(get_session),
):
    """Updates on an event, newest first."""
    _get_family_event(session, event_id, ctx.family_id)

    updates = session.exec(
        select(EventUpdate)
        .where(EventUpdate.event_id == event_id)
        .order_by(EventUpdate.created_at.desc())
    ).all()
    return [
        EventUpdateResponse(
            id=u.id,
            content=u.content,
            author=_author(session, u.author_id),
            created_at=to_iso(u.created_at) or "",
        )
        for u in updates
    ]

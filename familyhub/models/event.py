"""Event models: events, RSVPs, member invitations and update threads."""

import secrets
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class Event(SQLModel, table=True):
    __tablename__ = "events"

    id: str = Field(default_factory=lambda: f"evt_{secrets.token_hex(8)}", primary_key=True)
    family_id: str = Field(foreign_key="families.id", index=True)
    title: str
    description: Optional[str] = None
    starts_at: datetime
    ends_at: Optional[datetime] = None
    location: Optional[str] = None
    created_by: str = Field(foreign_key="profiles.id")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class EventRsvp(SQLModel, table=True):
    __tablename__ = "event_rsvps"
    __table_args__ = (UniqueConstraint("event_id", "user_id", name="uq_event_rsvp"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: str = Field(foreign_key="events.id", index=True)
    user_id: str = Field(foreign_key="profiles.id")
    status: str  # 'going' | 'maybe' | 'not_responded'
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class EventInvitation(SQLModel, table=True):
    __tablename__ = "event_invitations"

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: str = Field(foreign_key="events.id", index=True)
    invited_user_id: str = Field(foreign_key="profiles.id")
    invited_by: str = Field(foreign_key="profiles.id")
    status: str = Field(default="pending")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class EventUpdate(SQLModel, table=True):
    __tablename__ = "event_updates"

    id: str = Field(default_factory=lambda: f"upd_{secrets.token_hex(8)}", primary_key=True)
    event_id: str = Field(foreign_key="events.id", index=True)
    author_id: str = Field(foreign_key="profiles.id")
    content: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

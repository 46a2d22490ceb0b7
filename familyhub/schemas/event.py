"""Event, RSVP, invitation and update schemas."""

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from familyhub.schemas.post import AuthorResponse


class EventCreateRequest(BaseModel):
    title: str
    description: Optional[str] = None
    starts_at: datetime
    ends_at: Optional[datetime] = None
    location: Optional[str] = None

    @field_validator("title")
    @classmethod
    def _title(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Title must be at least 2 characters")
        if len(v) > 120:
            raise ValueError("Title must be less than 120 characters")
        return v

    @field_validator("starts_at", "ends_at")
    @classmethod
    def _as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return v
        # naive values are taken as UTC
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @model_validator(mode="after")
    def _dates(self):
        if self.ends_at is not None and self.ends_at < self.starts_at:
            raise ValueError("End date must be after start date")
        return self


class EventCreateResponse(BaseModel):
    id: str


class EventResponse(BaseModel):
    id: str
    title: str
    description: Optional[str]
    starts_at: str
    ends_at: Optional[str]
    location: Optional[str]
    created_by: str
    going_count: int
    maybe_count: int
    my_rsvp: Optional[str]


class RsvpRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_id: str = Field(alias="eventId")
    status: Literal["going", "maybe", "not_responded"]


class EventInviteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_id: str = Field(alias="eventId")
    member_ids: list[str] = Field(alias="memberIds")

    @field_validator("member_ids")
    @classmethod
    def _members(cls, v: list[str]) -> list[str]:
        unique = list(dict.fromkeys(m for m in v if m))
        if not unique:
            raise ValueError("At least one member must be selected")
        return unique


class InvitedMember(BaseModel):
    id: str
    name: Optional[str]
    email: str


class EventInviteResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    invited_members: list[InvitedMember] = Field(alias="invitedMembers")


class EventUpdateCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_id: str = Field(alias="eventId")
    content: str

    @field_validator("content")
    @classmethod
    def _content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Content is required")
        if len(v) > 1000:
            raise ValueError("Content too long")
        return v


class EventUpdateResponse(BaseModel):
    id: str
    content: str
    author: AuthorResponse
    created_at: str

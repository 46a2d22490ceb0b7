"""Family, onboarding and invite schemas."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator


# --- Invites ---

class InviteCreateRequest(BaseModel):
    email: Optional[EmailStr] = None


class InviteCreateResponse(BaseModel):
    code: str
    url: str


class InviteRevokeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    invite_id: str = Field(alias="inviteId", min_length=1)


class OkResponse(BaseModel):
    ok: bool = True


class AcceptInviteRequest(BaseModel):
    """Exactly one of ``code`` (typed by hand) or ``inviteId`` (from a listed invite)."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    code: Optional[str] = Field(default=None, min_length=6, max_length=8)
    invite_id: Optional[str] = Field(default=None, alias="inviteId", min_length=1)

    @model_validator(mode="after")
    def _exactly_one(self):
        if not self.code and not self.invite_id:
            raise ValueError("Either code or inviteId must be provided")
        if self.code and self.invite_id:
            raise ValueError("Provide either code or inviteId, not both")
        return self


class FamilyIdResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    family_id: str = Field(alias="familyId")


class CreateFamilyRequest(BaseModel):
    name: str

    @model_validator(mode="after")
    def _name_required(self):
        if not self.name.strip():
            raise ValueError("Family name is required")
        return self


class OnboardingInviteResponse(BaseModel):
    id: str
    family_id: str
    family_name: str
    family_slug: str
    email: Optional[str]
    expires_at: str
    created_at: str


# --- People ---

class FamilyMemberResponse(BaseModel):
    user_id: str
    role: str
    status: str
    display_name: str
    email: str
    avatar_url: Optional[str]
    created_at: str


class PendingInviteResponse(BaseModel):
    id: str
    code: str
    email: Optional[str]
    status: str
    expires_at: str
    created_at: str


class PeopleDataResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    family_name: str = Field(alias="familyName")
    family_members: list[FamilyMemberResponse] = Field(alias="familyMembers")
    pending_invites: list[PendingInviteResponse] = Field(alias="pendingInvites")
    active_family_id: str = Field(alias="activeFamilyId")
    user_id: str = Field(alias="userId")


class MemberProfileResponse(BaseModel):
    id: str
    email: str
    full_name: Optional[str]
    display_name: str
    avatar_url: Optional[str]

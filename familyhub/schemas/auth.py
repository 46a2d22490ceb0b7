"""Auth request/response schemas."""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: Optional[str] = None
    invite_code: Optional[str] = Field(default=None, min_length=6, max_length=8)


class SignupResponse(BaseModel):
    user_id: str
    email: str
    email_confirmed: bool


class ConfirmRequest(BaseModel):
    token: str


class ConfirmResponse(BaseModel):
    user_id: str
    email_confirmed: bool
    family_id: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    user_id: str
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshRequest(BaseModel):
    refresh_token: str


class RefreshResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserProfileResponse(BaseModel):
    id: str
    email: str
    full_name: Optional[str]
    display_name: Optional[str]
    avatar_url: Optional[str]
    active_family_id: Optional[str]
    role: Optional[str]

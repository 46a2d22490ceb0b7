"""Family and Profile models."""

import secrets
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


class Family(SQLModel, table=True):
    __tablename__ = "families"

    id: str = Field(default_factory=lambda: f"fam_{secrets.token_hex(8)}", primary_key=True)
    name: str
    slug: str = Field(unique=True, index=True)
    created_by: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Profile(SQLModel, table=True):
    __tablename__ = "profiles"

    id: str = Field(default_factory=lambda: f"usr_{secrets.token_hex(8)}", primary_key=True)
    email: str = Field(unique=True, index=True)
    password_hash: str
    full_name: Optional[str] = None
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    active_family_id: Optional[str] = Field(default=None, foreign_key="families.id")
    email_confirmed_at: Optional[datetime] = None
    pending_invite_code: Optional[str] = None  # entered at signup, redeemed on confirm
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

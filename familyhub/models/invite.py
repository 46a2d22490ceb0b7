"""Family invite model."""

import secrets
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


class FamilyInvite(SQLModel, table=True):
    __tablename__ = "family_invites"

    id: str = Field(default_factory=lambda: f"inv_{secrets.token_hex(8)}", primary_key=True)
    family_id: str = Field(foreign_key="families.id", index=True)
    code: str = Field(index=True)  # unique among pending invites of one family
    email: Optional[str] = Field(default=None, index=True)
    status: str = Field(default="pending")  # 'pending' | 'accepted' | 'revoked'
    invited_by: str = Field(foreign_key="profiles.id")
    accepted_by: Optional[str] = Field(default=None, foreign_key="profiles.id")
    accepted_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None
    expires_at: datetime
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

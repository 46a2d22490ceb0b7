"""Family membership model."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class FamilyMember(SQLModel, table=True):
    __tablename__ = "family_members"
    __table_args__ = (UniqueConstraint("family_id", "user_id", name="uq_family_member"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    family_id: str = Field(foreign_key="families.id", index=True)
    user_id: str = Field(foreign_key="profiles.id", index=True)
    role: str = Field(default="member")  # 'admin' | 'member'
    status: str = Field(default="active")  # 'active' | 'removed'
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

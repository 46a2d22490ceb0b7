"""Post and like models."""

import secrets
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class Post(SQLModel, table=True):
    __tablename__ = "posts"

    id: str = Field(default_factory=lambda: f"pst_{secrets.token_hex(8)}", primary_key=True)
    family_id: str = Field(foreign_key="families.id", index=True)
    author_id: str = Field(foreign_key="profiles.id")
    content: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class PostLike(SQLModel, table=True):
    __tablename__ = "post_likes"
    __table_args__ = (UniqueConstraint("post_id", "user_id", name="uq_post_like"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    post_id: str = Field(foreign_key="posts.id", index=True)
    user_id: str = Field(foreign_key="profiles.id")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

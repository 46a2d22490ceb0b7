"""Post comment model."""

import secrets
from datetime import datetime, timezone

from sqlmodel import Field, SQLModel


class PostComment(SQLModel, table=True):
    __tablename__ = "post_comments"

    id: str = Field(default_factory=lambda: f"cmt_{secrets.token_hex(8)}", primary_key=True)
    post_id: str = Field(foreign_key="posts.id", index=True)
    author_id: str = Field(foreign_key="profiles.id")
    content: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

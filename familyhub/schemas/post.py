"""Post, comment and like schemas."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _check_content(value: str, limit: int, too_long: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Content is required")
    if len(value) > limit:
        raise ValueError(too_long)
    return value


class PostCreateRequest(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def _content(cls, v: str) -> str:
        return _check_content(v, 5000, "Content must be less than 5000 characters")


class PostCreateResponse(BaseModel):
    id: str


class AuthorResponse(BaseModel):
    id: str
    display_name: str


class PostResponse(BaseModel):
    id: str
    content: str
    author: AuthorResponse
    likes_count: int
    comments_count: int
    is_liked: bool
    created_at: str


class CommentCreateRequest(BaseModel):
    post_id: str
    content: str

    @field_validator("content")
    @classmethod
    def _content(cls, v: str) -> str:
        return _check_content(v, 1000, "Content must be less than 1000 characters")


class CommentResponse(BaseModel):
    id: str
    content: str
    author_id: str
    author: AuthorResponse
    created_at: str


class LikeRequest(BaseModel):
    post_id: str


class LikeStatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    likes_count: int = Field(alias="likesCount")
    is_liked: bool = Field(alias="isLiked")


class SuccessResponse(BaseModel):
    success: bool = True

"""Post, comment and like API endpoints."""

from collections import Counter

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, func, select

from familyhub.api.deps import require_family
from familyhub.database import get_session
from familyhub.models.comment import PostComment
from familyhub.models.post import Post, PostLike
from familyhub.models.user import Profile
from familyhub.schemas.post import (
    AuthorResponse,
    CommentCreateRequest,
    CommentResponse,
    LikeRequest,
    LikeStatusResponse,
    PostCreateRequest,
    PostCreateResponse,
    PostResponse,
    SuccessResponse,
)
from familyhub.services.context import RequestContext
from familyhub.utils.dates import to_iso

router = APIRouter(prefix="/posts", tags=["posts"])


def _get_family_post(session: Session, post_id: str, family_id: str) -> Post:
    post = session.get(Post, post_id)
    if not post or post.family_id != family_id:
        raise HTTPException(status_code=404, detail="Post not found")
    return post


def _authors(session: Session, user_ids: set[str]) -> dict[str, AuthorResponse]:
    if not user_ids:
        return {}
    profiles = session.exec(select(Profile).where(Profile.id.in_(user_ids))).all()  # type: ignore
    return {
        p.id: AuthorResponse(id=p.id, display_name=p.display_name or "User")
        for p in profiles
    }


@router.post("/create", response_model=PostCreateResponse)
def create_post(
    request: PostCreateRequest,
    ctx: RequestContext = Depends(require_family),
    session: Session = Depends(get_session),
):
    """Share an update with the family."""
    post = Post(family_id=ctx.family_id, author_id=ctx.user_id, content=request.content)
    session.add(post)
    session.commit()
    session.refresh(post)
    return PostCreateResponse(id=post.id)


@router.get("", response_model=list[PostResponse])
def list_posts(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    ctx: RequestContext = Depends(require_family),
    session: Session = Depends(get_session),
):
    """Family feed, newest first."""
    posts = session.exec(
        select(Post)
        .where(Post.family_id == ctx.family_id)
        .order_by(Post.created_at.desc())
        .offset(offset)
        .limit(limit)
    ).all()
    if not posts:
        return []

    post_ids = [p.id for p in posts]
    likes = session.exec(
        select(PostLike.post_id, PostLike.user_id).where(PostLike.post_id.in_(post_ids))  # type: ignore
    ).all()
    like_counts = Counter(post_id for post_id, _ in likes)
    liked_by_me = {post_id for post_id, user_id in likes if user_id == ctx.user_id}

    comment_counts = dict(
        session.exec(
            select(PostComment.post_id, func.count())
            .where(PostComment.post_id.in_(post_ids))  # type: ignore
            .group_by(PostComment.post_id)
        ).all()
    )
    authors = _authors(session, {p.author_id for p in posts})

    return [
        PostResponse(
            id=p.id,
            content=p.content,
            author=authors.get(p.author_id, AuthorResponse(id=p.author_id, display_name="User")),
            likes_count=like_counts.get(p.id, 0),
            comments_count=comment_counts.get(p.id, 0),
            is_liked=p.id in liked_by_me,
            created_at=to_iso(p.created_at) or "",
        )
        for p in posts
    ]


# --- Comments ---

@router.post("/comments", response_model=CommentResponse)
def create_comment(
    request: CommentCreateRequest,
    ctx: RequestContext = Depends(require_family),
    session: Session = Depends(get_session),
):
    """Comment on a family post."""
    _get_family_post(session, request.post_id, ctx.family_id)

    comment = PostComment(post_id=request.post_id, author_id=ctx.user_id, content=request.content)
    session.add(comment)
    session.commit()
    session.refresh(comment)

    author = _authors(session, {ctx.user_id}).get(ctx.user_id)
    return CommentResponse(
        id=comment.id,
        content=comment.content,
        author_id=comment.author_id,
        author=author or AuthorResponse(id=ctx.user_id, display_name="User"),
        created_at=to_iso(comment.created_at) or "",
    )


@router.get("/comments", response_model=list[CommentResponse])
def list_comments(
    post_id: str = Query(...),
    ctx: RequestContext = Depends(require_family),
    session: Session = Depends(get_session),
):
    """Comments on a post, oldest first, with current display names."""
    _get_family_post(session, post_id, ctx.family_id)

    comments = session.exec(
        select(PostComment)
        .where(PostComment.post_id == post_id)
        .order_by(PostComment.created_at)
    ).all()
    authors = _authors(session, {c.author_id for c in comments})

    return [
        CommentResponse(
            id=c.id,
            content=c.content,
            author_id=c.author_id,
            author=authors.get(c.author_id, AuthorResponse(id=c.author_id, display_name="User")),
            created_at=to_iso(c.created_at) or "",
        )
        for c in comments
    ]


# --- Likes ---

@router.post("/likes", response_model=SuccessResponse)
def like_post(
    request: LikeRequest,
    ctx: RequestContext = Depends(require_family),
    session: Session = Depends(get_session),
):
    _get_family_post(session, request.post_id, ctx.family_id)

    existing = session.exec(
        select(PostLike).where(PostLike.post_id == request.post_id, PostLike.user_id == ctx.user_id)
    ).first()
    if existing:
        raise HTTPException(status_code=400, detail="Post already liked")

    try:
        session.add(PostLike(post_id=request.post_id, user_id=ctx.user_id))
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=400, detail="Post already liked")
    return SuccessResponse()


@router.delete("/likes", response_model=SuccessResponse)
def unlike_post(
    post_id: str = Query(...),
    ctx: RequestContext = Depends(require_family),
    session: Session = Depends(get_session),
):
    _get_family_post(session, post_id, ctx.family_id)

    like = session.exec(
        select(PostLike).where(PostLike.post_id == post_id, PostLike.user_id == ctx.user_id)
    ).first()
    if like:
        session.delete(like)
        session.commit()
    return SuccessResponse()


@router.get("/likes", response_model=LikeStatusResponse)
def like_status(
    post_id: str = Query(...),
    ctx: RequestContext = Depends(require_family),
    session: Session = Depends(get_session),
):
    """Like count for a post and whether the caller liked it."""
    _get_family_post(session, post_id, ctx.family_id)

    user_ids = session.exec(select(PostLike.user_id).where(PostLike.post_id == post_id)).all()
    return LikeStatusResponse(likes_count=len(user_ids), is_liked=ctx.user_id in user_ids)

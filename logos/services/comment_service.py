"""
Comment service: reader comments and their moderation.

New comments always start as ``pending`` and are only accepted on published
posts.  Public listings show approved comments only; everything else is an
admin view.  The public create path is throttled by the sliding-window
limiter before this module is reached (see ``dependencies.py``).
"""
import logging
import math

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from logos.database import atomic
from logos.errors import ConflictError, NotFoundError, ValidationError
from logos.models import COMMENT_STATUSES, Comment, Post
from logos.schemas import CommentCreate, PaginatedResponse

logger = logging.getLogger(__name__)

DEFAULT_NICKNAME = "Anonymous"


def _comment_to_dict(comment: Comment) -> dict:
    return {
        "id": comment.id,
        "post_id": comment.post_id,
        "nickname": comment.nickname,
        "email": comment.email,
        "content": comment.content,
        "status": comment.status,
        "created_at": comment.created_at.isoformat() if comment.created_at else None,
    }


def _check_status(status: str) -> None:
    if status not in COMMENT_STATUSES:
        raise ValidationError(
            f"Invalid comment status '{status}', expected one of: {', '.join(COMMENT_STATUSES)}"
        )


async def _paginate(db: AsyncSession, filters: list, page: int, page_size: int) -> PaginatedResponse:
    total: int = (
        await db.execute(select(func.count()).select_from(Comment).where(*filters))
    ).scalar_one()
    q = (
        select(Comment)
        .where(*filters)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    comments = (await db.execute(q)).scalars().all()
    return PaginatedResponse(
        items=[_comment_to_dict(c) for c in comments],
        total=total,
        page=page,
        page_size=page_size,
        pages=math.ceil(total / page_size) if total > 0 else 0,
    )


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def create_comment(db: AsyncSession, post_id: int, data: CommentCreate) -> dict:
    """
    Add a pending comment to a published post.

    Raises ``NotFoundError`` for an unknown post and ``ValidationError``
    for a draft.
    """
    post = await db.get(Post, post_id)
    if post is None:
        raise NotFoundError(f"Post {post_id} not found")
    if not post.published:
        raise ValidationError("Comments are only accepted on published posts")

    nickname = (data.nickname or "").strip() or DEFAULT_NICKNAME
    comment = Comment(
        post_id=post_id,
        nickname=nickname,
        email=data.email,
        content=data.content,
        status="pending",
    )
    async with atomic(db):
        db.add(comment)
        await db.flush()

    logger.info("Comment id=%s awaiting moderation on post id=%s", comment.id, post_id)
    return _comment_to_dict(comment)


async def list_comments(
    db: AsyncSession,
    post_id: int,
    page: int = 1,
    page_size: int = 20,
    include_pending: bool = False,
) -> PaginatedResponse:
    """Comments of one post, newest first; approved only unless *include_pending*."""
    if await db.get(Post, post_id) is None:
        raise NotFoundError(f"Post {post_id} not found")

    filters = [Comment.post_id == post_id]
    if not include_pending:
        filters.append(Comment.status == "approved")
    return await _paginate(db, filters, page, page_size)


async def list_all_comments(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 20,
    status: str | None = None,
) -> PaginatedResponse:
    """Moderation queue across every post, optionally filtered by status."""
    filters = []
    if status is not None:
        _check_status(status)
        filters.append(Comment.status == status)
    return await _paginate(db, filters, page, page_size)


async def update_comment_status(db: AsyncSession, comment_id: int, status: str) -> dict:
    """
    Moderate a comment.

    Setting the current status again is a no-op.  Approved and rejected
    comments can be switched between each other but never sent back to
    ``pending``; that raises ``ConflictError``.
    """
    _check_status(status)

    async with atomic(db):
        current = await db.get(Comment, comment_id, populate_existing=True)
        if current is None:
            raise NotFoundError(f"Comment {comment_id} not found")

        if current.status != status:
            if status == "pending":
                raise ConflictError(
                    f"Comment {comment_id} is already {current.status} and cannot return to pending"
                )
            await db.execute(
                update(Comment)
                .where(Comment.id == comment_id)
                .values(status=status)
                .execution_options(synchronize_session=False)
            )
            logger.info("Comment id=%s moved %s -> %s", comment_id, current.status, status)

        comment = await db.get(Comment, comment_id, populate_existing=True)

    return _comment_to_dict(comment)


async def delete_comment(db: AsyncSession, comment_id: int) -> None:
    async with atomic(db):
        result = await db.execute(delete(Comment).where(Comment.id == comment_id))
        if result.rowcount == 0:
            raise NotFoundError(f"Comment {comment_id} not found")
    logger.info("Deleted comment id=%s", comment_id)

from fastapi import APIRouter, Depends
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from logos.database import get_db
from logos.dependencies import get_comment_limiter
from logos.models import Comment, Post, Tag
from logos.ratelimit import SlidingWindowRateLimiter
from logos.schemas import MetricsResponse
from logos.cache import cache

router = APIRouter(prefix="/api/metrics", tags=["metrics"])

@router.get("", response_model=MetricsResponse)
async def get_metrics(
    limiter: SlidingWindowRateLimiter = Depends(get_comment_limiter),
    db: AsyncSession = Depends(get_db),
):
    total_posts = (await db.execute(select(func.count()).select_from(Post))).scalar_one()

    published_posts = (
        await db.execute(select(func.count()).select_from(Post).where(Post.published.is_(True)))
    ).scalar_one()

    total_tags = (await db.execute(select(func.count()).select_from(Tag))).scalar_one()

    total_comments = (await db.execute(select(func.count()).select_from(Comment))).scalar_one()

    pending_comments = (
        await db.execute(select(func.count()).select_from(Comment).where(Comment.status == "pending"))
    ).scalar_one()

    return MetricsResponse(
        total_posts=total_posts,
        published_posts=published_posts,
        total_tags=total_tags,
        total_comments=total_comments,
        pending_comments=pending_comments,
        cache_info=cache.stats,
        rate_limit_info={
            "window_seconds": limiter.window_seconds,
            "max_requests": limiter.max_requests,
            "tracked_identities": limiter.tracked_identities,
        },
    )

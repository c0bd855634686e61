"""
Search service: case-insensitive substring search over posts.

No ranking: matches come back newest first.  Wildcards in the query are
escaped so ``%`` and ``_`` match literally.
"""
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from logos.models import Post
from logos.services.post_service import post_to_dict


async def search_posts(
    db: AsyncSession,
    query: str,
    published_only: bool = True,
    limit: int = 50,
) -> list[dict]:
    """Posts whose title or content contains *query*; blank queries match nothing."""
    query = query.strip()
    if not query:
        return []

    filters = [
        or_(
            Post.title.icontains(query, autoescape=True),
            Post.content.icontains(query, autoescape=True),
        )
    ]
    if published_only:
        filters.append(Post.published.is_(True))

    q = (
        select(Post)
        .where(*filters)
        .options(selectinload(Post.tags))
        .order_by(Post.created_at.desc(), Post.id.desc())
        .limit(limit)
        .execution_options(populate_existing=True)
    )
    posts = (await db.execute(q)).scalars().all()
    return [post_to_dict(p, p.tags) for p in posts]

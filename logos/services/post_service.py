"""
Post service: the write coordinator and read paths for the Post aggregate.

Design notes
------------
- ``create_post`` / ``update_post`` run slug resolution, the post row write
  and tag reconciliation inside one ``atomic`` block (a SAVEPOINT within the
  request transaction owned by ``get_db``).  Any failure rolls back the
  whole block, so a post is never left without its tags or vice versa.
- Slug uniqueness is checked against a prefix query before writing, but
  that check is only a best-effort pre-check: two concurrent creates with
  the same base slug can both pick it, and the unique constraint on
  ``posts.slug`` decides.  The loser gets a ``ConflictError``; nothing is
  retried here.
- Updates are explicit read-modify-write: the stored row is read, a patch
  dict is computed from the request, and a single ``UPDATE`` is issued.
  The loaded instance is never mutated.
- Public list/detail reads use the cache-aside pattern; every write
  invalidates the post caches after the block succeeds.
"""
import logging
import math

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from logos.cache import cache
from logos.config import settings
from logos.database import atomic
from logos.errors import NotFoundError, ValidationError
from logos.models import Post, Tag, post_tags
from logos.schemas import PaginatedResponse, PostCreate, PostUpdate
from logos.services import tag_service
from logos.slug import MAX_POST_SLUG_LENGTH, derive_slug, resolve_unique_slug

logger = logging.getLogger(__name__)

SUMMARY_LINES = 3
TRUNCATION_MARKER = "..."


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def extract_summary(content: str, max_length: int | None = None) -> str:
    """
    Build a plain summary from the first three non-blank lines of *content*.

    Lines are joined with single spaces.  When the result exceeds
    *max_length* characters it is cut and ``"..."`` appended, keeping the
    total at exactly *max_length*.
    """
    if max_length is None:
        max_length = settings.SUMMARY_MAX_LENGTH
    lines = [line.strip() for line in content.strip().splitlines() if line.strip()]
    summary = " ".join(lines[:SUMMARY_LINES])
    if len(summary) <= max_length:
        return summary
    return summary[: max_length - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER


async def _unique_slug(db: AsyncSession, title: str, exclude_post_id: int | None = None) -> str:
    base = derive_slug(title, max_length=MAX_POST_SLUG_LENGTH)
    q = select(Post.slug).where(Post.slug.startswith(base, autoescape=True))
    if exclude_post_id is not None:
        q = q.where(Post.id != exclude_post_id)
    existing = (await db.execute(q)).scalars().all()
    return resolve_unique_slug(base, existing)


def _validate_title(title: str) -> None:
    if not title.strip():
        raise ValidationError("Post title must not be empty")


async def _load_post(db: AsyncSession, post_id: int, with_tags: bool = False) -> Post:
    q = select(Post).where(Post.id == post_id).execution_options(populate_existing=True)
    if with_tags:
        q = q.options(selectinload(Post.tags))
    post = (await db.execute(q)).scalar_one_or_none()
    if post is None:
        raise NotFoundError(f"Post {post_id} not found")
    return post


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def post_to_dict(post: Post, tags: list[Tag], detail: bool = False) -> dict:
    """Serialise a Post with an explicit tag list (list view unless *detail*)."""
    data = {
        "id": post.id,
        "title": post.title,
        "slug": post.slug,
        "summary": post.summary,
        "published": post.published,
        "created_at": post.created_at.isoformat() if post.created_at else None,
        "updated_at": post.updated_at.isoformat() if post.updated_at else None,
        "tags": [tag_service.tag_to_dict(t) for t in tags],
    }
    if detail:
        data["content"] = post.content
    return data


# ---------------------------------------------------------------------------
# Write coordinator
# ---------------------------------------------------------------------------

async def create_post(db: AsyncSession, data: PostCreate) -> dict:
    """
    Create a post with a collision-free slug and its tag set, atomically.

    Raises ``ValidationError`` for a blank title and ``ConflictError`` when
    the slug or a new tag loses a race on a unique constraint.
    """
    _validate_title(data.title)

    async with atomic(db, conflict_detail="A post or tag with the same slug already exists"):
        slug = await _unique_slug(db, data.title)
        post = Post(
            title=data.title,
            slug=slug,
            content=data.content,
            summary=extract_summary(data.content),
            published=data.published,
        )
        db.add(post)
        await db.flush()
        tags = await tag_service.reconcile_tags(db, post.id, data.tags)

    logger.info("Created post id=%s slug=%r tags=%d", post.id, post.slug, len(tags))
    await cache.invalidate_posts()
    return post_to_dict(post, tags, detail=True)


async def update_post(db: AsyncSession, post_id: int, data: PostUpdate) -> dict:
    """
    Apply a partial update to *post_id* and return the post with its tags.

    - a title different from the stored one re-derives and re-resolves the
      slug (the post's own current slug does not count as taken);
    - new content re-derives the summary;
    - ``tags`` present replaces the whole tag set, absent leaves it alone.

    Raises ``NotFoundError`` when the post does not exist.
    """
    changes = data.model_dump(exclude_unset=True)
    tag_names: list[str] | None = changes.pop("tags", None)

    async with atomic(db, conflict_detail="A post or tag with the same slug already exists"):
        current = await _load_post(db, post_id)

        patch: dict = {}
        title = changes.get("title")
        if title is not None:
            _validate_title(title)
            if title != current.title:
                patch["title"] = title
                patch["slug"] = await _unique_slug(db, title, exclude_post_id=post_id)
        if changes.get("content") is not None:
            patch["content"] = changes["content"]
            patch["summary"] = extract_summary(changes["content"])
        if changes.get("published") is not None:
            patch["published"] = changes["published"]

        if patch or tag_names is not None:
            await db.execute(
                update(Post)
                .where(Post.id == post_id)
                .values(**patch, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )

        if tag_names is not None:
            tags = await tag_service.reconcile_tags(db, post_id, tag_names)
        else:
            tags = await tag_service.get_post_tags(db, post_id)

        post = await _load_post(db, post_id)

    logger.info("Updated post id=%s fields=%s tags_replaced=%s", post_id, sorted(patch), tag_names is not None)
    await cache.invalidate_posts(post_id)
    return post_to_dict(post, tags, detail=True)


async def delete_post(db: AsyncSession, post_id: int) -> None:
    """
    Delete *post_id*.  Comments and tag associations are removed by the
    ON DELETE CASCADE rules on their foreign keys.
    """
    async with atomic(db):
        result = await db.execute(delete(Post).where(Post.id == post_id))
        if result.rowcount == 0:
            raise NotFoundError(f"Post {post_id} not found")

    logger.info("Deleted post id=%s", post_id)
    await cache.invalidate_posts(post_id)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_post(db: AsyncSession, post_id: int, published_only: bool = True) -> dict:
    """
    Return the detail dict for *post_id*.  Drafts are reported as missing
    unless *published_only* is False (admin reads).
    """
    cache_key = f"posts:detail:{post_id}"
    if published_only:
        cached = await cache.get(cache_key)
        if cached:
            return cached

    post = await _load_post(db, post_id, with_tags=True)
    if published_only and not post.published:
        raise NotFoundError(f"Post {post_id} not found")

    data = post_to_dict(post, post.tags, detail=True)
    if published_only:
        await cache.set(cache_key, data, ttl=settings.CACHE_TTL_DETAIL)
    return data


async def get_post_by_slug(db: AsyncSession, slug: str, published_only: bool = True) -> dict:
    cache_key = f"posts:slug:{slug}"
    if published_only:
        cached = await cache.get(cache_key)
        if cached:
            return cached

    q = (
        select(Post)
        .where(Post.slug == slug)
        .options(selectinload(Post.tags))
        .execution_options(populate_existing=True)
    )
    post = (await db.execute(q)).scalar_one_or_none()
    if post is None or (published_only and not post.published):
        raise NotFoundError(f"Post '{slug}' not found")

    data = post_to_dict(post, post.tags, detail=True)
    if published_only:
        await cache.set(cache_key, data, ttl=settings.CACHE_TTL_DETAIL)
    return data


async def list_posts(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 20,
    published_only: bool = True,
    tag_id: int | None = None,
) -> PaginatedResponse:
    """
    Return a page of posts, newest first, optionally restricted to one tag.

    Two statements on a cache miss (COUNT, then the page) plus one
    ``selectinload`` query for the tags of the whole page.
    """
    cache_key = f"posts:list:{page}:{page_size}:{int(published_only)}:{tag_id}"
    if published_only:
        cached = await cache.get(cache_key)
        if cached:
            return PaginatedResponse(**cached)

    filters = []
    if published_only:
        filters.append(Post.published.is_(True))
    if tag_id is not None:
        filters.append(
            Post.id.in_(select(post_tags.c.post_id).where(post_tags.c.tag_id == tag_id))
        )

    total: int = (
        await db.execute(select(func.count()).select_from(Post).where(*filters))
    ).scalar_one()

    q = (
        select(Post)
        .where(*filters)
        .options(selectinload(Post.tags))
        .order_by(Post.created_at.desc(), Post.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .execution_options(populate_existing=True)
    )
    posts = (await db.execute(q)).scalars().all()

    response = PaginatedResponse(
        items=[post_to_dict(p, p.tags) for p in posts],
        total=total,
        page=page,
        page_size=page_size,
        pages=math.ceil(total / page_size) if total > 0 else 0,
    )
    if published_only:
        await cache.set(cache_key, response.model_dump(), ttl=settings.CACHE_TTL_LIST)
    return response


async def recent_published_posts(db: AsyncSession, limit: int) -> list[Post]:
    """ORM instances (with tags) of the newest published posts, for feeds."""
    q = (
        select(Post)
        .where(Post.published.is_(True))
        .options(selectinload(Post.tags))
        .order_by(Post.created_at.desc(), Post.id.desc())
        .limit(limit)
        .execution_options(populate_existing=True)
    )
    return list((await db.execute(q)).scalars().all())

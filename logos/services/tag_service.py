"""
Tag service: tag identity, CRUD, and reconciliation of a post's tag set.

Tags are canonical per name: every write path goes through
``find_or_create_tag`` so two posts naming the same tag share one row.
Tag slugs are derived once at creation and never suffixed; a slug clash
(e.g. "Rust" and "rust!") is left to the unique constraint and reported
as a conflict by the caller's ``atomic`` block.
"""
import logging

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from logos.cache import cache
from logos.database import atomic
from logos.errors import NotFoundError, ValidationError
from logos.models import Tag, post_tags
from logos.schemas import TagCreate
from logos.slug import MAX_TAG_SLUG_LENGTH, derive_slug

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def tag_to_dict(tag: Tag) -> dict:
    return {
        "id": tag.id,
        "name": tag.name,
        "slug": tag.slug,
        "created_at": tag.created_at.isoformat() if tag.created_at else None,
    }


# ---------------------------------------------------------------------------
# Reconciliation (used by the post write path)
# ---------------------------------------------------------------------------

def normalize_tag_names(tag_names: list[str]) -> list[str]:
    """
    Trim names, drop empty ones and repeated ones (first occurrence wins).

    Without this a repeated name would try to insert the same
    (post_id, tag_id) pair twice and trip the association's primary key.
    """
    seen: set[str] = set()
    names: list[str] = []
    for raw in tag_names:
        name = raw.strip()
        if name and name not in seen:
            seen.add(name)
            names.append(name)
    return names


async def find_or_create_tag(db: AsyncSession, name: str) -> Tag:
    """Return the tag named exactly *name*, inserting it if it does not exist."""
    result = await db.execute(select(Tag).where(Tag.name == name))
    tag = result.scalar_one_or_none()
    if tag is None:
        tag = Tag(name=name, slug=derive_slug(name, max_length=MAX_TAG_SLUG_LENGTH))
        db.add(tag)
        await db.flush()
        logger.info("Created tag id=%s name=%r slug=%r", tag.id, tag.name, tag.slug)
    return tag


async def reconcile_tags(db: AsyncSession, post_id: int, tag_names: list[str]) -> list[Tag]:
    """
    Replace the full tag set of *post_id* with *tag_names*.

    Must run inside the caller's transaction.  Existing associations are
    deleted outright and rebuilt; tags that lose their last post are kept.
    Returns the resolved tags in the order the names were given.
    """
    await db.execute(delete(post_tags).where(post_tags.c.post_id == post_id))

    tags: list[Tag] = []
    for name in normalize_tag_names(tag_names):
        tag = await find_or_create_tag(db, name)
        await db.execute(insert(post_tags).values(post_id=post_id, tag_id=tag.id))
        tags.append(tag)
    return tags


async def get_post_tags(db: AsyncSession, post_id: int) -> list[Tag]:
    q = (
        select(Tag)
        .join(post_tags, post_tags.c.tag_id == Tag.id)
        .where(post_tags.c.post_id == post_id)
        .order_by(Tag.name)
    )
    result = await db.execute(q)
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def list_tags(db: AsyncSession) -> list[dict]:
    result = await db.execute(select(Tag).order_by(Tag.name))
    return [tag_to_dict(t) for t in result.scalars().all()]


async def get_tag(db: AsyncSession, tag_id: int) -> dict:
    tag = await db.get(Tag, tag_id)
    if tag is None:
        raise NotFoundError(f"Tag {tag_id} not found")
    return tag_to_dict(tag)


async def get_tag_by_slug(db: AsyncSession, slug: str) -> dict:
    result = await db.execute(select(Tag).where(Tag.slug == slug))
    tag = result.scalar_one_or_none()
    if tag is None:
        raise NotFoundError(f"Tag '{slug}' not found")
    return tag_to_dict(tag)


async def create_tag(db: AsyncSession, data: TagCreate) -> dict:
    """Idempotent by name: creating an existing tag returns the stored one."""
    name = data.name.strip()
    if not name:
        raise ValidationError("Tag name must not be empty")
    async with atomic(db, conflict_detail=f"Tag '{name}' clashes with an existing tag slug"):
        tag = await find_or_create_tag(db, name)
    return tag_to_dict(tag)


async def delete_tag(db: AsyncSession, tag_id: int) -> None:
    """Delete a tag; its post associations go with it through the FK cascade."""
    async with atomic(db):
        result = await db.execute(delete(Tag).where(Tag.id == tag_id))
        if result.rowcount == 0:
            raise NotFoundError(f"Tag {tag_id} not found")
    logger.info("Deleted tag id=%s", tag_id)
    await cache.invalidate_posts()

"""
Link service: the blogroll of external links shown beside posts.
"""
import logging
import math

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from logos.database import atomic
from logos.errors import NotFoundError
from logos.models import Link
from logos.schemas import LinkCreate, LinkUpdate, PaginatedResponse

logger = logging.getLogger(__name__)


def _link_to_dict(link: Link) -> dict:
    return {
        "id": link.id,
        "name": link.name,
        "url": link.url,
        "description": link.description,
        "created_at": link.created_at.isoformat() if link.created_at else None,
        "updated_at": link.updated_at.isoformat() if link.updated_at else None,
    }


async def list_links(db: AsyncSession, page: int = 1, page_size: int = 20) -> PaginatedResponse:
    """Links ordered alphabetically by name."""
    total: int = (await db.execute(select(func.count()).select_from(Link))).scalar_one()
    q = (
        select(Link)
        .order_by(Link.name, Link.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    links = (await db.execute(q)).scalars().all()
    return PaginatedResponse(
        items=[_link_to_dict(link) for link in links],
        total=total,
        page=page,
        page_size=page_size,
        pages=math.ceil(total / page_size) if total > 0 else 0,
    )


async def get_link(db: AsyncSession, link_id: int) -> dict:
    link = await db.get(Link, link_id)
    if link is None:
        raise NotFoundError(f"Link {link_id} not found")
    return _link_to_dict(link)


async def create_link(db: AsyncSession, data: LinkCreate) -> dict:
    link = Link(name=data.name, url=data.url, description=data.description)
    async with atomic(db):
        db.add(link)
        await db.flush()
    logger.info("Created link id=%s name=%r", link.id, link.name)
    return _link_to_dict(link)


async def update_link(db: AsyncSession, link_id: int, data: LinkUpdate) -> dict:
    """Partial update: only fields present in the payload change."""
    patch = data.model_dump(exclude_unset=True)
    # name and url are NOT NULL; an explicit null means "leave unchanged".
    patch = {k: v for k, v in patch.items() if v is not None or k == "description"}

    async with atomic(db):
        if await db.get(Link, link_id) is None:
            raise NotFoundError(f"Link {link_id} not found")
        if patch:
            await db.execute(
                update(Link)
                .where(Link.id == link_id)
                .values(**patch, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )
        link = await db.get(Link, link_id, populate_existing=True)

    return _link_to_dict(link)


async def delete_link(db: AsyncSession, link_id: int) -> None:
    async with atomic(db):
        result = await db.execute(delete(Link).where(Link.id == link_id))
        if result.rowcount == 0:
            raise NotFoundError(f"Link {link_id} not found")
    logger.info("Deleted link id=%s", link_id)

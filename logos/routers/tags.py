from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from logos.database import get_db
from logos.dependencies import PaginationParams, require_admin
from logos.schemas import PaginatedResponse, TagCreate, TagResponse
from logos.services import post_service, tag_service

router = APIRouter(prefix="/api/tags", tags=["tags"])

@router.get("", response_model=list[TagResponse])
async def list_tags(db: AsyncSession = Depends(get_db)):
    return await tag_service.list_tags(db)

@router.post("", status_code=201, response_model=TagResponse, dependencies=[Depends(require_admin)])
async def create_tag(data: TagCreate, db: AsyncSession = Depends(get_db)):
    return await tag_service.create_tag(db, data)

@router.get("/slug/{slug}", response_model=TagResponse)
async def get_tag_by_slug(slug: str, db: AsyncSession = Depends(get_db)):
    return await tag_service.get_tag_by_slug(db, slug)

@router.get("/{tag_id}", response_model=TagResponse)
async def get_tag(tag_id: int, db: AsyncSession = Depends(get_db)):
    return await tag_service.get_tag(db, tag_id)

@router.delete("/{tag_id}", status_code=204, dependencies=[Depends(require_admin)])
async def delete_tag(tag_id: int, db: AsyncSession = Depends(get_db)):
    await tag_service.delete_tag(db, tag_id)

@router.get("/{tag_id}/posts", response_model=PaginatedResponse)
async def list_tag_posts(
    tag_id: int,
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    await tag_service.get_tag(db, tag_id)
    return await post_service.list_posts(db, pagination.page, pagination.page_size, tag_id=tag_id)

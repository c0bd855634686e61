from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from logos.database import get_db
from logos.dependencies import PaginationParams, require_admin
from logos.schemas import LinkCreate, LinkResponse, LinkUpdate, PaginatedResponse
from logos.services import link_service

router = APIRouter(prefix="/api/links", tags=["links"])

@router.get("", response_model=PaginatedResponse)
async def list_links(pagination: PaginationParams = Depends(), db: AsyncSession = Depends(get_db)):
    return await link_service.list_links(db, pagination.page, pagination.page_size)

@router.get("/{link_id}", response_model=LinkResponse)
async def get_link(link_id: int, db: AsyncSession = Depends(get_db)):
    return await link_service.get_link(db, link_id)

@router.post("", status_code=201, response_model=LinkResponse, dependencies=[Depends(require_admin)])
async def create_link(data: LinkCreate, db: AsyncSession = Depends(get_db)):
    return await link_service.create_link(db, data)

@router.put("/{link_id}", response_model=LinkResponse, dependencies=[Depends(require_admin)])
async def update_link(link_id: int, data: LinkUpdate, db: AsyncSession = Depends(get_db)):
    return await link_service.update_link(db, link_id, data)

@router.delete("/{link_id}", status_code=204, dependencies=[Depends(require_admin)])
async def delete_link(link_id: int, db: AsyncSession = Depends(get_db)):
    await link_service.delete_link(db, link_id)

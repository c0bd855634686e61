from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from logos.database import get_db
from logos.schemas import PostResponse
from logos.services import search_service

router = APIRouter(prefix="/api/search", tags=["search"])

@router.get("", response_model=list[PostResponse])
async def search_posts(
    q: str = Query("", max_length=200, description="Substring matched against title and content."),
    db: AsyncSession = Depends(get_db),
):
    return await search_service.search_posts(db, q)

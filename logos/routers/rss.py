from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from logos.database import get_db
from logos.services import feed_service

router = APIRouter(tags=["rss"])

@router.get("/rss.xml", response_class=Response)
async def rss_feed(db: AsyncSession = Depends(get_db)):
    xml = await feed_service.build_rss(db)
    return Response(content=xml, media_type="application/rss+xml; charset=utf-8")

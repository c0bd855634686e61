from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from logos.database import get_db
from logos.dependencies import PaginationParams, require_admin
from logos.schemas import CommentResponse, CommentStatusUpdate, PaginatedResponse
from logos.services import comment_service

# Moderation endpoints; the public create/list routes live under /api/posts.
router = APIRouter(prefix="/api/comments", tags=["comments"], dependencies=[Depends(require_admin)])

@router.get("", response_model=PaginatedResponse)
async def list_all_comments(
    status: str | None = Query(None, description="pending, approved or rejected"),
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.list_all_comments(db, pagination.page, pagination.page_size, status)

@router.put("/{comment_id}/status", response_model=CommentResponse)
async def update_comment_status(comment_id: int, data: CommentStatusUpdate, db: AsyncSession = Depends(get_db)):
    return await comment_service.update_comment_status(db, comment_id, data.status)

@router.delete("/{comment_id}", status_code=204)
async def delete_comment(comment_id: int, db: AsyncSession = Depends(get_db)):
    await comment_service.delete_comment(db, comment_id)

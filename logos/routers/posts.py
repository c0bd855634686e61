from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from logos.database import get_db
from logos.dependencies import PaginationParams, enforce_comment_rate_limit, is_admin, require_admin
from logos.schemas import (
    CommentCreate, CommentResponse, PaginatedResponse, PostCreate, PostDetail, PostUpdate,
)
from logos.services import comment_service, post_service

router = APIRouter(prefix="/api/posts", tags=["posts"])

@router.get("", response_model=PaginatedResponse)
async def list_posts(
    pagination: PaginationParams = Depends(),
    admin: bool = Depends(is_admin),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.list_posts(
        db, pagination.page, pagination.page_size, published_only=not admin
    )

@router.post("", status_code=201, response_model=PostDetail, dependencies=[Depends(require_admin)])
async def create_post(data: PostCreate, db: AsyncSession = Depends(get_db)):
    return await post_service.create_post(db, data)

@router.get("/slug/{slug}", response_model=PostDetail)
async def get_post_by_slug(slug: str, admin: bool = Depends(is_admin), db: AsyncSession = Depends(get_db)):
    return await post_service.get_post_by_slug(db, slug, published_only=not admin)

@router.get("/{post_id}", response_model=PostDetail)
async def get_post(post_id: int, admin: bool = Depends(is_admin), db: AsyncSession = Depends(get_db)):
    return await post_service.get_post(db, post_id, published_only=not admin)

@router.put("/{post_id}", response_model=PostDetail, dependencies=[Depends(require_admin)])
async def update_post(post_id: int, data: PostUpdate, db: AsyncSession = Depends(get_db)):
    return await post_service.update_post(db, post_id, data)

@router.delete("/{post_id}", status_code=204, dependencies=[Depends(require_admin)])
async def delete_post(post_id: int, db: AsyncSession = Depends(get_db)):
    await post_service.delete_post(db, post_id)

@router.get("/{post_id}/comments", response_model=PaginatedResponse)
async def list_post_comments(
    post_id: int,
    include_pending: bool = Query(False, description="Admin only: include unmoderated comments."),
    pagination: PaginationParams = Depends(),
    admin: bool = Depends(is_admin),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.list_comments(
        db, post_id, pagination.page, pagination.page_size, include_pending=include_pending and admin
    )

@router.post(
    "/{post_id}/comments",
    status_code=201,
    response_model=CommentResponse,
    dependencies=[Depends(enforce_comment_rate_limit)],
)
async def create_comment(post_id: int, data: CommentCreate, db: AsyncSession = Depends(get_db)):
    return await comment_service.create_comment(db, post_id, data)

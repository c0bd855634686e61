from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

CommentStatus = Literal["pending", "approved", "rejected"]
TagName = Annotated[str, Field(max_length=100)]


# --- Tag ---

class TagCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class TagResponse(BaseModel):
    id: int
    name: str
    slug: str
    created_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


# --- Post ---

class PostCreate(BaseModel):
    title: str = Field(max_length=300)
    content: str
    tags: list[TagName] = []
    published: bool = False


class PostUpdate(BaseModel):
    """Partial update; only fields present in the payload are applied."""

    title: str | None = Field(None, max_length=300)
    content: str | None = None
    tags: list[TagName] | None = None
    published: bool | None = None


class PostResponse(BaseModel):
    id: int
    title: str
    slug: str
    summary: str
    published: bool
    created_at: datetime | None
    updated_at: datetime | None
    tags: list[TagResponse] = []


class PostDetail(PostResponse):
    content: str


# --- Comment ---

class CommentCreate(BaseModel):
    nickname: str | None = Field(None, max_length=100)
    email: str = Field(max_length=255)
    content: str = Field(min_length=1)


class CommentStatusUpdate(BaseModel):
    # Plain str so an unknown value reaches the service and is reported
    # as a domain validation error (400) rather than a 422.
    status: str


class CommentResponse(BaseModel):
    id: int
    post_id: int
    nickname: str
    email: str
    content: str
    status: CommentStatus
    created_at: datetime | None
    model_config = ConfigDict(from_attributes=True)


# --- Link ---

class LinkCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    url: str = Field(min_length=1, max_length=500)
    description: str | None = None


class LinkUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    url: str | None = Field(None, min_length=1, max_length=500)
    description: str | None = None


class LinkResponse(BaseModel):
    id: int
    name: str
    url: str
    description: str | None
    created_at: datetime | None
    updated_at: datetime | None
    model_config = ConfigDict(from_attributes=True)


# --- Pagination ---

class PaginatedResponse(BaseModel):
    items: list  # Will be typed in router
    total: int
    page: int
    page_size: int
    pages: int


# --- Metrics ---

class MetricsResponse(BaseModel):
    total_posts: int
    published_posts: int
    total_tags: int
    total_comments: int
    pending_comments: int
    cache_info: dict = {}
    rate_limit_info: dict = {}

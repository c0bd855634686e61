"""
Regression tests for issues found during code review.

1. Unique constraint violations must return 409 (not 500)
2. Retitling onto another post's slug must re-suffix, not collide
3. X-Query-Count must not grow with the number of posts on a page (no N+1)
4. CORS must not set allow_credentials=true with allow_origins=*
5. Foreign keys are enforced, so deletes cascade to associations
"""
import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from logos.models import Comment, post_tags
from logos.schemas import CommentCreate, PostCreate
from logos.services import comment_service, post_service


# ---------------------------------------------------------------------------
# 1. Unique constraint violations -> 409
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_tag_slug_clash_returns_409(async_client: AsyncClient, admin_headers: dict):
    """Two distinct tag names deriving the same slug collide on tags.slug."""
    resp1 = await async_client.post("/api/tags", json={"name": "Rust"}, headers=admin_headers)
    assert resp1.status_code == 201

    resp2 = await async_client.post("/api/tags", json={"name": "rust!"}, headers=admin_headers)
    assert resp2.status_code == 409
    assert "detail" in resp2.json()


@pytest.mark.asyncio
async def test_creating_existing_tag_is_idempotent(async_client: AsyncClient, admin_headers: dict):
    resp1 = await async_client.post("/api/tags", json={"name": "python"}, headers=admin_headers)
    resp2 = await async_client.post("/api/tags", json={"name": " python "}, headers=admin_headers)
    assert resp1.status_code == 201
    assert resp2.status_code == 201
    assert resp1.json()["id"] == resp2.json()["id"]


# ---------------------------------------------------------------------------
# 2. Retitle collisions
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_update_post_slug_collision_handled(async_client: AsyncClient, admin_headers: dict):
    """Updating a title to match another post's slug yields a suffixed slug."""
    resp1 = await async_client.post(
        "/api/posts",
        json={"title": "First Post", "content": "A", "published": True},
        headers=admin_headers,
    )
    assert resp1.status_code == 201

    resp2 = await async_client.post(
        "/api/posts",
        json={"title": "Second Post", "content": "B", "published": True},
        headers=admin_headers,
    )
    post2_id = resp2.json()["id"]

    resp = await async_client.put(
        f"/api/posts/{post2_id}", json={"title": "First Post"}, headers=admin_headers
    )
    assert resp.status_code == 200
    assert resp.json()["slug"] == "first-post-1"


# ---------------------------------------------------------------------------
# 3. Query count is independent of page contents
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_query_count_does_not_grow_with_posts(async_client: AsyncClient, admin_headers: dict):
    """
    The list endpoint issues COUNT + page SELECT + one selectinload for the
    tags of the whole page, whatever the number of posts.
    """
    await async_client.post(
        "/api/posts",
        json={"title": "QC 0", "content": "c", "tags": ["a"], "published": True},
        headers=admin_headers,
    )
    resp = await async_client.get("/api/posts")
    assert resp.status_code == 200
    baseline = int(resp.headers["x-query-count"])
    assert baseline > 0

    for i in range(1, 8):
        await async_client.post(
            "/api/posts",
            json={"title": f"QC {i}", "content": "c", "tags": ["a", f"t{i}"], "published": True},
            headers=admin_headers,
        )
    resp = await async_client.get("/api/posts")
    assert resp.json()["total"] == 8
    assert int(resp.headers["x-query-count"]) == baseline


# ---------------------------------------------------------------------------
# 4. CORS headers
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_cors_no_credentials_with_wildcard_origin(async_client: AsyncClient):
    """
    When allow_origins=["*"], the response must NOT include
    Access-Control-Allow-Credentials: true, per the CORS specification.
    """
    resp = await async_client.options(
        "/api/posts",
        headers={
            "Origin": "https://example.com",
            "Access-Control-Request-Method": "GET",
        },
    )
    cred_header = resp.headers.get("access-control-allow-credentials", "").lower()
    assert cred_header != "true", (
        "CORS must not combine allow_origins=* with allow_credentials=true"
    )


# ---------------------------------------------------------------------------
# 5. Cascades
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_delete_post_cascades_to_comments(db_session: AsyncSession):
    post = await post_service.create_post(
        db_session, PostCreate(title="Cascade", content="c", tags=["x"], published=True)
    )
    await comment_service.create_comment(
        db_session, post["id"], CommentCreate(email="a@example.com", content="hi")
    )

    await post_service.delete_post(db_session, post["id"])

    comments = (await db_session.execute(select(func.count()).select_from(Comment))).scalar_one()
    links = (await db_session.execute(select(func.count()).select_from(post_tags))).scalar_one()
    assert comments == 0
    assert links == 0

"""
Blogroll link endpoint tests.
"""
import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_link_crud(async_client: AsyncClient, admin_headers: dict):
    resp = await async_client.post(
        "/api/links",
        json={"name": "Python", "url": "https://www.python.org", "description": "Docs"},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    link = resp.json()
    assert link["name"] == "Python"
    assert link["description"] == "Docs"

    fetched = await async_client.get(f"/api/links/{link['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["url"] == "https://www.python.org"

    updated = await async_client.put(
        f"/api/links/{link['id']}", json={"url": "https://python.org"}, headers=admin_headers
    )
    assert updated.status_code == 200
    assert updated.json()["url"] == "https://python.org"
    assert updated.json()["name"] == "Python"
    assert updated.json()["description"] == "Docs"

    deleted = await async_client.delete(f"/api/links/{link['id']}", headers=admin_headers)
    assert deleted.status_code == 204
    assert (await async_client.get(f"/api/links/{link['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_update_link_can_clear_description(async_client: AsyncClient, admin_headers: dict):
    link = (await async_client.post(
        "/api/links",
        json={"name": "Blog", "url": "https://example.com", "description": "old"},
        headers=admin_headers,
    )).json()

    resp = await async_client.put(
        f"/api/links/{link['id']}", json={"description": None, "name": None}, headers=admin_headers
    )
    assert resp.status_code == 200
    assert resp.json()["description"] is None
    assert resp.json()["name"] == "Blog"


@pytest.mark.asyncio
async def test_list_links_sorted_by_name(async_client: AsyncClient, admin_headers: dict):
    for name in ["zed", "alpha", "mid"]:
        await async_client.post(
            "/api/links", json={"name": name, "url": f"https://{name}.example"}, headers=admin_headers
        )
    resp = await async_client.get("/api/links")
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 3
    assert [link["name"] for link in data["items"]] == ["alpha", "mid", "zed"]


@pytest.mark.asyncio
async def test_link_writes_require_admin(async_client: AsyncClient):
    resp = await async_client.post("/api/links", json={"name": "x", "url": "https://x"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_missing_link_is_404(async_client: AsyncClient, admin_headers: dict):
    assert (await async_client.get("/api/links/42")).status_code == 404
    resp = await async_client.put("/api/links/42", json={"name": "x"}, headers=admin_headers)
    assert resp.status_code == 404
    assert (await async_client.delete("/api/links/42", headers=admin_headers)).status_code == 404

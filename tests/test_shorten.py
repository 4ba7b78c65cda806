"""Shorten endpoint behavior tests."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_shorten_with_random_slug(client: AsyncClient, premium_user, auth_headers, settings) -> None:
    response = await client.post(
        "/api/shorten",
        json={"originalUrl": "https://www.google.com", "useRandomSlug": True},
        headers=auth_headers(premium_user),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["originalUrl"] == "https://www.google.com"
    assert len(data["urlId"]) == 8
    assert data["urlId"].isalnum()
    assert data["shortUrl"] == f"{settings.BASE_URL}/{data['urlId']}"
    assert data["customSlug"] is None
    assert data["clicks"] == 0
    assert "createdAt" in data


@pytest.mark.asyncio
async def test_shorten_with_custom_slug(client: AsyncClient, premium_user, auth_headers) -> None:
    response = await client.post(
        "/api/shorten",
        json={"originalUrl": "https://www.github.com", "customSlug": "my_code-1"},
        headers=auth_headers(premium_user),
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["urlId"] == "my_code-1"
    assert data["customSlug"] == "my_code-1"


@pytest.mark.asyncio
async def test_shorten_default_slug(client: AsyncClient, premium_user, auth_headers, settings) -> None:
    response = await client.post(
        "/api/shorten",
        json={"originalUrl": "https://www.python.org"},
        headers=auth_headers(premium_user),
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data["urlId"]) == settings.DEFAULT_SLUG_LENGTH
    assert data["customSlug"] is None


@pytest.mark.asyncio
async def test_shorten_duplicate_custom_slug(client: AsyncClient, premium_user, other_user, auth_headers) -> None:
    await client.post(
        "/api/shorten",
        json={"originalUrl": "https://www.github.com", "customSlug": "taken1"},
        headers=auth_headers(premium_user),
    )
    response = await client.post(
        "/api/shorten",
        json={"originalUrl": "https://www.example.com", "customSlug": "taken1"},
        headers=auth_headers(other_user),
    )
    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "kind": "slug_conflict",
        "message": "Slug 'taken1' is already in use",
    }


@pytest.mark.asyncio
async def test_shorten_bad_slug_format(client: AsyncClient, premium_user, auth_headers) -> None:
    response = await client.post(
        "/api/shorten",
        json={"originalUrl": "https://www.github.com", "customSlug": "my code!"},
        headers=auth_headers(premium_user),
    )
    assert response.status_code == 400
    assert response.json()["kind"] == "invalid_slug_format"


@pytest.mark.asyncio
async def test_shorten_invalid_url(client: AsyncClient, premium_user, auth_headers) -> None:
    response = await client.post(
        "/api/shorten",
        json={"originalUrl": "not-a-url"},
        headers=auth_headers(premium_user),
    )
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["kind"] == "invalid_url"


@pytest.mark.asyncio
async def test_shorten_missing_url(client: AsyncClient, premium_user, auth_headers) -> None:
    response = await client.post("/api/shorten", json={}, headers=auth_headers(premium_user))
    assert response.status_code == 400
    assert response.json()["kind"] == "validation_error"


@pytest.mark.asyncio
async def test_shorten_requires_premium(client: AsyncClient, free_user, auth_headers) -> None:
    response = await client.post(
        "/api/shorten",
        json={"originalUrl": "https://www.google.com"},
        headers=auth_headers(free_user),
    )
    assert response.status_code == 403
    assert response.json()["kind"] == "plan_required"


@pytest.mark.asyncio
async def test_shorten_quota_exceeded(client: AsyncClient, make_user, auth_headers, fetch_user, count_links) -> None:
    user = await make_user("maxed", link_count=2, max_links=2)
    response = await client.post(
        "/api/shorten",
        json={"originalUrl": "https://www.google.com", "useRandomSlug": True},
        headers=auth_headers(user),
    )
    assert response.status_code == 400
    assert response.json()["kind"] == "quota_exceeded"
    assert await count_links() == 0
    assert (await fetch_user(user.id)).link_count == 2


@pytest.mark.asyncio
async def test_shorten_increments_link_count(client: AsyncClient, premium_user, auth_headers) -> None:
    for slug in ("one", "two"):
        await client.post(
            "/api/shorten",
            json={"originalUrl": "https://www.google.com", "customSlug": slug},
            headers=auth_headers(premium_user),
        )

    me = await client.get("/api/me", headers=auth_headers(premium_user))
    assert me.json()["data"]["linkCount"] == 2


@pytest.mark.asyncio
async def test_shorten_requires_authentication(client: AsyncClient) -> None:
    response = await client.post("/api/shorten", json={"originalUrl": "https://www.google.com"})
    assert response.status_code == 401
    assert response.json()["kind"] == "unauthorized"


@pytest.mark.asyncio
async def test_shorten_rejects_bad_token(client: AsyncClient) -> None:
    response = await client.post(
        "/api/shorten",
        json={"originalUrl": "https://www.google.com"},
        headers={"Authorization": "Bearer not.a.token"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_shorten_accepts_cookie_token(client: AsyncClient, premium_user, settings) -> None:
    from linkshortener.auth import create_access_token

    client.cookies.set("token", create_access_token(premium_user.id, settings))
    response = await client.post("/api/shorten", json={"originalUrl": "https://www.google.com"})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_shorten_multiple_urls_get_unique_slugs(client: AsyncClient, premium_user, auth_headers) -> None:
    urls = [
        "https://www.google.com",
        "https://www.github.com",
        "https://www.python.org",
    ]
    codes = set()
    for url in urls:
        response = await client.post(
            "/api/shorten",
            json={"originalUrl": url, "useRandomSlug": True},
            headers=auth_headers(premium_user),
        )
        assert response.status_code == 200
        codes.add(response.json()["data"]["urlId"])
    assert len(codes) == 3

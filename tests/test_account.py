"""Account endpoint tests: profile, plan upgrade and premium expiry."""

import datetime

import pytest
from httpx import AsyncClient

from linkshortener.enums import UserPlan


@pytest.mark.asyncio
async def test_me(client: AsyncClient, premium_user, auth_headers) -> None:
    response = await client.get("/api/me", headers=auth_headers(premium_user))
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["username"] == "alice"
    assert data["plan"] == UserPlan.PREMIUM.value
    assert data["linkCount"] == 0


@pytest.mark.asyncio
async def test_upgrade_premium(client: AsyncClient, free_user, auth_headers, settings) -> None:
    headers = auth_headers(free_user)
    response = await client.post("/api/upgrade-premium", headers=headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["plan"] == UserPlan.PREMIUM.value
    assert data["maxLinks"] == settings.PREMIUM_PLAN_MAX_LINKS

    shorten = await client.post("/api/shorten", json={"originalUrl": "https://www.google.com"}, headers=headers)
    assert shorten.status_code == 200


@pytest.mark.asyncio
async def test_expired_premium_is_downgraded(client: AsyncClient, make_user, auth_headers, fetch_user, settings) -> None:
    expired = datetime.datetime.now(datetime.timezone.utc) - datetime.timedelta(days=1)
    user = await make_user("lapsed", premium_expiry=expired)

    response = await client.post(
        "/api/shorten",
        json={"originalUrl": "https://www.google.com"},
        headers=auth_headers(user),
    )
    assert response.status_code == 403
    assert response.json()["kind"] == "plan_required"

    stored = await fetch_user(user.id)
    assert stored.plan == UserPlan.FREE.value
    assert stored.max_links == settings.FREE_PLAN_MAX_LINKS


@pytest.mark.asyncio
async def test_future_premium_expiry_is_kept(client: AsyncClient, make_user, auth_headers) -> None:
    later = datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(days=30)
    user = await make_user("current", premium_expiry=later)

    response = await client.get("/api/me", headers=auth_headers(user))
    assert response.json()["data"]["plan"] == UserPlan.PREMIUM.value


@pytest.mark.asyncio
async def test_disabled_account_is_rejected(client: AsyncClient, make_user, auth_headers) -> None:
    user = await make_user("banned", is_active=False)
    response = await client.get("/api/me", headers=auth_headers(user))
    assert response.status_code == 401
    assert response.json()["kind"] == "unauthorized"


@pytest.mark.asyncio
async def test_token_for_missing_account(client: AsyncClient, settings) -> None:
    from linkshortener.auth import create_access_token

    response = await client.get("/api/me", headers={"Authorization": f"Bearer {create_access_token(424242, settings)}"})
    assert response.status_code == 401

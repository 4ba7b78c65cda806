"""Shared pytest fixtures for API, service and store tests."""

import os

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("BASE_URL", "http://sho.rt")
os.environ.setdefault("JWT_SECRET", "test-secret")

import datetime
from typing import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from linkshortener.auth import create_access_token
from linkshortener.config import Settings, get_settings
from linkshortener.database import Base, get_db
from linkshortener.dependencies import RequestContext, get_service_manager
from linkshortener.enums import UserPlan, UserRole
from linkshortener.link_service import LinkService
from linkshortener.main import app
from linkshortener.models import Link, User

TEST_DATABASE_URL = "sqlite+aiosqlite://"

SessionFactory = async_sessionmaker[AsyncSession]


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest_asyncio.fixture(scope="function")
async def session_factory() -> AsyncGenerator[SessionFactory, None]:
    # One in-memory database per test; StaticPool shares it across sessions.
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory: SessionFactory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(session_factory: SessionFactory) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def make_service() -> AsyncGenerator[Callable[[AsyncSession], LinkService], None]:
    manager = await get_service_manager()

    def factory(session: AsyncSession) -> LinkService:
        return LinkService.from_context(RequestContext(database=session, service_manager=manager))

    yield factory


@pytest_asyncio.fixture
async def link_service(db_session: AsyncSession, make_service) -> LinkService:
    return make_service(db_session)


@pytest.fixture
def make_user(session_factory: SessionFactory, settings: Settings) -> Callable[..., Awaitable[User]]:
    async def factory(
        username: str,
        *,
        plan: UserPlan = UserPlan.PREMIUM,
        role: UserRole = UserRole.USER,
        link_count: int = 0,
        max_links: int | None = None,
        is_active: bool = True,
        premium_expiry: datetime.datetime | None = None,
    ) -> User:
        async with session_factory() as session:
            user = User(
                username=username,
                email=f"{username}@example.com",
                full_name=username.title(),
                plan=plan.value,
                role=role.value,
                link_count=link_count,
                max_links=max_links if max_links is not None else settings.max_links_for(plan),
                is_active=is_active,
                premium_expiry=premium_expiry,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return factory


@pytest_asyncio.fixture
async def premium_user(make_user) -> User:
    return await make_user("alice")


@pytest_asyncio.fixture
async def other_user(make_user) -> User:
    return await make_user("bob")


@pytest_asyncio.fixture
async def free_user(make_user) -> User:
    return await make_user("carol", plan=UserPlan.FREE)


@pytest_asyncio.fixture
async def admin_user(make_user) -> User:
    return await make_user("root", role=UserRole.ADMIN)


@pytest.fixture
def auth_headers(settings: Settings) -> Callable[[User], dict[str, str]]:
    def build(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id, settings)}"}

    return build


@pytest.fixture
def fetch_link(session_factory: SessionFactory) -> Callable[[str], Awaitable[Link | None]]:
    """Read a link through a fresh session so no identity-map state leaks in."""

    async def fetch(url_id: str) -> Link | None:
        async with session_factory() as session:
            result = await session.execute(select(Link).where(Link.url_id == url_id))
            return result.scalar_one_or_none()

    return fetch


@pytest.fixture
def fetch_user(session_factory: SessionFactory) -> Callable[[int], Awaitable[User | None]]:
    async def fetch(user_id: int) -> User | None:
        async with session_factory() as session:
            return await session.get(User, user_id)

    return fetch


@pytest.fixture
def count_links(session_factory: SessionFactory) -> Callable[[], Awaitable[int]]:
    async def count() -> int:
        async with session_factory() as session:
            result = await session.execute(select(Link))
            return len(result.scalars().all())

    return count

"""
Pytest configuration and fixtures.
"""

import os

# Must be set before adlink reads its configuration
os.environ.setdefault("ADLINK_ENV", "test")

from collections.abc import AsyncGenerator
from dataclasses import dataclass

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from adlink.common.database import Base, get_session
from adlink.models import (
    AdStatus,
    AdType,
    Advertisement,
    AdvertisementCategory,
    Advertiser,
    AppRole,
    Category,
    ContentLink,
    ContentLinkBlockedCategory,
    ContentLinkCategory,
    ContentProvider,
    UserRole,
)
from adlink.server.main import create_app

# Test database URL (use SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

PROVIDER_USER = "provider-1"
ADVERTISER_USER = "advertiser-1"
ADMIN_USER = "admin-1"
SHORT_CODE = "Ab3xY9zK"
ORIGINAL_URL = "https://example.com/article"


@dataclass
class SeedData:
    """Rows created by the ``seed`` fixture."""

    provider: ContentProvider
    advertiser: Advertiser
    link: ContentLink
    tech_ad: Advertisement
    gambling_ad: Advertisement
    categories: dict[str, Category]


@pytest_asyncio.fixture(scope="function")
async def test_db() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    # One shared connection, or every checkout sees a fresh empty database
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def app(test_db: AsyncSession) -> AsyncGenerator[FastAPI, None]:
    """Application with its database dependency bound to the test session."""
    application = create_app()

    async def override_get_session() -> AsyncGenerator[AsyncSession, None]:
        yield test_db

    application.dependency_overrides[get_session] = override_get_session

    yield application

    application.state.gateway_registry.close()
    await application.state.sessions.close()
    application.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database override."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def seed(test_db: AsyncSession) -> SeedData:
    """
    One provider link tagged "technology" that blocks "gambling", and two
    active ads: one technology, one gambling. Plus an admin role grant.
    """
    categories = {
        slug: Category(name=name, slug=slug)
        for name, slug in [
            ("Technology", "technology"),
            ("Gambling", "gambling"),
            ("Travel", "travel"),
        ]
    }
    test_db.add_all(categories.values())

    provider = ContentProvider(user_id=PROVIDER_USER, organization_name="Demo Publishing")
    advertiser = Advertiser(user_id=ADVERTISER_USER, company_name="Demo Gadgets")
    test_db.add_all([provider, advertiser])
    test_db.add(UserRole(user_id=ADMIN_USER, role=AppRole.ADMIN.value))
    await test_db.flush()

    link = ContentLink(
        provider_id=provider.id,
        original_url=ORIGINAL_URL,
        short_code=SHORT_CODE,
        title="Demo article",
        description="Something worth reading",
        view_count=0,
        click_count=0,
        is_active=True,
    )
    tech_ad = Advertisement(
        advertiser_id=advertiser.id,
        title="New laptops",
        ad_type=AdType.IMAGE.value,
        image_url="https://shop.example.com/banner.png",
        click_url="https://shop.example.com/laptops",
        status=AdStatus.ACTIVE.value,
        view_count=0,
        click_count=0,
    )
    gambling_ad = Advertisement(
        advertiser_id=advertiser.id,
        title="Lucky spins",
        ad_type=AdType.HTML.value,
        html_content="<h2>Spin to win</h2>",
        click_url="https://casino.example.com",
        status=AdStatus.ACTIVE.value,
        view_count=0,
        click_count=0,
    )
    test_db.add_all([link, tech_ad, gambling_ad])
    await test_db.flush()

    test_db.add_all([
        ContentLinkCategory(content_link_id=link.id, category_id=categories["technology"].id),
        ContentLinkBlockedCategory(content_link_id=link.id, category_id=categories["gambling"].id),
        AdvertisementCategory(advertisement_id=tech_ad.id, category_id=categories["technology"].id),
        AdvertisementCategory(
            advertisement_id=gambling_ad.id, category_id=categories["gambling"].id
        ),
    ])
    await test_db.commit()

    for obj in [provider, advertiser, link, tech_ad, gambling_ad, *categories.values()]:
        await test_db.refresh(obj)

    return SeedData(
        provider=provider,
        advertiser=advertiser,
        link=link,
        tech_ad=tech_ad,
        gambling_ad=gambling_ad,
        categories=categories,
    )


@pytest.fixture
def provider_headers() -> dict[str, str]:
    return {"X-User-Id": PROVIDER_USER}


@pytest.fixture
def advertiser_headers() -> dict[str, str]:
    return {"X-User-Id": ADVERTISER_USER}


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-User-Id": ADMIN_USER}

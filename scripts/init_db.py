#!/usr/bin/env python3
"""
Database initialisation script.

Creates tables and optionally seeds categories plus a demo content
provider, advertiser and admin.

Usage:
    python scripts/init_db.py [--drop-existing] [--seed]
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select

from adlink.common.config import get_settings
from adlink.common.database import create_tables, db, drop_tables
from adlink.common.logger import get_logger

logger = get_logger(__name__)

CATEGORIES = [
    ("Technology", "technology"),
    ("Finance", "finance"),
    ("Gaming", "gaming"),
    ("Gambling", "gambling"),
    ("Health", "health"),
    ("News", "news"),
    ("Travel", "travel"),
]


async def seed_data() -> None:
    """Seed categories and demo tenants for development."""
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

    logger.info("Seeding demo data...")

    async with db.session() as session:
        result = await session.execute(select(Category).limit(1))
        if result.scalar():
            logger.info("Data already exists, skipping seed")
            return

        # ------------------------------------------------------------------
        # Categories
        # ------------------------------------------------------------------
        categories = {slug: Category(name=name, slug=slug) for name, slug in CATEGORIES}
        session.add_all(categories.values())
        await session.flush()
        logger.info("Categories created", count=len(categories))

        # ------------------------------------------------------------------
        # Tenants
        # ------------------------------------------------------------------
        provider = ContentProvider(
            user_id="demo-provider",
            organization_name="Demo Publishing",
            website_domain="example.com",
            contact_email="publisher@example.com",
        )
        advertiser = Advertiser(
            user_id="demo-advertiser",
            company_name="Demo Gadgets",
            website_url="https://shop.example.com",
            contact_email="ads@example.com",
        )
        session.add_all([provider, advertiser])
        session.add(UserRole(user_id="demo-admin", role=AppRole.ADMIN.value))
        await session.flush()

        # ------------------------------------------------------------------
        # Links and ads
        # ------------------------------------------------------------------
        link = ContentLink(
            provider_id=provider.id,
            original_url="https://example.com/article",
            short_code="Ab3xY9zK",
            title="Demo article",
            description="Seeded content link",
        )
        ads = [
            Advertisement(
                advertiser_id=advertiser.id,
                title="New laptops",
                ad_type=AdType.IMAGE.value,
                image_url="https://shop.example.com/banner.png",
                click_url="https://shop.example.com/laptops",
                status=AdStatus.ACTIVE.value,
            ),
            Advertisement(
                advertiser_id=advertiser.id,
                title="Lucky spins",
                ad_type=AdType.HTML.value,
                html_content="<h2>Spin to win</h2>",
                click_url="https://casino.example.com",
                status=AdStatus.ACTIVE.value,
            ),
        ]
        session.add(link)
        session.add_all(ads)
        await session.flush()

        session.add_all([
            ContentLinkCategory(
                content_link_id=link.id, category_id=categories["technology"].id
            ),
            ContentLinkBlockedCategory(
                content_link_id=link.id, category_id=categories["gambling"].id
            ),
            AdvertisementCategory(
                advertisement_id=ads[0].id, category_id=categories["technology"].id
            ),
            AdvertisementCategory(
                advertisement_id=ads[1].id, category_id=categories["gambling"].id
            ),
        ])

    logger.info("Database seeding completed", short_code="Ab3xY9zK")


async def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Initialize the AdLink database")
    parser.add_argument(
        "--drop-existing",
        action="store_true",
        help="Drop existing tables before creating",
    )
    parser.add_argument(
        "--seed",
        action="store_true",
        help="Seed categories and demo tenants",
    )

    args = parser.parse_args()

    settings = get_settings()
    logger.info(
        "Initializing database",
        host=settings.database.host,
        port=settings.database.port,
    )

    await db.init()
    try:
        if args.drop_existing:
            logger.warning("Dropping existing tables...")
            await drop_tables()
        await create_tables()

        if args.seed:
            await seed_data()
    finally:
        await db.close()

    logger.info("Database initialization complete")


if __name__ == "__main__":
    asyncio.run(main())

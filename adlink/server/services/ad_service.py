"""
Advertisement management for advertisers.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from adlink.common.logger import get_logger
from adlink.common.exceptions import NotFoundError
from adlink.models import AdStatus, Advertisement, Advertiser
from adlink.schemas.request import AdCreate
from adlink.server.services.category_service import CategoryService

logger = get_logger(__name__)


class AdService:
    """An advertiser's ads: list, create, change status."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_ads(self, advertiser: Advertiser) -> list[Advertisement]:
        result = await self.session.execute(
            select(Advertisement)
            .where(Advertisement.advertiser_id == advertiser.id)
            .order_by(Advertisement.created_at.desc(), Advertisement.id.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get_owned_ad(self, advertiser: Advertiser, ad_id: int) -> Advertisement:
        """Fetch an ad owned by ``advertiser``; other tenants' ads are 404."""
        ad = await self.session.get(Advertisement, ad_id)
        if ad is None or ad.advertiser_id != advertiser.id:
            raise NotFoundError(f"Advertisement {ad_id} not found")
        return ad

    async def create_ad(self, advertiser: Advertiser, body: AdCreate) -> Advertisement:
        categories = CategoryService(self.session)
        await categories.ensure_exist(body.category_ids)

        ad = Advertisement(
            advertiser_id=advertiser.id,
            title=body.title,
            ad_type=body.ad_type.value,
            image_url=body.image_url,
            html_content=body.html_content,
            click_url=body.click_url,
            status=AdStatus.ACTIVE.value,
            budget=Decimal("0"),
            spent=Decimal("0"),
            view_count=0,
            click_count=0,
        )
        self.session.add(ad)
        await self.session.flush()
        await self.session.refresh(ad)

        if body.category_ids:
            await categories.set_ad_categories(ad.id, body.category_ids)

        logger.info("Advertisement created", ad_id=ad.id, advertiser_id=advertiser.id)
        return ad

    async def set_status(self, ad: Advertisement, status: AdStatus) -> Advertisement:
        ad.status = status.value
        await self.session.flush()
        await self.session.refresh(ad)
        logger.info("Advertisement status changed", ad_id=ad.id, status=status.value)
        return ad

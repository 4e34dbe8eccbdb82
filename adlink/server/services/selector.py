"""
Ad selection for the gateway.

Eligible ads are active and carry none of the link's blocked categories.
Ads sharing a tag category with the link are preferred; the pick within
the chosen pool is uniform.
"""

from __future__ import annotations

import time

from sqlalchemy import Select, exists, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from adlink.common.exceptions import SelectorUnavailableError
from adlink.common.logger import get_logger
from adlink.models import (
    AdStatus,
    Advertisement,
    AdvertisementCategory,
    ContentLinkBlockedCategory,
    ContentLinkCategory,
)
from adlink.schemas.internal import AdCreative
from adlink.server.middleware.metrics import record_selection_latency

logger = get_logger(__name__)


class AdSelectorService:
    """Picks one advertisement for a content link."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def select_for_link(self, content_link_id: int) -> AdCreative | None:
        """
        Choose an ad to show on ``content_link_id``.

        Returns None when nothing is eligible. Raises
        SelectorUnavailableError when the store cannot be queried.
        """
        start = time.perf_counter()
        blocked = select(ContentLinkBlockedCategory.category_id).where(
            ContentLinkBlockedCategory.content_link_id == content_link_id
        )
        tags = select(ContentLinkCategory.category_id).where(
            ContentLinkCategory.content_link_id == content_link_id
        )

        candidates = self._active().where(
            ~exists().where(
                AdvertisementCategory.advertisement_id == Advertisement.id,
                AdvertisementCategory.category_id.in_(blocked),
            )
        )
        matching = candidates.where(
            exists().where(
                AdvertisementCategory.advertisement_id == Advertisement.id,
                AdvertisementCategory.category_id.in_(tags),
            )
        )

        try:
            ad = await self._pick(matching)
            if ad is None:
                ad = await self._pick(candidates)
        except SQLAlchemyError as e:
            logger.error("Ad selection query failed", content_link_id=content_link_id, error=str(e))
            raise SelectorUnavailableError("Ad selection unavailable") from e
        finally:
            record_selection_latency(time.perf_counter() - start)

        if ad is None:
            return None

        logger.debug("Ad selected", content_link_id=content_link_id, advertisement_id=ad.id)
        return AdCreative.model_validate(ad)

    async def select_any(self) -> AdCreative | None:
        """Uniform pick among all active ads."""
        try:
            ad = await self._pick(self._active())
        except SQLAlchemyError as e:
            raise SelectorUnavailableError("Ad selection unavailable") from e
        return AdCreative.model_validate(ad) if ad is not None else None

    @staticmethod
    def _active() -> Select:
        return select(Advertisement).where(Advertisement.status == AdStatus.ACTIVE.value)

    async def _pick(self, query: Select) -> Advertisement | None:
        result = await self.session.execute(query.order_by(func.random()).limit(1))
        return result.scalar_one_or_none()

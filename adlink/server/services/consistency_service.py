"""
Counter consistency checker.

Recounts ad_impressions and content_clicks and compares the totals with
the denormalized view_count / click_count columns on content_links and
advertisements.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from adlink.common.logger import get_logger
from adlink.common.utils import Timer, current_datetime
from adlink.models import AdImpression, Advertisement, ContentClick, ContentLink
from adlink.schemas.response import ConsistencyReport, DiscrepancyOut
from adlink.server.middleware.metrics import record_consistency_check

logger = get_logger(__name__)

_TABLES: dict[str, Any] = {
    ContentLink.__tablename__: ContentLink,
    Advertisement.__tablename__: Advertisement,
}


class ConsistencyService:
    """Audit (and optionally repair) the view / click counters."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def check(self) -> ConsistencyReport:
        """Return one discrepancy per counter that differs from its event count."""
        with Timer("consistency_check") as timer:
            discrepancies = await self._find_discrepancies()

        record_consistency_check(len(discrepancies), timer.elapsed_ms / 1000)
        logger.info(
            "Counter consistency checked",
            discrepancies=len(discrepancies),
            duration_ms=round(timer.elapsed_ms, 2),
        )
        return ConsistencyReport(
            consistent=not discrepancies,
            checked_at=current_datetime(),
            discrepancies=discrepancies,
        )

    async def repair(self) -> ConsistencyReport:
        """Overwrite every mismatched counter with the actual event count."""
        report = await self.check()
        for d in report.discrepancies:
            model = _TABLES[d.table]
            await self.session.execute(
                update(model).where(model.id == d.record_id).values({d.counter: d.actual_count})
            )
        await self.session.flush()

        if report.discrepancies:
            logger.warning("Counters repaired", repaired=len(report.discrepancies))
        report.repaired = True
        return report

    async def _find_discrepancies(self) -> list[DiscrepancyOut]:
        impressions_by_link = await self._count(AdImpression, AdImpression.content_link_id)
        impressions_by_ad = await self._count(AdImpression, AdImpression.advertisement_id)
        clicks_by_link = await self._count(ContentClick, ContentClick.content_link_id)
        clicks_by_ad = await self._count(ContentClick, ContentClick.advertisement_id)

        found: list[DiscrepancyOut] = []
        found += await self._compare(ContentLink, impressions_by_link, clicks_by_link)
        found += await self._compare(Advertisement, impressions_by_ad, clicks_by_ad)
        return found

    async def _count(self, model: Any, column: Any) -> dict[int, int]:
        result = await self.session.execute(
            select(column, func.count(model.id)).where(column.is_not(None)).group_by(column)
        )
        return {row_id: count for row_id, count in result.all()}

    async def _compare(
        self,
        model: Any,
        views: dict[int, int],
        clicks: dict[int, int],
    ) -> list[DiscrepancyOut]:
        result = await self.session.execute(
            select(model.id, model.view_count, model.click_count).order_by(model.id)
        )
        found = []
        for record_id, view_count, click_count in result.all():
            for counter, stored, actual in (
                ("view_count", view_count, views.get(record_id, 0)),
                ("click_count", click_count, clicks.get(record_id, 0)),
            ):
                if stored != actual:
                    found.append(
                        DiscrepancyOut(
                            table=model.__tablename__,
                            record_id=record_id,
                            counter=counter,
                            stored_count=stored,
                            actual_count=actual,
                            discrepancy=stored - actual,
                        )
                    )
        return found

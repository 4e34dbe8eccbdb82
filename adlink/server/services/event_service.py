"""
Impression and click recording.

Each event row is written together with the matching increments of the
denormalized view/click counters, in the same transaction, so the
counters stay equal to the event row counts.
"""

from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from adlink.common.exceptions import EventWriteError
from adlink.common.logger import get_logger
from adlink.models import AdImpression, Advertisement, ContentClick, ContentLink
from adlink.server.middleware.metrics import (
    record_content_click,
    record_event_write_failure,
    record_impression,
)

logger = get_logger(__name__)


class EventService:
    """Append-only event writer for the gateway."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record_impression(
        self,
        *,
        advertisement_id: int,
        content_link_id: int,
        user_agent: str | None = None,
        visitor_ip: str | None = None,
    ) -> None:
        """Insert one ad_impressions row and bump both view counters."""
        try:
            self.session.add(
                AdImpression(
                    advertisement_id=advertisement_id,
                    content_link_id=content_link_id,
                    user_agent=_clip(user_agent),
                    visitor_ip=visitor_ip,
                )
            )
            await self.session.execute(
                update(ContentLink)
                .where(ContentLink.id == content_link_id)
                .values(view_count=ContentLink.view_count + 1)
            )
            await self.session.execute(
                update(Advertisement)
                .where(Advertisement.id == advertisement_id)
                .values(view_count=Advertisement.view_count + 1)
            )
            await self.session.flush()
        except SQLAlchemyError as e:
            await self._fail("impression", e, content_link_id, advertisement_id)

        record_impression()
        logger.info(
            "Impression recorded",
            content_link_id=content_link_id,
            advertisement_id=advertisement_id,
        )

    async def record_click(
        self,
        *,
        content_link_id: int,
        advertisement_id: int | None,
        user_agent: str | None = None,
        visitor_ip: str | None = None,
    ) -> None:
        """Insert one content_clicks row and bump the click counters."""
        try:
            self.session.add(
                ContentClick(
                    content_link_id=content_link_id,
                    advertisement_id=advertisement_id,
                    user_agent=_clip(user_agent),
                    visitor_ip=visitor_ip,
                )
            )
            await self.session.execute(
                update(ContentLink)
                .where(ContentLink.id == content_link_id)
                .values(click_count=ContentLink.click_count + 1)
            )
            if advertisement_id is not None:
                await self.session.execute(
                    update(Advertisement)
                    .where(Advertisement.id == advertisement_id)
                    .values(click_count=Advertisement.click_count + 1)
                )
            await self.session.flush()
        except SQLAlchemyError as e:
            await self._fail("click", e, content_link_id, advertisement_id)

        record_content_click()
        logger.info(
            "Content click recorded",
            content_link_id=content_link_id,
            advertisement_id=advertisement_id,
        )

    async def _fail(
        self,
        event_type: str,
        error: SQLAlchemyError,
        content_link_id: int,
        advertisement_id: int | None,
    ) -> None:
        await self.session.rollback()
        record_event_write_failure(event_type)
        logger.error(
            "Event write failed",
            event_type=event_type,
            content_link_id=content_link_id,
            advertisement_id=advertisement_id,
            error=str(error),
        )
        raise EventWriteError(
            f"Failed to record {event_type}",
            details={"content_link_id": content_link_id, "advertisement_id": advertisement_id},
        ) from error


def _clip(user_agent: str | None) -> str | None:
    # user_agent column is String(512)
    return user_agent[:512] if user_agent else user_agent

"""
Content link service.

Resolves short codes for the gateway and manages a provider's links.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from adlink.common.cache import CacheKeys, redis_client
from adlink.common.config import get_settings
from adlink.common.exceptions import DatabaseError, NotFoundError, ShortCodeCollisionError
from adlink.common.logger import get_logger
from adlink.gateway.shortcode import generate_short_code
from adlink.models import ContentLink, ContentProvider
from adlink.schemas.internal import LinkTarget
from adlink.schemas.request import LinkCreate
from adlink.server.middleware.metrics import record_cache_hit, record_cache_miss
from adlink.server.services.category_service import CategoryService

logger = get_logger(__name__)


class LinkService:
    """Short-code lookup and provider link management."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.settings = get_settings()

    # ------------------------------------------------------------------
    # Gateway lookup
    # ------------------------------------------------------------------

    async def resolve(self, short_code: str) -> LinkTarget | None:
        """
        Find the active link with exactly this short code.

        Returns None for unknown or inactive codes. Raises DatabaseError when
        the store cannot be queried.
        """
        cache_key = CacheKeys.content_link(short_code)
        cached = await redis_client.get_json(cache_key)
        if cached is not None:
            record_cache_hit("content_link")
            return LinkTarget.model_validate(cached)
        record_cache_miss("content_link")

        try:
            result = await self.session.execute(
                select(ContentLink).where(
                    ContentLink.short_code == short_code,
                    ContentLink.is_active.is_(True),
                )
            )
            link = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatabaseError("Content link lookup failed", details={"error": str(e)}) from e

        if link is None:
            return None

        target = LinkTarget.model_validate(link)
        await redis_client.set_json(
            cache_key, target.model_dump(), ttl=self.settings.gateway.link_cache_ttl
        )
        return target

    # ------------------------------------------------------------------
    # Provider management
    # ------------------------------------------------------------------

    async def list_links(self, provider: ContentProvider) -> list[ContentLink]:
        result = await self.session.execute(
            select(ContentLink)
            .where(ContentLink.provider_id == provider.id)
            .order_by(ContentLink.created_at.desc(), ContentLink.id.desc())
            # Counters move through SQL-side increments
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get_owned_link(self, provider: ContentProvider, link_id: int) -> ContentLink:
        """Fetch a link owned by ``provider``; other tenants' links are 404."""
        link = await self.session.get(ContentLink, link_id)
        if link is None or link.provider_id != provider.id:
            raise NotFoundError(f"Content link {link_id} not found")
        return link

    async def create_link(self, provider: ContentProvider, body: LinkCreate) -> ContentLink:
        """
        Create a link with a freshly generated short code.

        A code collision is reported, not retried.
        """
        categories = CategoryService(self.session)
        # Validate ids before anything is written
        await categories.ensure_exist(body.category_ids)
        await categories.ensure_exist(body.blocked_category_ids)

        short_code = generate_short_code(self.settings.gateway.short_code_length)
        link = ContentLink(
            provider_id=provider.id,
            original_url=body.original_url,
            short_code=short_code,
            title=body.title,
            description=body.description,
            view_count=0,
            click_count=0,
            is_active=True,
        )
        self.session.add(link)
        try:
            await self.session.flush()
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning("Short code collision", short_code=short_code)
            raise ShortCodeCollisionError(
                "Short code already in use, try again",
                details={"short_code": short_code},
            ) from e

        await self.session.refresh(link)

        if body.category_ids:
            await categories.set_tags(link.id, body.category_ids)
        if body.blocked_category_ids:
            await categories.set_blocked(link.id, body.blocked_category_ids)

        logger.info(
            "Content link created",
            link_id=link.id,
            provider_id=provider.id,
            short_code=link.short_code,
        )
        return link

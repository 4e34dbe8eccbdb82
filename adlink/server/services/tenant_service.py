"""
Tenant profiles and role checks.
"""

from __future__ import annotations

from typing import Literal

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from adlink.common.cache import CacheKeys, redis_client
from adlink.common.config import get_settings
from adlink.common.exceptions import DatabaseError, ProfileNotFoundError
from adlink.common.logger import get_logger
from adlink.common.session import AuthSession, SessionEvent
from adlink.models import Advertiser, AppRole, ContentProvider, UserRole
from adlink.server.middleware.metrics import record_cache_hit, record_cache_miss

logger = get_logger(__name__)

ProfileKind = Literal["content_provider", "advertiser"]


class TenantService:
    """Looks up a user's tenant profile and role grants."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.settings = get_settings()

    async def get_provider(self, user_id: str) -> ContentProvider | None:
        result = await self.session.execute(
            select(ContentProvider).where(ContentProvider.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_advertiser(self, user_id: str) -> Advertiser | None:
        result = await self.session.execute(
            select(Advertiser).where(Advertiser.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_profile(
        self, user_id: str
    ) -> tuple[ProfileKind, ContentProvider | Advertiser]:
        """
        Resolve which dashboard a user gets.

        A content-provider profile wins over an advertiser profile.

        Raises:
            ProfileNotFoundError: The user has neither profile.
        """
        provider = await self.get_provider(user_id)
        if provider is not None:
            return "content_provider", provider
        advertiser = await self.get_advertiser(user_id)
        if advertiser is not None:
            return "advertiser", advertiser
        raise ProfileNotFoundError(
            "No content provider or advertiser profile", details={"user_id": user_id}
        )

    async def get_roles(self, user_id: str) -> list[str]:
        cache_key = CacheKeys.user_roles(user_id)
        cached = await redis_client.get_json(cache_key)
        if cached is not None:
            record_cache_hit("user_roles")
            return cached
        record_cache_miss("user_roles")

        try:
            result = await self.session.execute(
                select(UserRole.role).where(UserRole.user_id == user_id).order_by(UserRole.role)
            )
        except SQLAlchemyError as e:
            raise DatabaseError("Role lookup failed", details={"error": str(e)}) from e
        roles = list(result.scalars().all())

        await redis_client.set_json(cache_key, roles, ttl=self.settings.auth.role_cache_ttl)
        return roles

    async def has_role(self, user_id: str, role: AppRole) -> bool:
        return role.value in await self.get_roles(user_id)


async def drop_cached_roles(event: SessionEvent, session: AuthSession) -> None:
    """Session listener: forget cached roles when a user signs out."""
    if event == SessionEvent.SIGNED_OUT:
        await redis_client.delete(CacheKeys.user_roles(session.user_id))
        logger.debug("Cached roles dropped", user_id=session.user_id)

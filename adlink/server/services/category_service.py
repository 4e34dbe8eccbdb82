"""
Category service.

Owns the category list and the three association sets: link tags, link
blocked categories and ad categories. Every ``set_*`` call replaces the
whole set by diffing against what is stored, inside the caller's
transaction.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from adlink.common.exceptions import DuplicateCategoryError, ValidationError
from adlink.common.logger import get_logger
from adlink.common.utils import dedupe
from adlink.models import (
    AdvertisementCategory,
    Category,
    ContentLinkBlockedCategory,
    ContentLinkCategory,
)

logger = get_logger(__name__)


class CategoryService:
    """Category list and association management."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def list_categories(self) -> list[Category]:
        result = await self.session.execute(select(Category).order_by(Category.name))
        return list(result.scalars().all())

    async def create_category(self, name: str, slug: str) -> Category:
        existing = await self.session.execute(select(Category.id).where(Category.slug == slug))
        if existing.scalar_one_or_none() is not None:
            raise DuplicateCategoryError(f"Category slug '{slug}' already exists")

        category = Category(name=name, slug=slug)
        self.session.add(category)
        try:
            await self.session.flush()
        except IntegrityError as e:
            await self.session.rollback()
            raise DuplicateCategoryError(f"Category slug '{slug}' already exists") from e
        await self.session.refresh(category)

        logger.info("Category created", category_id=category.id, slug=slug)
        return category

    async def ensure_exist(self, category_ids: Iterable[int]) -> None:
        """Raise ValidationError naming any id with no category row."""
        wanted = set(category_ids)
        if not wanted:
            return
        result = await self.session.execute(select(Category.id).where(Category.id.in_(wanted)))
        missing = sorted(wanted - set(result.scalars().all()))
        if missing:
            raise ValidationError("Unknown category ids", details={"category_ids": missing})

    # ------------------------------------------------------------------
    # Link tags
    # ------------------------------------------------------------------

    async def get_tags(self, content_link_id: int) -> list[int]:
        return await self._get_ids(ContentLinkCategory, "content_link_id", content_link_id)

    async def set_tags(self, content_link_id: int, category_ids: list[int]) -> list[int]:
        return await self._replace(
            ContentLinkCategory, "content_link_id", content_link_id, category_ids
        )

    # ------------------------------------------------------------------
    # Link blocked categories
    # ------------------------------------------------------------------

    async def get_blocked(self, content_link_id: int) -> list[int]:
        return await self._get_ids(ContentLinkBlockedCategory, "content_link_id", content_link_id)

    async def set_blocked(self, content_link_id: int, category_ids: list[int]) -> list[int]:
        return await self._replace(
            ContentLinkBlockedCategory, "content_link_id", content_link_id, category_ids
        )

    # ------------------------------------------------------------------
    # Ad categories
    # ------------------------------------------------------------------

    async def get_ad_categories(self, advertisement_id: int) -> list[int]:
        return await self._get_ids(AdvertisementCategory, "advertisement_id", advertisement_id)

    async def set_ad_categories(self, advertisement_id: int, category_ids: list[int]) -> list[int]:
        return await self._replace(
            AdvertisementCategory, "advertisement_id", advertisement_id, category_ids
        )

    # ------------------------------------------------------------------
    # Batch reads for listings
    # ------------------------------------------------------------------

    async def tags_by_link(self, link_ids: list[int]) -> dict[int, list[int]]:
        return await self._ids_by_owner(ContentLinkCategory, "content_link_id", link_ids)

    async def blocked_by_link(self, link_ids: list[int]) -> dict[int, list[int]]:
        return await self._ids_by_owner(ContentLinkBlockedCategory, "content_link_id", link_ids)

    async def categories_by_ad(self, ad_ids: list[int]) -> dict[int, list[int]]:
        return await self._ids_by_owner(AdvertisementCategory, "advertisement_id", ad_ids)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_ids(self, model: Any, owner_field: str, owner_id: int) -> list[int]:
        owner_col = getattr(model, owner_field)
        result = await self.session.execute(
            select(model.category_id).where(owner_col == owner_id).order_by(model.category_id)
        )
        return list(result.scalars().all())

    async def _ids_by_owner(
        self, model: Any, owner_field: str, owner_ids: list[int]
    ) -> dict[int, list[int]]:
        grouped: dict[int, list[int]] = defaultdict(list)
        if not owner_ids:
            return grouped
        owner_col = getattr(model, owner_field)
        result = await self.session.execute(
            select(owner_col, model.category_id)
            .where(owner_col.in_(owner_ids))
            .order_by(owner_col, model.category_id)
        )
        for owner_id, category_id in result.all():
            grouped[owner_id].append(category_id)
        return grouped

    async def _replace(
        self, model: Any, owner_field: str, owner_id: int, category_ids: list[int]
    ) -> list[int]:
        """
        Make the stored set equal ``category_ids``.

        Only the difference is written: removed ids are deleted, new ids
        inserted. Duplicates in the input collapse; an empty input clears.
        """
        wanted = dedupe(category_ids)
        await self.ensure_exist(wanted)

        current = set(await self._get_ids(model, owner_field, owner_id))
        to_remove = current - set(wanted)
        to_add = [cid for cid in wanted if cid not in current]

        owner_col = getattr(model, owner_field)
        if to_remove:
            await self.session.execute(
                delete(model).where(owner_col == owner_id, model.category_id.in_(to_remove))
            )
        for cid in to_add:
            self.session.add(model(**{owner_field: owner_id, "category_id": cid}))
        await self.session.flush()

        logger.debug(
            "Category set replaced",
            table=model.__tablename__,
            owner_id=owner_id,
            added=len(to_add),
            removed=len(to_remove),
        )
        return sorted(wanted)

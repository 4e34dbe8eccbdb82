"""
Categories and their many-to-many association tables.

- content_link_categories: what a link is about (tags)
- content_link_blocked_categories: ad categories never shown on a link
- advertisement_categories: what an ad is about
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from adlink.models.base import Base


class Category(Base):
    """Flat category, no hierarchy."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=func.now(), nullable=False
    )


class ContentLinkCategory(Base):
    """Tag association between a content link and a category."""

    __tablename__ = "content_link_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content_link_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("content_links.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("content_link_id", "category_id", name="uq_content_link_category"),
    )


class ContentLinkBlockedCategory(Base):
    """Brand-safety exclusion: ads in this category never show on the link."""

    __tablename__ = "content_link_blocked_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content_link_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("content_links.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "content_link_id", "category_id", name="uq_content_link_blocked_category"
        ),
    )


class AdvertisementCategory(Base):
    """Category association for an advertisement."""

    __tablename__ = "advertisement_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    advertisement_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("advertisements.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("advertisement_id", "category_id", name="uq_advertisement_category"),
    )

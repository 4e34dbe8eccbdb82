"""
Append-only event rows: the ground truth for view / click counters.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from adlink.models.base import Base


class AdImpression(Base):
    """One ad shown on one gateway visit."""

    __tablename__ = "ad_impressions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    advertisement_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("advertisements.id", ondelete="CASCADE"), nullable=False
    )
    content_link_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("content_links.id", ondelete="CASCADE"), nullable=False
    )
    visitor_ip: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_ad_impressions_content_link", "content_link_id"),
        Index("ix_ad_impressions_advertisement", "advertisement_id"),
    )


class ContentClick(Base):
    """Visitor proceeding from the gateway to the original content."""

    __tablename__ = "content_clicks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content_link_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("content_links.id", ondelete="CASCADE"), nullable=False
    )
    advertisement_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("advertisements.id", ondelete="SET NULL"), nullable=True
    )
    visitor_ip: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_content_clicks_content_link", "content_link_id"),
        Index("ix_content_clicks_advertisement", "advertisement_id"),
    )

"""
Advertisement model.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from adlink.models.base import AdStatus, AdType, Base, TimestampMixin


class Advertisement(Base, TimestampMixin):
    """Image or HTML ad shown on the gateway page."""

    __tablename__ = "advertisements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    advertiser_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("advertisers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)

    # Creative: exactly one of image_url / html_content, per ad_type
    ad_type: Mapped[str] = mapped_column(String(10), default=AdType.IMAGE.value, nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    html_content: Mapped[str | None] = mapped_column(Text, nullable=True)
    click_url: Mapped[str] = mapped_column(String(2048), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), default=AdStatus.ACTIVE.value, nullable=False, index=True
    )

    budget: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    spent: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)

    # Denormalized counters; must equal the event row counts for this ad
    view_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    click_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    advertiser: Mapped["Advertiser"] = relationship(  # noqa: F821
        "Advertiser", back_populates="advertisements"
    )

    @property
    def is_active(self) -> bool:
        return self.status == AdStatus.ACTIVE.value

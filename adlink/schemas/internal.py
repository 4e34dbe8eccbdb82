"""
Internal schemas passed between the gateway and the services.

These are plain records detached from the ORM session, so a gateway visit
can outlive the request that opened it.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class LinkTarget(BaseModel):
    """Resolved content link, as the gateway needs it."""

    model_config = {"from_attributes": True}

    id: int
    short_code: str
    original_url: str
    title: str
    description: str | None = None


class AdCreative(BaseModel):
    """Advertisement chosen for a gateway visit."""

    model_config = {"from_attributes": True}

    id: int
    advertiser_id: int
    title: str
    ad_type: str = Field(..., description="image or html")
    image_url: str | None = None
    html_content: str | None = None
    click_url: str

"""
API response schemas.

One typed record per entity; nothing leaves the API as an untyped row.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

class CategoryOut(BaseModel):
    id: int
    name: str
    slug: str
    model_config = {"from_attributes": True}


class ContentProviderOut(BaseModel):
    id: int
    user_id: str
    organization_name: str
    website_domain: str | None = None
    contact_email: str | None = None
    created_at: datetime | None = None
    model_config = {"from_attributes": True}


class AdvertiserOut(BaseModel):
    id: int
    user_id: str
    company_name: str
    website_url: str | None = None
    contact_email: str | None = None
    created_at: datetime | None = None
    model_config = {"from_attributes": True}


class ContentLinkOut(BaseModel):
    id: int
    provider_id: int
    original_url: str
    short_code: str
    short_url: str | None = Field(None, description="{origin}/g/{short_code}")
    title: str
    description: str | None = None
    view_count: int
    click_count: int
    is_active: bool
    category_ids: list[int] = Field(default_factory=list)
    blocked_category_ids: list[int] = Field(default_factory=list)
    created_at: datetime | None = None
    model_config = {"from_attributes": True}


class AdvertisementOut(BaseModel):
    id: int
    advertiser_id: int
    title: str
    ad_type: str
    image_url: str | None = None
    html_content: str | None = None
    click_url: str
    status: str
    view_count: int
    click_count: int
    category_ids: list[int] = Field(default_factory=list)
    created_at: datetime | None = None
    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

class DashboardTotals(BaseModel):
    items: int = Field(0, description="Links or ads owned")
    views: int = 0
    clicks: int = 0
    ctr: float = Field(0.0, description="clicks / views")


class DashboardResponse(BaseModel):
    """Role-dependent dashboard: exactly one of provider / advertiser is set."""

    role: Literal["content_provider", "advertiser"]
    provider: ContentProviderOut | None = None
    advertiser: AdvertiserOut | None = None
    links: list[ContentLinkOut] = Field(default_factory=list)
    ads: list[AdvertisementOut] = Field(default_factory=list)
    totals: DashboardTotals


class SessionResponse(BaseModel):
    user_id: str
    started_at: datetime
    roles: list[str] = Field(default_factory=list)
    profile: Literal["content_provider", "advertiser"] | None = None


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------

class GatewayAdOut(BaseModel):
    id: int
    title: str
    ad_type: str
    image_url: str | None = None
    html_content: str | None = None


class GatewayVisitResponse(BaseModel):
    """Snapshot of a gateway visit."""

    visit_id: str
    short_code: str
    title: str
    description: str | None = None
    state: str = Field(..., description="ready / continued")
    ad: GatewayAdOut | None = None
    remaining_seconds: int
    countdown_seconds: int
    can_continue: bool
    auto_navigate: bool
    continue_url: str
    ad_click_url: str | None = None


class ContinueResponse(BaseModel):
    redirect_url: str
    click_recorded: bool


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------

class DiscrepancyOut(BaseModel):
    table: str = Field(..., description="content_links or advertisements")
    record_id: int
    counter: str = Field(..., description="view_count or click_count")
    stored_count: int
    actual_count: int
    discrepancy: int = Field(..., description="stored_count - actual_count")


class ConsistencyReport(BaseModel):
    consistent: bool
    checked_at: datetime
    repaired: bool = False
    discrepancies: list[DiscrepancyOut] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Generic
# ---------------------------------------------------------------------------

class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str = Field(..., description="Service status")
    version: str = Field(..., description="Service version")
    database: bool = Field(..., description="Database connection status")
    redis: bool = Field(..., description="Redis connection status")


class ErrorResponse(BaseModel):
    """Error response schema."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: dict[str, Any] | None = Field(None, description="Error details")

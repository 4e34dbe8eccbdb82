"""
API request schemas.
"""

from __future__ import annotations

import re
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator, model_validator

from adlink.models.base import AdStatus, AdType

_SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def _check_http_url(value: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("must be an absolute http(s) URL")
    return value


class LinkCreate(BaseModel):
    """New short link for the signed-in content provider."""

    original_url: str = Field(..., max_length=2048, description="URL the gateway leads to")
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, description="Shown on the gateway page")
    category_ids: list[int] = Field(default_factory=list, description="Tag categories")
    blocked_category_ids: list[int] = Field(
        default_factory=list, description="Ad categories never shown on this link"
    )

    @field_validator("original_url")
    @classmethod
    def validate_original_url(cls, v: str) -> str:
        return _check_http_url(v)

    @field_validator("description")
    @classmethod
    def blank_description_is_none(cls, v: str | None) -> str | None:
        return v or None


class CategoryIdsUpdate(BaseModel):
    """Full replacement of a category association set."""

    category_ids: list[int] = Field(default_factory=list)


class AdCreate(BaseModel):
    """New advertisement for the signed-in advertiser."""

    title: str = Field(..., min_length=1, max_length=255)
    ad_type: AdType = Field(AdType.IMAGE)
    image_url: str | None = Field(None, max_length=2048)
    html_content: str | None = None
    click_url: str = Field(..., max_length=2048, description="Advertiser landing page")
    category_ids: list[int] = Field(default_factory=list)

    @field_validator("click_url")
    @classmethod
    def validate_click_url(cls, v: str) -> str:
        return _check_http_url(v)

    @model_validator(mode="after")
    def check_creative(self) -> "AdCreate":
        """Exactly one creative field, matching ad_type."""
        if self.ad_type == AdType.IMAGE:
            if not self.image_url:
                raise ValueError("image ads need image_url")
            if self.html_content:
                raise ValueError("image ads cannot carry html_content")
            _check_http_url(self.image_url)
        else:
            if not self.html_content:
                raise ValueError("html ads need html_content")
            if self.image_url:
                raise ValueError("html ads cannot carry image_url")
        return self


class AdStatusUpdate(BaseModel):
    status: AdStatus


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: str = Field(..., min_length=1, max_length=100)

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str) -> str:
        if not _SLUG_RE.match(v):
            raise ValueError("slug must be lowercase letters, digits and hyphens")
        return v

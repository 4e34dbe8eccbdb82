"""
Database models for AdLink.
"""

from adlink.models.ad import Advertisement
from adlink.models.base import (
    AdStatus,
    AdType,
    AppRole,
    Base,
    TimestampMixin,
)
from adlink.models.category import (
    AdvertisementCategory,
    Category,
    ContentLinkBlockedCategory,
    ContentLinkCategory,
)
from adlink.models.event import AdImpression, ContentClick
from adlink.models.link import ContentLink
from adlink.models.tenant import Advertiser, ContentProvider, UserRole

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # Enums
    "AdType",
    "AdStatus",
    "AppRole",
    # Tenants
    "ContentProvider",
    "Advertiser",
    "UserRole",
    # Links & ads
    "ContentLink",
    "Advertisement",
    # Categories
    "Category",
    "ContentLinkCategory",
    "ContentLinkBlockedCategory",
    "AdvertisementCategory",
    # Events
    "AdImpression",
    "ContentClick",
]

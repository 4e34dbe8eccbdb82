"""
Pydantic schemas for AdLink API requests and responses.
"""

from adlink.schemas.internal import AdCreative, LinkTarget
from adlink.schemas.request import (
    AdCreate,
    AdStatusUpdate,
    CategoryCreate,
    CategoryIdsUpdate,
    LinkCreate,
)
from adlink.schemas.response import (
    AdvertisementOut,
    AdvertiserOut,
    CategoryOut,
    ConsistencyReport,
    ContentLinkOut,
    ContentProviderOut,
    ContinueResponse,
    DashboardResponse,
    DashboardTotals,
    DiscrepancyOut,
    ErrorResponse,
    GatewayAdOut,
    GatewayVisitResponse,
    HealthResponse,
    SessionResponse,
)

__all__ = [
    # Request schemas
    "LinkCreate",
    "CategoryIdsUpdate",
    "AdCreate",
    "AdStatusUpdate",
    "CategoryCreate",
    # Response schemas
    "CategoryOut",
    "ContentProviderOut",
    "AdvertiserOut",
    "ContentLinkOut",
    "AdvertisementOut",
    "DashboardTotals",
    "DashboardResponse",
    "SessionResponse",
    "GatewayAdOut",
    "GatewayVisitResponse",
    "ContinueResponse",
    "DiscrepancyOut",
    "ConsistencyReport",
    "HealthResponse",
    "ErrorResponse",
    # Internal schemas
    "LinkTarget",
    "AdCreative",
]

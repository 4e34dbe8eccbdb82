"""
Tenant dashboards.

Endpoints:
    GET   /api/v1/dashboard                                 – Role-dependent overview
    LINKS (content providers)
        GET   /api/v1/dashboard/links                       – List own links
        POST  /api/v1/dashboard/links                       – Create short link
        PUT   /api/v1/dashboard/links/{id}/categories       – Replace tag set
        PUT   /api/v1/dashboard/links/{id}/blocked-categories – Replace blocked set
    ADS (advertisers)
        GET   /api/v1/dashboard/ads                         – List own ads
        POST  /api/v1/dashboard/ads                         – Upload ad
        PATCH /api/v1/dashboard/ads/{id}/status             – Activate / deactivate
        PUT   /api/v1/dashboard/ads/{id}/categories         – Replace category set
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from adlink.common.config import get_settings
from adlink.common.database import get_session
from adlink.common.logger import get_logger
from adlink.common.session import AuthSession
from adlink.common.utils import safe_divide
from adlink.gateway.shortcode import build_short_url
from adlink.models import Advertisement, Advertiser, ContentLink, ContentProvider
from adlink.schemas.request import AdCreate, AdStatusUpdate, CategoryIdsUpdate, LinkCreate
from adlink.schemas.response import (
    AdvertisementOut,
    AdvertiserOut,
    ContentLinkOut,
    ContentProviderOut,
    DashboardResponse,
    DashboardTotals,
)
from adlink.server.deps import (
    current_user,
    get_tenant_service,
    require_advertiser,
    require_provider,
)
from adlink.server.services.ad_service import AdService
from adlink.server.services.category_service import CategoryService
from adlink.server.services.link_service import LinkService
from adlink.server.services.tenant_service import TenantService

logger = get_logger(__name__)
router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _origin(request: Request) -> str:
    return get_settings().gateway.public_origin or str(request.base_url)


def _totals(items: list[ContentLink] | list[Advertisement]) -> DashboardTotals:
    views = sum(item.view_count for item in items)
    clicks = sum(item.click_count for item in items)
    return DashboardTotals(
        items=len(items),
        views=views,
        clicks=clicks,
        ctr=round(safe_divide(clicks, views), 4),
    )


async def _links_out(
    session: AsyncSession, links: list[ContentLink], origin: str
) -> list[ContentLinkOut]:
    categories = CategoryService(session)
    ids = [link.id for link in links]
    tags = await categories.tags_by_link(ids)
    blocked = await categories.blocked_by_link(ids)
    return [
        ContentLinkOut.model_validate(link).model_copy(
            update={
                "short_url": build_short_url(origin, link.short_code),
                "category_ids": tags.get(link.id, []),
                "blocked_category_ids": blocked.get(link.id, []),
            }
        )
        for link in links
    ]


async def _ads_out(session: AsyncSession, ads: list[Advertisement]) -> list[AdvertisementOut]:
    by_ad = await CategoryService(session).categories_by_ad([ad.id for ad in ads])
    return [
        AdvertisementOut.model_validate(ad).model_copy(
            update={"category_ids": by_ad.get(ad.id, [])}
        )
        for ad in ads
    ]


# ---------------------------------------------------------------------------
# Overview
# ---------------------------------------------------------------------------

@router.get("", response_model=DashboardResponse)
async def dashboard(
    request: Request,
    user: AuthSession = Depends(current_user),
    tenants: TenantService = Depends(get_tenant_service),
    session: AsyncSession = Depends(get_session),
) -> DashboardResponse:
    """Content providers get their links, advertisers their ads."""
    kind, profile = await tenants.get_profile(user.user_id)

    if kind == "content_provider":
        links = await LinkService(session).list_links(profile)
        return DashboardResponse(
            role=kind,
            provider=ContentProviderOut.model_validate(profile),
            links=await _links_out(session, links, _origin(request)),
            totals=_totals(links),
        )

    ads = await AdService(session).list_ads(profile)
    return DashboardResponse(
        role=kind,
        advertiser=AdvertiserOut.model_validate(profile),
        ads=await _ads_out(session, ads),
        totals=_totals(ads),
    )


# ---------------------------------------------------------------------------
# Links
# ---------------------------------------------------------------------------

@router.get("/links", response_model=list[ContentLinkOut])
async def list_links(
    request: Request,
    provider: ContentProvider = Depends(require_provider),
    session: AsyncSession = Depends(get_session),
) -> list[ContentLinkOut]:
    links = await LinkService(session).list_links(provider)
    return await _links_out(session, links, _origin(request))


@router.post("/links", response_model=ContentLinkOut, status_code=201)
async def create_link(
    body: LinkCreate,
    request: Request,
    provider: ContentProvider = Depends(require_provider),
    session: AsyncSession = Depends(get_session),
) -> ContentLinkOut:
    """Wrap a URL in a new short link."""
    link = await LinkService(session).create_link(provider, body)
    (out,) = await _links_out(session, [link], _origin(request))
    return out


@router.put("/links/{link_id}/categories", response_model=ContentLinkOut)
async def set_link_categories(
    link_id: int,
    body: CategoryIdsUpdate,
    request: Request,
    provider: ContentProvider = Depends(require_provider),
    session: AsyncSession = Depends(get_session),
) -> ContentLinkOut:
    link = await LinkService(session).get_owned_link(provider, link_id)
    await CategoryService(session).set_tags(link.id, body.category_ids)
    (out,) = await _links_out(session, [link], _origin(request))
    return out


@router.put("/links/{link_id}/blocked-categories", response_model=ContentLinkOut)
async def set_link_blocked_categories(
    link_id: int,
    body: CategoryIdsUpdate,
    request: Request,
    provider: ContentProvider = Depends(require_provider),
    session: AsyncSession = Depends(get_session),
) -> ContentLinkOut:
    """Ads in these categories are never shown on the link."""
    link = await LinkService(session).get_owned_link(provider, link_id)
    await CategoryService(session).set_blocked(link.id, body.category_ids)
    (out,) = await _links_out(session, [link], _origin(request))
    return out


# ---------------------------------------------------------------------------
# Ads
# ---------------------------------------------------------------------------

@router.get("/ads", response_model=list[AdvertisementOut])
async def list_ads(
    advertiser: Advertiser = Depends(require_advertiser),
    session: AsyncSession = Depends(get_session),
) -> list[AdvertisementOut]:
    ads = await AdService(session).list_ads(advertiser)
    return await _ads_out(session, ads)


@router.post("/ads", response_model=AdvertisementOut, status_code=201)
async def create_ad(
    body: AdCreate,
    advertiser: Advertiser = Depends(require_advertiser),
    session: AsyncSession = Depends(get_session),
) -> AdvertisementOut:
    ad = await AdService(session).create_ad(advertiser, body)
    (out,) = await _ads_out(session, [ad])
    return out


@router.patch("/ads/{ad_id}/status", response_model=AdvertisementOut)
async def update_ad_status(
    ad_id: int,
    body: AdStatusUpdate,
    advertiser: Advertiser = Depends(require_advertiser),
    session: AsyncSession = Depends(get_session),
) -> AdvertisementOut:
    service = AdService(session)
    ad = await service.set_status(await service.get_owned_ad(advertiser, ad_id), body.status)
    (out,) = await _ads_out(session, [ad])
    return out


@router.put("/ads/{ad_id}/categories", response_model=AdvertisementOut)
async def set_ad_categories(
    ad_id: int,
    body: CategoryIdsUpdate,
    advertiser: Advertiser = Depends(require_advertiser),
    session: AsyncSession = Depends(get_session),
) -> AdvertisementOut:
    ad = await AdService(session).get_owned_ad(advertiser, ad_id)
    await CategoryService(session).set_ad_categories(ad.id, body.category_ids)
    (out,) = await _ads_out(session, [ad])
    return out

"""
JSON gateway API for clients that render the interstitial themselves.

Endpoints:
    GET  /api/v1/gateway/{short_code}               – Open a visit
    GET  /api/v1/gateway/visits/{visit_id}          – Current visit state
    POST /api/v1/gateway/visits/{visit_id}/continue – Continue, returns redirect_url
    GET  /api/v1/gateway/visits/{visit_id}/ad       – 302 to the advertiser click URL
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from adlink.common.exceptions import ContentNotFoundError, DatabaseError
from adlink.common.logger import log_context
from adlink.gateway.controller import GatewayState
from adlink.gateway.registry import Visit
from adlink.schemas.response import ContinueResponse, GatewayAdOut, GatewayVisitResponse
from adlink.server.deps import get_gateway_service
from adlink.server.services.gateway_service import GatewayService

router = APIRouter()

PREFIX = "/api/v1/gateway"


def _visit_response(visit: Visit) -> GatewayVisitResponse:
    controller = visit.controller
    link = controller.link
    assert link is not None

    ad = None
    ad_click_url = None
    if controller.ad is not None:
        ad = GatewayAdOut(
            id=controller.ad.id,
            title=controller.ad.title,
            ad_type=controller.ad.ad_type,
            image_url=controller.ad.image_url,
            html_content=controller.ad.html_content,
        )
        ad_click_url = f"{PREFIX}/visits/{visit.visit_id}/ad"

    return GatewayVisitResponse(
        visit_id=visit.visit_id,
        short_code=link.short_code,
        title=link.title,
        description=link.description,
        state=controller.state.value,
        ad=ad,
        remaining_seconds=controller.remaining,
        countdown_seconds=controller.countdown_seconds,
        can_continue=controller.can_continue,
        auto_navigate=controller.auto_navigate,
        continue_url=f"{PREFIX}/visits/{visit.visit_id}/continue",
        ad_click_url=ad_click_url,
    )


@router.get("/visits/{visit_id}", response_model=GatewayVisitResponse)
async def get_visit(
    visit_id: str,
    service: GatewayService = Depends(get_gateway_service),
) -> GatewayVisitResponse:
    return _visit_response(service.get(visit_id))


@router.post("/visits/{visit_id}/continue", response_model=ContinueResponse)
async def continue_visit(
    visit_id: str,
    service: GatewayService = Depends(get_gateway_service),
) -> ContinueResponse:
    """409 while the countdown is still running."""
    log_context(visit_id=visit_id)
    result = await service.proceed(visit_id)
    return ContinueResponse(redirect_url=result.redirect_url, click_recorded=result.click_recorded)


@router.get("/visits/{visit_id}/ad")
async def visit_ad_click_through(
    visit_id: str,
    service: GatewayService = Depends(get_gateway_service),
) -> RedirectResponse:
    return RedirectResponse(service.ad_click_through(visit_id), status_code=302)


@router.get("/{short_code}", response_model=GatewayVisitResponse)
async def open_visit(
    short_code: str,
    request: Request,
    service: GatewayService = Depends(get_gateway_service),
) -> GatewayVisitResponse:
    """Resolve the short code, pick an ad and start the countdown."""
    log_context(short_code=short_code)
    state, visit = await service.open(short_code, user_agent=request.headers.get("user-agent"))
    if state == GatewayState.ERROR:
        raise DatabaseError("Content lookup failed", details={"short_code": short_code})
    if visit is None:
        raise ContentNotFoundError("Content not found", details={"short_code": short_code})
    return _visit_response(visit)

"""
Gateway pages.

Endpoints:
    GET  /g/{short_code}                     – Interstitial page (302 to / when unknown)
    POST /g/{short_code}/continue?visit=     – 303 to the original URL (expired visit: back to the page)
    GET  /g/{short_code}/ad?visit=           – 302 to the advertiser click URL
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from adlink.common.config import get_settings
from adlink.common.exceptions import VisitNotFoundError
from adlink.common.logger import get_logger, log_context
from adlink.gateway.page import render_gateway_page
from adlink.gateway.shortcode import is_short_code
from adlink.server.deps import get_gateway_service
from adlink.server.services.gateway_service import GatewayService

logger = get_logger(__name__)
router = APIRouter()


def _home() -> RedirectResponse:
    return RedirectResponse("/", status_code=302)


def _reopen(short_code: str) -> RedirectResponse:
    """Send a visitor whose visit is gone back to a fresh interstitial."""
    if not is_short_code(short_code, get_settings().gateway.short_code_length):
        return _home()
    return RedirectResponse(f"/g/{short_code}", status_code=302)


@router.get("/{short_code}", response_class=HTMLResponse)
async def gateway_page(
    short_code: str,
    request: Request,
    service: GatewayService = Depends(get_gateway_service),
):
    """Show the ad interstitial for a short link."""
    log_context(short_code=short_code)
    _, visit = await service.open(short_code, user_agent=request.headers.get("user-agent"))
    if visit is None:
        return _home()

    controller = visit.controller
    ad_url = f"/g/{short_code}/ad?visit={visit.visit_id}" if controller.ad else None
    html = render_gateway_page(
        controller,
        continue_url=f"/g/{short_code}/continue?visit={visit.visit_id}",
        ad_url=ad_url,
    )
    return HTMLResponse(html, headers={"Cache-Control": "no-store"})


@router.post("/{short_code}/continue")
async def continue_to_content(
    short_code: str,
    visit: str = Query(..., description="Visit id from the gateway page"),
    service: GatewayService = Depends(get_gateway_service),
):
    """Record the click (when an ad was shown) and send the visitor on."""
    log_context(short_code=short_code, visit_id=visit)
    try:
        result = await service.proceed(visit, short_code=short_code)
    except VisitNotFoundError:
        return _reopen(short_code)
    return RedirectResponse(result.redirect_url, status_code=303)


@router.get("/{short_code}/ad")
async def ad_click_through(
    short_code: str,
    visit: str = Query(...),
    service: GatewayService = Depends(get_gateway_service),
):
    """Open the advertiser page; the countdown keeps running."""
    try:
        url = service.ad_click_through(visit, short_code=short_code)
    except VisitNotFoundError:
        return _reopen(short_code)
    return RedirectResponse(url, status_code=302)

"""
Gateway service: wires a visit's controller to the database services.

The controller itself is session-free; each request hands it fresh
collaborators bound to that request's session.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from adlink.common.config import get_settings
from adlink.common.exceptions import NotFoundError, VisitNotFoundError
from adlink.common.logger import get_logger
from adlink.gateway.controller import GatewayState, ProceedResult
from adlink.gateway.registry import GatewayRegistry, Visit
from adlink.server.middleware.metrics import (
    record_ad_clickthrough,
    record_gateway_visit,
    set_open_visits,
)
from adlink.server.services.event_service import EventService
from adlink.server.services.link_service import LinkService
from adlink.server.services.selector import AdSelectorService

logger = get_logger(__name__)


class GatewayService:
    """Opens, continues and inspects gateway visits."""

    def __init__(self, session: AsyncSession, registry: GatewayRegistry):
        self.session = session
        self.registry = registry
        self.settings = get_settings()

    async def open(
        self, short_code: str, user_agent: str | None = None
    ) -> tuple[GatewayState, Visit | None]:
        """
        Load a gateway page for ``short_code``.

        Returns the terminal or READY state, plus the registered visit when
        the page is READY. NOT_FOUND and ERROR visits are not kept.
        """
        controller = self.registry.new_controller(short_code, user_agent=user_agent)
        state = await controller.load(
            LinkService(self.session),
            AdSelectorService(self.session),
            EventService(self.session),
        )

        if state != GatewayState.READY:
            record_gateway_visit(state.value)
            return state, None

        record_gateway_visit("ready_ad" if controller.ad is not None else "ready_no_ad")
        visit = self.registry.register(controller)
        set_open_visits(len(self.registry))
        logger.info(
            "Gateway visit opened",
            visit_id=visit.visit_id,
            short_code=short_code,
            advertisement_id=controller.ad.id if controller.ad else None,
        )
        return state, visit

    def get(self, visit_id: str, short_code: str | None = None) -> Visit:
        """Look up a live visit, optionally checking it belongs to ``short_code``."""
        visit = self.registry.get(visit_id)
        if short_code is not None and visit.controller.short_code != short_code:
            raise VisitNotFoundError("Visit not found or expired", details={"visit_id": visit_id})
        return visit

    async def proceed(self, visit_id: str, short_code: str | None = None) -> ProceedResult:
        """Continue past the interstitial. The visit stays so repeats are click-free."""
        visit = self.get(visit_id, short_code)
        result = await visit.controller.proceed(EventService(self.session))
        logger.info(
            "Gateway continued",
            visit_id=visit_id,
            click_recorded=result.click_recorded,
        )
        return result

    def ad_click_through(self, visit_id: str, short_code: str | None = None) -> str:
        """Advertiser URL for a click on the ad body."""
        visit = self.get(visit_id, short_code)
        url = visit.controller.ad_click_through()
        if url is None:
            raise NotFoundError("No advertisement on this visit", details={"visit_id": visit_id})

        if self.settings.gateway.track_ad_clickthrough:
            record_ad_clickthrough()
            logger.info(
                "Ad click-through",
                visit_id=visit_id,
                advertisement_id=visit.controller.ad.id if visit.controller.ad else None,
            )
        return url

"""
In-process registry of live gateway visits.

A visit is opened on the gateway page load and looked up again when the
visitor continues or clicks the ad. Expired visits are pruned and their
countdowns canceled.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass, field

from adlink.common.config import GatewaySettings
from adlink.common.exceptions import VisitNotFoundError
from adlink.common.logger import get_logger
from adlink.common.utils import generate_visit_id
from adlink.gateway.controller import GatewayController

logger = get_logger(__name__)


@dataclass
class Visit:
    visit_id: str
    controller: GatewayController
    opened_at: float = field(default_factory=time.monotonic)


class GatewayRegistry:
    """Owns every open visit; closed together with the application."""

    def __init__(self, settings: GatewaySettings):
        self.settings = settings
        self._visits: OrderedDict[str, Visit] = OrderedDict()

    def __len__(self) -> int:
        return len(self._visits)

    def new_controller(self, short_code: str, user_agent: str | None = None) -> GatewayController:
        """Build a controller configured from the gateway settings."""
        return GatewayController(
            short_code,
            countdown_seconds=self.settings.countdown_seconds,
            tick_interval=self.settings.tick_interval,
            auto_navigate=self.settings.auto_navigate,
            user_agent=user_agent,
        )

    def register(self, controller: GatewayController) -> Visit:
        self.prune()
        while len(self._visits) >= self.settings.max_visits:
            _, oldest = self._visits.popitem(last=False)
            oldest.controller.close()
        visit = Visit(visit_id=generate_visit_id(), controller=controller)
        self._visits[visit.visit_id] = visit
        return visit

    def get(self, visit_id: str) -> Visit:
        visit = self._visits.get(visit_id)
        if visit is None or self._expired(visit):
            if visit is not None:
                self.discard(visit_id)
            raise VisitNotFoundError("Visit not found or expired", details={"visit_id": visit_id})
        return visit

    def discard(self, visit_id: str) -> None:
        visit = self._visits.pop(visit_id, None)
        if visit is not None:
            visit.controller.close()

    def prune(self) -> int:
        """Drop expired visits. Returns how many were dropped."""
        expired = [vid for vid, visit in self._visits.items() if self._expired(visit)]
        for vid in expired:
            self.discard(vid)
        if expired:
            logger.debug("Expired gateway visits pruned", count=len(expired))
        return len(expired)

    def close(self) -> None:
        """Cancel every countdown and forget all visits."""
        for visit in self._visits.values():
            visit.controller.close()
        count = len(self._visits)
        self._visits.clear()
        logger.info("Gateway registry closed", visits=count)

    def _expired(self, visit: Visit) -> bool:
        return time.monotonic() - visit.opened_at > self.settings.visit_ttl_seconds

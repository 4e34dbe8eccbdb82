"""
Gateway interstitial state machine.

One controller per visit:

    LOADING -> NOT_FOUND | ERROR | READY -> CONTINUED

While READY the ad phase is NO_AD (continue allowed at once),
AD_SHOWING (countdown running) or CAN_CONTINUE (countdown at zero).

Collaborators are passed into each call so that a visit can be opened by
one request and continued by another, each with its own DB session.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from adlink.common.exceptions import (
    AdLinkError,
    ContentNotFoundError,
    EventWriteError,
    GatewayNotReadyError,
)
from adlink.common.logger import LoggerMixin
from adlink.gateway.countdown import Countdown
from adlink.schemas.internal import AdCreative, LinkTarget


class GatewayState(str, Enum):
    LOADING = "loading"
    NOT_FOUND = "not_found"
    ERROR = "error"
    READY = "ready"
    CONTINUED = "continued"


class AdPhase(str, Enum):
    NO_AD = "no_ad"
    AD_SHOWING = "ad_showing"
    CAN_CONTINUE = "can_continue"


class LinkResolver(Protocol):
    async def resolve(self, short_code: str) -> LinkTarget | None: ...


class AdSelector(Protocol):
    async def select_for_link(self, content_link_id: int) -> AdCreative | None: ...


class EventRecorder(Protocol):
    async def record_impression(
        self,
        *,
        advertisement_id: int,
        content_link_id: int,
        user_agent: str | None = None,
        visitor_ip: str | None = None,
    ) -> None: ...

    async def record_click(
        self,
        *,
        content_link_id: int,
        advertisement_id: int | None,
        user_agent: str | None = None,
        visitor_ip: str | None = None,
    ) -> None: ...


@dataclass
class ProceedResult:
    redirect_url: str
    click_recorded: bool


class GatewayController(LoggerMixin):
    """Drives one visitor through the interstitial."""

    def __init__(
        self,
        short_code: str,
        countdown_seconds: int = 7,
        tick_interval: float = 1.0,
        auto_navigate: bool = False,
        user_agent: str | None = None,
    ):
        self.short_code = short_code
        self.countdown_seconds = countdown_seconds
        self.tick_interval = tick_interval
        self.auto_navigate = auto_navigate
        self.user_agent = user_agent

        self.state = GatewayState.LOADING
        self.link: LinkTarget | None = None
        self.ad: AdCreative | None = None
        self.countdown: Countdown | None = None

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def phase(self) -> AdPhase | None:
        if self.state not in (GatewayState.READY, GatewayState.CONTINUED):
            return None
        if self.ad is None:
            return AdPhase.NO_AD
        if self.countdown is not None and not self.countdown.finished:
            return AdPhase.AD_SHOWING
        return AdPhase.CAN_CONTINUE

    @property
    def can_continue(self) -> bool:
        return self.phase in (AdPhase.NO_AD, AdPhase.CAN_CONTINUE)

    @property
    def remaining(self) -> int:
        if self.countdown is None:
            return 0
        return self.countdown.remaining

    @property
    def destination(self) -> str | None:
        return self.link.original_url if self.link else None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def load(
        self,
        links: LinkResolver,
        selector: AdSelector,
        recorder: EventRecorder,
        start: bool = True,
    ) -> GatewayState:
        """Resolve the link, pick an ad, record the impression, start counting."""
        if self.state != GatewayState.LOADING:
            return self.state

        try:
            self.link = await links.resolve(self.short_code)
        except AdLinkError as e:
            self.logger.error("Content link lookup failed", short_code=self.short_code, error=e.message)
            self.state = GatewayState.ERROR
            return self.state

        if self.link is None:
            self.logger.info("Short code not found", short_code=self.short_code)
            self.state = GatewayState.NOT_FOUND
            return self.state

        try:
            self.ad = await selector.select_for_link(self.link.id)
        except AdLinkError as e:
            # Selector trouble degrades to the no-ad path
            self.logger.warning("Ad selection failed", content_link_id=self.link.id, error=e.message)
            self.ad = None

        self.state = GatewayState.READY

        if self.ad is None:
            self.logger.info("No eligible ad", content_link_id=self.link.id)
            return self.state

        try:
            await recorder.record_impression(
                advertisement_id=self.ad.id,
                content_link_id=self.link.id,
                user_agent=self.user_agent,
            )
        except EventWriteError as e:
            self.logger.warning(
                "Impression dropped",
                content_link_id=self.link.id,
                advertisement_id=self.ad.id,
                error=e.message,
            )

        self.countdown = Countdown(
            self.countdown_seconds,
            interval=self.tick_interval,
            on_finish=self._on_countdown_finished,
        )
        if start:
            self.start_countdown()

        return self.state

    def start_countdown(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        if self.countdown is not None:
            self.countdown.start(loop)

    async def proceed(self, recorder: EventRecorder) -> ProceedResult:
        """Continue to the original URL; records the click when an ad was shown."""
        if self.state == GatewayState.CONTINUED:
            assert self.link is not None
            return ProceedResult(redirect_url=self.link.original_url, click_recorded=False)

        if self.state != GatewayState.READY or self.link is None:
            raise ContentNotFoundError(
                "Content not found", details={"short_code": self.short_code}
            )

        if not self.can_continue:
            raise GatewayNotReadyError(
                "Countdown still running",
                details={"remaining_seconds": self.remaining},
            )

        click_recorded = False
        if self.ad is not None:
            try:
                await recorder.record_click(
                    content_link_id=self.link.id,
                    advertisement_id=self.ad.id,
                    user_agent=self.user_agent,
                )
                click_recorded = True
            except EventWriteError as e:
                self.logger.warning(
                    "Click dropped",
                    content_link_id=self.link.id,
                    advertisement_id=self.ad.id,
                    error=e.message,
                )

        self.state = GatewayState.CONTINUED
        self.close()
        return ProceedResult(redirect_url=self.link.original_url, click_recorded=click_recorded)

    def ad_click_through(self) -> str | None:
        """Advertiser URL for a click on the ad body. Touches no counters."""
        if self.ad is None:
            return None
        return self.ad.click_url

    def close(self) -> None:
        """Cancel the pending countdown tick."""
        if self.countdown is not None and not self.countdown.finished:
            self.countdown.cancel()

    def _on_countdown_finished(self) -> None:
        self.logger.info(
            "Gateway countdown finished",
            short_code=self.short_code,
            auto_navigate=self.auto_navigate,
        )

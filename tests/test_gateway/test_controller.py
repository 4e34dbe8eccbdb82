"""
Tests for the gateway state machine.
"""

from typing import Any

import pytest

from adlink.common.exceptions import (
    DatabaseError,
    EventWriteError,
    GatewayNotReadyError,
    SelectorUnavailableError,
)
from adlink.gateway.controller import AdPhase, GatewayController, GatewayState
from adlink.schemas.internal import AdCreative, LinkTarget

LINK = LinkTarget(
    id=1,
    short_code="Ab3xY9zK",
    original_url="https://example.com/article",
    title="Demo article",
)
AD = AdCreative(
    id=10,
    advertiser_id=5,
    title="New laptops",
    ad_type="image",
    image_url="https://shop.example.com/banner.png",
    click_url="https://shop.example.com/laptops",
)


class FakeLinks:
    def __init__(self, link: LinkTarget | None = LINK, error: Exception | None = None):
        self.link = link
        self.error = error

    async def resolve(self, short_code: str) -> LinkTarget | None:
        if self.error:
            raise self.error
        if self.link and self.link.short_code == short_code:
            return self.link
        return None


class FakeSelector:
    def __init__(self, ad: AdCreative | None = AD, error: Exception | None = None):
        self.ad = ad
        self.error = error

    async def select_for_link(self, content_link_id: int) -> AdCreative | None:
        if self.error:
            raise self.error
        return self.ad


class FakeRecorder:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.impressions: list[dict[str, Any]] = []
        self.clicks: list[dict[str, Any]] = []

    async def record_impression(self, **kwargs: Any) -> None:
        if self.fail:
            raise EventWriteError("write failed")
        self.impressions.append(kwargs)

    async def record_click(self, **kwargs: Any) -> None:
        if self.fail:
            raise EventWriteError("write failed")
        self.clicks.append(kwargs)


def run_out(controller: GatewayController) -> None:
    assert controller.countdown is not None
    for _ in range(controller.countdown_seconds):
        controller.countdown.tick()


class TestLoad:
    """Loading a visit."""

    @pytest.mark.asyncio
    async def test_ad_shown_records_one_impression(self) -> None:
        recorder = FakeRecorder()
        controller = GatewayController("Ab3xY9zK", user_agent="pytest")

        state = await controller.load(FakeLinks(), FakeSelector(), recorder, start=False)

        assert state == GatewayState.READY
        assert controller.phase == AdPhase.AD_SHOWING
        assert controller.remaining == 7
        assert not controller.can_continue
        assert recorder.impressions == [
            {
                "advertisement_id": 10,
                "content_link_id": 1,
                "user_agent": "pytest",
            }
        ]

    @pytest.mark.asyncio
    async def test_unknown_code_is_not_found(self) -> None:
        recorder = FakeRecorder()
        controller = GatewayController("nope")

        state = await controller.load(FakeLinks(), FakeSelector(), recorder)

        assert state == GatewayState.NOT_FOUND
        assert controller.phase is None
        assert recorder.impressions == []

    @pytest.mark.asyncio
    async def test_resolver_failure_is_error(self) -> None:
        controller = GatewayController("Ab3xY9zK")

        state = await controller.load(
            FakeLinks(error=DatabaseError("down")), FakeSelector(), FakeRecorder()
        )

        assert state == GatewayState.ERROR

    @pytest.mark.asyncio
    async def test_no_ad_allows_continue_immediately(self) -> None:
        recorder = FakeRecorder()
        controller = GatewayController("Ab3xY9zK")

        await controller.load(FakeLinks(), FakeSelector(ad=None), recorder)

        assert controller.phase == AdPhase.NO_AD
        assert controller.can_continue
        assert controller.countdown is None
        assert recorder.impressions == []

    @pytest.mark.asyncio
    async def test_selector_failure_degrades_to_no_ad(self) -> None:
        controller = GatewayController("Ab3xY9zK")

        await controller.load(
            FakeLinks(), FakeSelector(error=SelectorUnavailableError("down")), FakeRecorder()
        )

        assert controller.state == GatewayState.READY
        assert controller.phase == AdPhase.NO_AD

    @pytest.mark.asyncio
    async def test_impression_failure_is_swallowed(self) -> None:
        controller = GatewayController("Ab3xY9zK")

        state = await controller.load(
            FakeLinks(), FakeSelector(), FakeRecorder(fail=True), start=False
        )

        assert state == GatewayState.READY
        assert controller.phase == AdPhase.AD_SHOWING

    @pytest.mark.asyncio
    async def test_load_twice_is_noop(self) -> None:
        recorder = FakeRecorder()
        controller = GatewayController("Ab3xY9zK")

        await controller.load(FakeLinks(), FakeSelector(), recorder, start=False)
        await controller.load(FakeLinks(), FakeSelector(), recorder, start=False)

        assert len(recorder.impressions) == 1


class TestProceed:
    """Continuing to the original URL."""

    @pytest.mark.asyncio
    async def test_blocked_until_countdown_ends(self) -> None:
        recorder = FakeRecorder()
        controller = GatewayController("Ab3xY9zK")
        await controller.load(FakeLinks(), FakeSelector(), recorder, start=False)

        for _ in range(6):
            controller.countdown.tick()

        with pytest.raises(GatewayNotReadyError) as exc_info:
            await controller.proceed(recorder)
        assert exc_info.value.details == {"remaining_seconds": 1}
        assert recorder.clicks == []

    @pytest.mark.asyncio
    async def test_one_click_after_countdown(self) -> None:
        recorder = FakeRecorder()
        controller = GatewayController("Ab3xY9zK")
        await controller.load(FakeLinks(), FakeSelector(), recorder, start=False)
        run_out(controller)

        assert controller.phase == AdPhase.CAN_CONTINUE
        result = await controller.proceed(recorder)

        assert result.redirect_url == "https://example.com/article"
        assert result.click_recorded
        assert controller.state == GatewayState.CONTINUED
        assert recorder.clicks == [
            {"content_link_id": 1, "advertisement_id": 10, "user_agent": None}
        ]

    @pytest.mark.asyncio
    async def test_second_proceed_records_nothing(self) -> None:
        recorder = FakeRecorder()
        controller = GatewayController("Ab3xY9zK")
        await controller.load(FakeLinks(), FakeSelector(), recorder, start=False)
        run_out(controller)

        await controller.proceed(recorder)
        again = await controller.proceed(recorder)

        assert again.redirect_url == "https://example.com/article"
        assert not again.click_recorded
        assert len(recorder.clicks) == 1

    @pytest.mark.asyncio
    async def test_no_ad_proceeds_without_click(self) -> None:
        recorder = FakeRecorder()
        controller = GatewayController("Ab3xY9zK")
        await controller.load(FakeLinks(), FakeSelector(ad=None), recorder)

        result = await controller.proceed(recorder)

        assert result.redirect_url == "https://example.com/article"
        assert not result.click_recorded
        assert recorder.clicks == []

    @pytest.mark.asyncio
    async def test_click_failure_still_redirects(self) -> None:
        controller = GatewayController("Ab3xY9zK")
        await controller.load(FakeLinks(), FakeSelector(), FakeRecorder(), start=False)
        run_out(controller)

        result = await controller.proceed(FakeRecorder(fail=True))

        assert result.redirect_url == "https://example.com/article"
        assert not result.click_recorded

    @pytest.mark.asyncio
    async def test_zero_countdown_is_immediately_continuable(self) -> None:
        controller = GatewayController("Ab3xY9zK", countdown_seconds=0)

        await controller.load(FakeLinks(), FakeSelector(), FakeRecorder())

        assert controller.phase == AdPhase.CAN_CONTINUE
        assert controller.can_continue


class TestAdClickThroughAndClose:
    @pytest.mark.asyncio
    async def test_click_through_leaves_countdown_alone(self) -> None:
        recorder = FakeRecorder()
        controller = GatewayController("Ab3xY9zK")
        await controller.load(FakeLinks(), FakeSelector(), recorder, start=False)

        assert controller.ad_click_through() == "https://shop.example.com/laptops"
        assert controller.remaining == 7
        assert recorder.clicks == []

    @pytest.mark.asyncio
    async def test_close_cancels_running_countdown(self) -> None:
        controller = GatewayController("Ab3xY9zK", tick_interval=0.01)
        await controller.load(FakeLinks(), FakeSelector(), FakeRecorder())

        controller.close()

        assert controller.countdown.cancelled
        assert not controller.countdown.running

"""
Tests for the gateway pages and the JSON gateway API.
"""

import re

import pytest
from fastapi import FastAPI
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from adlink.gateway.controller import GatewayController
from adlink.models import AdImpression, AdStatus, Advertisement, ContentClick, ContentLink

VISIT_RE = re.compile(r"visit=([A-Za-z0-9_\-]+)")


def controller_for(app: FastAPI, visit_id: str) -> GatewayController:
    return app.state.gateway_registry.get(visit_id).controller


def finish_countdown(app: FastAPI, visit_id: str) -> None:
    controller = controller_for(app, visit_id)
    for _ in range(controller.countdown_seconds):
        controller.countdown.tick()


async def link_counts(session: AsyncSession, link_id: int) -> tuple[int, int]:
    row = (
        await session.execute(
            select(ContentLink.view_count, ContentLink.click_count).where(ContentLink.id == link_id)
        )
    ).one()
    return tuple(row)


async def count_rows(session: AsyncSession, model) -> int:
    return await session.scalar(select(func.count()).select_from(model))


class TestGatewayPage:
    """HTML interstitial under /g/{short_code}."""

    @pytest.mark.asyncio
    async def test_full_visit(
        self, client: AsyncClient, app: FastAPI, test_db: AsyncSession, seed
    ) -> None:
        """Page load shows the ad, continue after the countdown redirects once."""
        response = await client.get("/g/Ab3xY9zK", headers={"User-Agent": "pytest-browser"})

        assert response.status_code == 200
        assert "Demo article" in response.text
        assert "https://shop.example.com/banner.png" in response.text
        assert "Continue in 7s" in response.text
        visit_id = VISIT_RE.search(response.text).group(1)

        assert await link_counts(test_db, seed.link.id) == (1, 0)
        impression = (await test_db.execute(select(AdImpression))).scalar_one()
        assert impression.advertisement_id == seed.tech_ad.id
        assert impression.user_agent == "pytest-browser"
        assert impression.visitor_ip is None

        early = await client.post(f"/g/Ab3xY9zK/continue?visit={visit_id}")
        assert early.status_code == 409
        assert early.json()["error"] == "GatewayNotReadyError"

        finish_countdown(app, visit_id)
        response = await client.post(f"/g/Ab3xY9zK/continue?visit={visit_id}")

        assert response.status_code == 303
        assert response.headers["location"] == "https://example.com/article"
        assert await link_counts(test_db, seed.link.id) == (1, 1)

        click = (await test_db.execute(select(ContentClick))).scalar_one()
        assert click.content_link_id == seed.link.id
        assert click.advertisement_id == seed.tech_ad.id

    @pytest.mark.asyncio
    async def test_repeat_continue_counts_one_click(
        self, client: AsyncClient, app: FastAPI, test_db: AsyncSession, seed
    ) -> None:
        response = await client.get("/g/Ab3xY9zK")
        visit_id = VISIT_RE.search(response.text).group(1)
        finish_countdown(app, visit_id)

        for _ in range(2):
            response = await client.post(f"/g/Ab3xY9zK/continue?visit={visit_id}")
            assert response.status_code == 303

        assert await count_rows(test_db, ContentClick) == 1

    @pytest.mark.asyncio
    async def test_unknown_code_redirects_home(
        self, client: AsyncClient, test_db: AsyncSession, seed
    ) -> None:
        response = await client.get("/g/zzzzzzzz")

        assert response.status_code == 302
        assert response.headers["location"] == "/"
        assert await count_rows(test_db, AdImpression) == 0

    @pytest.mark.asyncio
    async def test_inactive_link_redirects_home(
        self, client: AsyncClient, test_db: AsyncSession, seed
    ) -> None:
        seed.link.is_active = False
        await test_db.flush()

        response = await client.get("/g/Ab3xY9zK")

        assert response.status_code == 302

    @pytest.mark.asyncio
    async def test_expired_visit_reopens_gateway(self, client: AsyncClient, seed) -> None:
        response = await client.post("/g/Ab3xY9zK/continue?visit=bogus")

        assert response.status_code == 302
        assert response.headers["location"] == "/g/Ab3xY9zK"

    @pytest.mark.asyncio
    async def test_expired_visit_ad_click_reopens_gateway(
        self, client: AsyncClient, app: FastAPI, seed
    ) -> None:
        response = await client.get("/g/Ab3xY9zK")
        visit_id = VISIT_RE.search(response.text).group(1)
        app.state.gateway_registry.discard(visit_id)

        response = await client.get(f"/g/Ab3xY9zK/ad?visit={visit_id}")

        assert response.status_code == 302
        assert response.headers["location"] == "/g/Ab3xY9zK"

    @pytest.mark.asyncio
    async def test_malformed_code_with_unknown_visit_goes_home(self, client: AsyncClient) -> None:
        response = await client.post("/g/not-a-code/continue?visit=bogus")

        assert response.status_code == 302
        assert response.headers["location"] == "/"

    @pytest.mark.asyncio
    async def test_auto_navigate_page(
        self, client: AsyncClient, app: FastAPI, test_db: AsyncSession, seed
    ) -> None:
        """Without an ad the page submits itself as soon as it loads."""
        registry = app.state.gateway_registry
        registry.settings = registry.settings.model_copy(update={"auto_navigate": True})
        seed.tech_ad.status = AdStatus.INACTIVE.value
        await test_db.flush()

        response = await client.get("/g/Ab3xY9zK")

        assert response.status_code == 200
        assert "var autoNavigate = true;" in response.text
        assert "if (remaining <= 0) { done(); return; }" in response.text

    @pytest.mark.asyncio
    async def test_no_ad_continue_records_nothing(
        self, client: AsyncClient, test_db: AsyncSession, seed
    ) -> None:
        """Without an eligible ad the visitor may continue at once, uncounted."""
        seed.tech_ad.status = AdStatus.INACTIVE.value
        await test_db.flush()

        response = await client.get("/g/Ab3xY9zK")
        assert response.status_code == 200
        assert "Continue to content" in response.text
        visit_id = VISIT_RE.search(response.text).group(1)

        response = await client.post(f"/g/Ab3xY9zK/continue?visit={visit_id}")

        assert response.status_code == 303
        assert await link_counts(test_db, seed.link.id) == (0, 0)
        assert await count_rows(test_db, ContentClick) == 0

    @pytest.mark.asyncio
    async def test_html_ad_rendered_in_sandbox(
        self, client: AsyncClient, test_db: AsyncSession, seed
    ) -> None:
        # Only the gambling (html) ad remains eligible once the block is lifted
        seed.tech_ad.status = AdStatus.INACTIVE.value
        await test_db.flush()
        await client.put(
            f"/api/v1/dashboard/links/{seed.link.id}/blocked-categories",
            json={"category_ids": []},
            headers={"X-User-Id": "provider-1"},
        )

        response = await client.get("/g/Ab3xY9zK")

        assert response.status_code == 200
        assert 'sandbox="allow-scripts allow-popups"' in response.text
        assert "&lt;h2&gt;Spin to win&lt;/h2&gt;" in response.text

    @pytest.mark.asyncio
    async def test_ad_click_through_touches_no_counters(
        self, client: AsyncClient, app: FastAPI, test_db: AsyncSession, seed
    ) -> None:
        response = await client.get("/g/Ab3xY9zK")
        visit_id = VISIT_RE.search(response.text).group(1)

        response = await client.get(f"/g/Ab3xY9zK/ad?visit={visit_id}")

        assert response.status_code == 302
        assert response.headers["location"] == "https://shop.example.com/laptops"
        assert await link_counts(test_db, seed.link.id) == (1, 0)
        assert not controller_for(app, visit_id).can_continue


class TestGatewayApi:
    """JSON API under /api/v1/gateway."""

    @pytest.mark.asyncio
    async def test_open_visit(self, client: AsyncClient, seed) -> None:
        response = await client.get("/api/v1/gateway/Ab3xY9zK")

        assert response.status_code == 200
        data = response.json()
        assert data["short_code"] == "Ab3xY9zK"
        assert data["state"] == "ready"
        assert data["ad"]["id"] == seed.tech_ad.id
        assert data["remaining_seconds"] == 7
        assert data["countdown_seconds"] == 7
        assert data["can_continue"] is False
        assert data["auto_navigate"] is False
        assert data["continue_url"] == f"/api/v1/gateway/visits/{data['visit_id']}/continue"
        assert data["ad_click_url"] == f"/api/v1/gateway/visits/{data['visit_id']}/ad"

    @pytest.mark.asyncio
    async def test_continue_flow(
        self, client: AsyncClient, app: FastAPI, test_db: AsyncSession, seed
    ) -> None:
        visit_id = (await client.get("/api/v1/gateway/Ab3xY9zK")).json()["visit_id"]

        response = await client.post(f"/api/v1/gateway/visits/{visit_id}/continue")
        assert response.status_code == 409
        assert response.json()["details"]["remaining_seconds"] > 0

        finish_countdown(app, visit_id)
        state = (await client.get(f"/api/v1/gateway/visits/{visit_id}")).json()
        assert state["can_continue"] is True
        assert state["remaining_seconds"] == 0

        first = await client.post(f"/api/v1/gateway/visits/{visit_id}/continue")
        second = await client.post(f"/api/v1/gateway/visits/{visit_id}/continue")

        assert first.json() == {"redirect_url": "https://example.com/article", "click_recorded": True}
        assert second.json()["click_recorded"] is False
        assert await link_counts(test_db, seed.link.id) == (1, 1)
        ad_clicks = await test_db.scalar(
            select(Advertisement.click_count).where(Advertisement.id == seed.tech_ad.id)
        )
        assert ad_clicks == 1

    @pytest.mark.asyncio
    async def test_unknown_code_is_404(self, client: AsyncClient, seed) -> None:
        response = await client.get("/api/v1/gateway/zzzzzzzz")

        assert response.status_code == 404
        assert response.json()["error"] == "ContentNotFoundError"

    @pytest.mark.asyncio
    async def test_unknown_visit_is_404(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/gateway/visits/nope")

        assert response.status_code == 404
        assert response.json()["error"] == "VisitNotFoundError"

    @pytest.mark.asyncio
    async def test_visit_is_bound_to_its_short_code(
        self, client: AsyncClient, app: FastAPI, seed
    ) -> None:
        visit_id = (await client.get("/api/v1/gateway/Ab3xY9zK")).json()["visit_id"]
        finish_countdown(app, visit_id)

        response = await client.post(f"/g/OtherCod/continue?visit={visit_id}")

        assert response.status_code == 302
        assert response.headers["location"] == "/g/OtherCod"

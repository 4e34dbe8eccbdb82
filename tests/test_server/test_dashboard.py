"""
Tests for tenant dashboards.
"""

import pytest
from httpx import AsyncClient

from adlink.gateway.shortcode import is_short_code


class TestOverview:
    @pytest.mark.asyncio
    async def test_requires_sign_in(self, client: AsyncClient, seed) -> None:
        response = await client.get("/api/v1/dashboard")

        assert response.status_code == 401
        assert response.json()["error"] == "AuthenticationError"

    @pytest.mark.asyncio
    async def test_user_without_profile(self, client: AsyncClient, seed) -> None:
        response = await client.get("/api/v1/dashboard", headers={"X-User-Id": "newcomer"})

        assert response.status_code == 404
        assert response.json()["error"] == "ProfileNotFoundError"

    @pytest.mark.asyncio
    async def test_provider_dashboard(
        self, client: AsyncClient, seed, provider_headers: dict[str, str]
    ) -> None:
        response = await client.get("/api/v1/dashboard", headers=provider_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["role"] == "content_provider"
        assert data["provider"]["organization_name"] == "Demo Publishing"
        assert data["advertiser"] is None
        assert len(data["links"]) == 1
        link = data["links"][0]
        assert link["short_url"] == "http://test/g/Ab3xY9zK"
        assert link["category_ids"] == [seed.categories["technology"].id]
        assert link["blocked_category_ids"] == [seed.categories["gambling"].id]
        assert data["totals"] == {"items": 1, "views": 0, "clicks": 0, "ctr": 0.0}

    @pytest.mark.asyncio
    async def test_advertiser_dashboard(
        self, client: AsyncClient, seed, advertiser_headers: dict[str, str]
    ) -> None:
        response = await client.get("/api/v1/dashboard", headers=advertiser_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["role"] == "advertiser"
        assert data["provider"] is None
        assert {ad["title"] for ad in data["ads"]} == {"New laptops", "Lucky spins"}
        assert data["totals"]["items"] == 2

    @pytest.mark.asyncio
    async def test_totals_follow_gateway_traffic(
        self, client: AsyncClient, seed, provider_headers: dict[str, str]
    ) -> None:
        await client.get("/g/Ab3xY9zK")
        await client.get("/g/Ab3xY9zK")

        data = (await client.get("/api/v1/dashboard", headers=provider_headers)).json()

        assert data["totals"]["views"] == 2
        assert data["links"][0]["view_count"] == 2


class TestLinks:
    @pytest.mark.asyncio
    async def test_create_link(
        self, client: AsyncClient, seed, provider_headers: dict[str, str]
    ) -> None:
        travel = seed.categories["travel"].id
        response = await client.post(
            "/api/v1/dashboard/links",
            json={
                "original_url": "https://example.com/trip",
                "title": "Trip report",
                "description": "",
                "category_ids": [travel, travel],
                "blocked_category_ids": [seed.categories["gambling"].id],
            },
            headers=provider_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert is_short_code(data["short_code"])
        assert data["short_url"] == f"http://test/g/{data['short_code']}"
        assert data["description"] is None
        assert data["category_ids"] == [travel]
        assert data["view_count"] == 0
        assert data["click_count"] == 0

        gateway = await client.get(f"/g/{data['short_code']}")
        assert gateway.status_code == 200

    @pytest.mark.asyncio
    async def test_create_link_rejects_bad_url(
        self, client: AsyncClient, seed, provider_headers: dict[str, str]
    ) -> None:
        response = await client.post(
            "/api/v1/dashboard/links",
            json={"original_url": "javascript:alert(1)", "title": "x"},
            headers=provider_headers,
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_create_link_rejects_unknown_category(
        self, client: AsyncClient, seed, provider_headers: dict[str, str]
    ) -> None:
        response = await client.post(
            "/api/v1/dashboard/links",
            json={
                "original_url": "https://example.com/x",
                "title": "x",
                "category_ids": [424242],
            },
            headers=provider_headers,
        )

        assert response.status_code == 422
        assert response.json()["details"] == {"category_ids": [424242]}

    @pytest.mark.asyncio
    async def test_advertiser_cannot_create_links(
        self, client: AsyncClient, seed, advertiser_headers: dict[str, str]
    ) -> None:
        response = await client.post(
            "/api/v1/dashboard/links",
            json={"original_url": "https://example.com/x", "title": "x"},
            headers=advertiser_headers,
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_replace_tags(
        self, client: AsyncClient, seed, provider_headers: dict[str, str]
    ) -> None:
        travel = seed.categories["travel"].id
        response = await client.put(
            f"/api/v1/dashboard/links/{seed.link.id}/categories",
            json={"category_ids": [travel]},
            headers=provider_headers,
        )

        assert response.status_code == 200
        assert response.json()["category_ids"] == [travel]
        assert response.json()["blocked_category_ids"] == [seed.categories["gambling"].id]

    @pytest.mark.asyncio
    async def test_advertiser_cannot_edit_links(self, client: AsyncClient, seed) -> None:
        other = await client.put(
            f"/api/v1/dashboard/links/{seed.link.id}/categories",
            json={"category_ids": []},
            headers={"X-User-Id": "advertiser-1"},
        )

        assert other.status_code == 404


class TestAds:
    @pytest.mark.asyncio
    async def test_create_image_ad(
        self, client: AsyncClient, seed, advertiser_headers: dict[str, str]
    ) -> None:
        response = await client.post(
            "/api/v1/dashboard/ads",
            json={
                "title": "Summer sale",
                "ad_type": "image",
                "image_url": "https://shop.example.com/summer.png",
                "click_url": "https://shop.example.com/summer",
                "category_ids": [seed.categories["travel"].id],
            },
            headers=advertiser_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "active"
        assert data["category_ids"] == [seed.categories["travel"].id]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"ad_type": "image"},
            {"ad_type": "image", "image_url": "https://a.example/x.png", "html_content": "<b>x</b>"},
            {"ad_type": "html", "image_url": "https://a.example/x.png"},
        ],
    )
    async def test_creative_must_match_type(
        self,
        client: AsyncClient,
        seed,
        advertiser_headers: dict[str, str],
        payload: dict,
    ) -> None:
        body = {"title": "Bad", "click_url": "https://shop.example.com", **payload}

        response = await client.post("/api/v1/dashboard/ads", json=body, headers=advertiser_headers)

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_deactivate_ad_removes_it_from_gateway(
        self, client: AsyncClient, seed, advertiser_headers: dict[str, str]
    ) -> None:
        response = await client.patch(
            f"/api/v1/dashboard/ads/{seed.tech_ad.id}/status",
            json={"status": "inactive"},
            headers=advertiser_headers,
        )
        assert response.status_code == 200
        assert response.json()["status"] == "inactive"

        visit = (await client.get("/api/v1/gateway/Ab3xY9zK")).json()
        assert visit["ad"] is None
        assert visit["can_continue"] is True

    @pytest.mark.asyncio
    async def test_replace_ad_categories(
        self, client: AsyncClient, seed, advertiser_headers: dict[str, str]
    ) -> None:
        response = await client.put(
            f"/api/v1/dashboard/ads/{seed.gambling_ad.id}/categories",
            json={"category_ids": []},
            headers=advertiser_headers,
        )

        assert response.status_code == 200
        assert response.json()["category_ids"] == []


@pytest.mark.asyncio
async def test_public_category_list(client: AsyncClient, seed) -> None:
    response = await client.get("/api/v1/categories")

    assert response.status_code == 200
    assert [c["slug"] for c in response.json()] == ["gambling", "technology", "travel"]

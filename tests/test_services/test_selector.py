"""
Tests for ad selection.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from adlink.models import AdStatus, Advertisement
from adlink.server.services.category_service import CategoryService
from adlink.server.services.selector import AdSelectorService


async def _add_untagged_ad(session: AsyncSession, advertiser_id: int) -> Advertisement:
    ad = Advertisement(
        advertiser_id=advertiser_id,
        title="Generic",
        ad_type="image",
        image_url="https://generic.example.com/a.png",
        click_url="https://generic.example.com",
        status=AdStatus.ACTIVE.value,
        view_count=0,
        click_count=0,
    )
    session.add(ad)
    await session.flush()
    return ad


@pytest.mark.asyncio
async def test_blocked_category_never_selected(test_db: AsyncSession, seed) -> None:
    """The link blocks gambling, so only the technology ad is eligible."""
    selector = AdSelectorService(test_db)

    for _ in range(20):
        ad = await selector.select_for_link(seed.link.id)
        assert ad is not None
        assert ad.id == seed.tech_ad.id


@pytest.mark.asyncio
async def test_tag_overlap_preferred(test_db: AsyncSession, seed) -> None:
    await _add_untagged_ad(test_db, seed.advertiser.id)
    selector = AdSelectorService(test_db)

    picks = {(await selector.select_for_link(seed.link.id)).id for _ in range(20)}

    assert picks == {seed.tech_ad.id}


@pytest.mark.asyncio
async def test_falls_back_to_any_unblocked_ad(test_db: AsyncSession, seed) -> None:
    generic = await _add_untagged_ad(test_db, seed.advertiser.id)
    await CategoryService(test_db).set_tags(seed.link.id, [seed.categories["travel"].id])
    selector = AdSelectorService(test_db)

    picks = {(await selector.select_for_link(seed.link.id)).id for _ in range(40)}

    assert seed.gambling_ad.id not in picks
    assert picks <= {seed.tech_ad.id, generic.id}


@pytest.mark.asyncio
async def test_inactive_ads_excluded(test_db: AsyncSession, seed) -> None:
    seed.tech_ad.status = AdStatus.INACTIVE.value
    await test_db.flush()

    assert await AdSelectorService(test_db).select_for_link(seed.link.id) is None


@pytest.mark.asyncio
async def test_select_any_ignores_link_rules(test_db: AsyncSession, seed) -> None:
    seed.tech_ad.status = AdStatus.PENDING.value
    await test_db.flush()

    ad = await AdSelectorService(test_db).select_any()

    assert ad is not None
    assert ad.id == seed.gambling_ad.id

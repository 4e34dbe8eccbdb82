"""
Admin router – counter audits and category management.

Every endpoint requires the ``admin`` role.

Endpoints:
    GET  /api/v1/admin/consistency          – Compare counters with event rows
    POST /api/v1/admin/consistency/repair   – Rewrite mismatched counters
    POST /api/v1/admin/categories           – Create a category
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from adlink.common.database import get_session
from adlink.common.logger import get_logger
from adlink.common.session import AuthSession
from adlink.schemas.request import CategoryCreate
from adlink.schemas.response import CategoryOut, ConsistencyReport
from adlink.server.deps import require_admin
from adlink.server.services.category_service import CategoryService
from adlink.server.services.consistency_service import ConsistencyService

logger = get_logger(__name__)
router = APIRouter()


@router.get("/consistency", response_model=ConsistencyReport)
async def check_consistency(
    admin: AuthSession = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
) -> ConsistencyReport:
    """
    Verify view_count / click_count against ad_impressions / content_clicks.

    ``discrepancy`` is stored minus actual for each mismatched counter.
    """
    return await ConsistencyService(session).check()


@router.post("/consistency/repair", response_model=ConsistencyReport)
async def repair_consistency(
    admin: AuthSession = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
) -> ConsistencyReport:
    report = await ConsistencyService(session).repair()
    logger.info(
        "Counter repair requested",
        admin_user_id=admin.user_id,
        repaired=len(report.discrepancies),
    )
    return report


@router.post("/categories", response_model=CategoryOut, status_code=201)
async def create_category(
    body: CategoryCreate,
    admin: AuthSession = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
) -> CategoryOut:
    category = await CategoryService(session).create_category(body.name, body.slug)
    return CategoryOut.model_validate(category)

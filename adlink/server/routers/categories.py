"""
Public category list.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from adlink.common.database import get_session
from adlink.schemas.response import CategoryOut
from adlink.server.services.category_service import CategoryService

router = APIRouter()


@router.get("", response_model=list[CategoryOut])
async def list_categories(session: AsyncSession = Depends(get_session)) -> list[CategoryOut]:
    """All categories, ordered by name."""
    categories = await CategoryService(session).list_categories()
    return [CategoryOut.model_validate(c) for c in categories]

"""
Shared FastAPI dependencies: identity, roles and app-owned state.
"""

from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from adlink.common.config import get_settings
from adlink.common.database import get_session
from adlink.common.exceptions import AuthenticationError, AuthorizationError, ProfileNotFoundError
from adlink.common.logger import log_context
from adlink.common.session import AuthSession, SessionContext
from adlink.gateway.registry import GatewayRegistry
from adlink.models import Advertiser, AppRole, ContentProvider
from adlink.server.services.gateway_service import GatewayService
from adlink.server.services.tenant_service import TenantService


def get_session_context(request: Request) -> SessionContext:
    return request.app.state.sessions


def get_registry(request: Request) -> GatewayRegistry:
    return request.app.state.gateway_registry


def get_tenant_service(session: AsyncSession = Depends(get_session)) -> TenantService:
    return TenantService(session)


async def current_user(
    request: Request,
    sessions: SessionContext = Depends(get_session_context),
) -> AuthSession:
    """Signed-in user, as forwarded by the authenticating proxy."""
    header = get_settings().auth.user_header
    user_id = (request.headers.get(header) or "").strip()
    if not user_id:
        raise AuthenticationError("Sign in required", details={"header": header})
    log_context(user_id=user_id)
    return await sessions.resolve(user_id, user_agent=request.headers.get("user-agent"))


async def require_admin(
    user: AuthSession = Depends(current_user),
    tenants: TenantService = Depends(get_tenant_service),
) -> AuthSession:
    if not await tenants.has_role(user.user_id, AppRole.ADMIN):
        raise AuthorizationError("Access denied", details={"required_role": AppRole.ADMIN.value})
    return user


async def require_provider(
    user: AuthSession = Depends(current_user),
    tenants: TenantService = Depends(get_tenant_service),
) -> ContentProvider:
    provider = await tenants.get_provider(user.user_id)
    if provider is None:
        raise ProfileNotFoundError("No content provider profile", details={"user_id": user.user_id})
    return provider


async def require_advertiser(
    user: AuthSession = Depends(current_user),
    tenants: TenantService = Depends(get_tenant_service),
) -> Advertiser:
    advertiser = await tenants.get_advertiser(user.user_id)
    if advertiser is None:
        raise ProfileNotFoundError("No advertiser profile", details={"user_id": user.user_id})
    return advertiser


def get_gateway_service(
    session: AsyncSession = Depends(get_session),
    registry: GatewayRegistry = Depends(get_registry),
) -> GatewayService:
    return GatewayService(session, registry)

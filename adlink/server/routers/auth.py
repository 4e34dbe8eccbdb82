"""
Session endpoints.

Endpoints:
    GET    /api/v1/auth/session   – Current session, roles and profile kind
    DELETE /api/v1/auth/session   – Sign out (drops per-user cached state)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from adlink.common.exceptions import ProfileNotFoundError
from adlink.common.session import AuthSession, SessionContext
from adlink.schemas.response import SessionResponse
from adlink.server.deps import current_user, get_session_context, get_tenant_service
from adlink.server.services.tenant_service import TenantService

router = APIRouter()


@router.get("/session", response_model=SessionResponse)
async def get_current_session(
    user: AuthSession = Depends(current_user),
    tenants: TenantService = Depends(get_tenant_service),
) -> SessionResponse:
    try:
        kind, _ = await tenants.get_profile(user.user_id)
    except ProfileNotFoundError:
        # Signed in but not onboarded yet
        kind = None
    return SessionResponse(
        user_id=user.user_id,
        started_at=user.started_at,
        roles=await tenants.get_roles(user.user_id),
        profile=kind,
    )


@router.delete("/session", status_code=204)
async def sign_out(
    user: AuthSession = Depends(current_user),
    sessions: SessionContext = Depends(get_session_context),
) -> Response:
    await sessions.sign_out(user.user_id)
    return Response(status_code=204)

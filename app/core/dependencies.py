"""
Core dependencies for route protection and access checks
"""

import re
from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.database.supabase_client import get_supabase, get_supabase_auth
from app.modules.auth.service import AuthService
from app.modules.auth.schemas import SessionContext
from app.modules.profiles.service import ProfileService
from app.modules.profiles.schemas import ProfileResponse
from supabase import Client
from typing import Optional
import logging

logger = logging.getLogger(__name__)

# auto_error=False so a missing token becomes our 401 + redirect rather than FastAPI's 403
security = HTTPBearer(auto_error=False)

LOGIN_PATH = "/login"
DASHBOARD_PATH = "/dashboard"
PUBLIC_PATHS = {"/login", "/signup"}
MEMBER_PATHS = {"/dashboard"}
ADMIN_PATHS = {"/admin", "/admin/users", "/admin/pairs"}
ROOM_PATH = re.compile(r"^/room/\d+$")


def get_auth_service(supabase: Client = Depends(get_supabase_auth)) -> AuthService:
    return AuthService(supabase)


def get_profile_service(supabase: Client = Depends(get_supabase)) -> ProfileService:
    return ProfileService(supabase)


def _unauthenticated(detail: str = "Not authenticated") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer", "X-Redirect-To": LOGIN_PATH},
    )


def get_optional_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[SessionContext]:
    """Session for the bearer token, or None when the caller sent none or it is invalid"""
    if credentials is None:
        return None
    try:
        return auth_service.get_current_user(credentials.credentials)
    except HTTPException:
        return None


def get_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> SessionContext:
    """Extract the caller's session from the JWT; unauthenticated callers are sent to login"""
    if credentials is None:
        raise _unauthenticated()
    try:
        return auth_service.get_current_user(credentials.credentials)
    except HTTPException as e:
        raise _unauthenticated(e.detail)


def get_current_profile(
    session: SessionContext = Depends(get_session),
    profiles: ProfileService = Depends(get_profile_service)
) -> ProfileResponse:
    return profiles.ensure_profile(session)


def require_admin(
    session: SessionContext = Depends(get_session),
    profiles: ProfileService = Depends(get_profile_service)
) -> SessionContext:
    """Allow only callers whose profile role is admin; everyone else goes back to the dashboard"""
    profile = profiles.get_profile(session.user_id)
    if not profile or profile.role != "admin":
        logger.info(f"Non-admin user {session.user_id} denied admin access")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
            headers={"X-Redirect-To": DASHBOARD_PATH},
        )
    return session


def resolve_route(path: str, session: Optional[SessionContext], role: Optional[str]) -> Optional[str]:
    """Return where a screen request for `path` must be redirected, or None when it may render.

    Room membership is not decided here; the room itself asks the secure
    pair-membership lookup once it loads.
    """
    normalized = path.rstrip("/") or "/"
    if normalized in PUBLIC_PATHS:
        return None
    if session is None:
        return LOGIN_PATH
    if normalized in ADMIN_PATHS:
        return None if role == "admin" else DASHBOARD_PATH
    if normalized in MEMBER_PATHS or ROOM_PATH.match(normalized):
        return None
    return DASHBOARD_PATH

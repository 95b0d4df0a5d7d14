from fastapi import APIRouter, Depends
from app.modules.auth.schemas import (
    LoginRequest, SignupRequest, TokenResponse, SignupResponse,
    SessionContext, MeResponse, GuardResponse
)
from app.modules.auth.service import AuthService
from app.modules.profiles.service import ProfileService
from app.core.dependencies import (
    get_auth_service, get_profile_service, get_session, get_optional_session, resolve_route
)
from typing import Optional

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=SignupResponse, status_code=201)
async def signup(
    signup_data: SignupRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Create an account; a session is returned unless email confirmation is pending"""
    return service.sign_up(signup_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    session: SessionContext = Depends(get_session),
    service: AuthService = Depends(get_auth_service)
):
    """Sign out and drop the cached session"""
    service.logout(session)
    return {"message": "Signed out"}


@router.get("/me", response_model=MeResponse)
async def me(
    session: SessionContext = Depends(get_session),
    profiles: ProfileService = Depends(get_profile_service)
):
    """Current user and their role"""
    profile = profiles.ensure_profile(session)
    return MeResponse(
        user_id=session.user_id,
        email=session.email,
        full_name=profile.full_name,
        role=profile.role
    )


@router.get("/guard", response_model=GuardResponse)
async def guard(
    path: str,
    session: Optional[SessionContext] = Depends(get_optional_session),
    profiles: ProfileService = Depends(get_profile_service)
):
    """Tell the frontend whether a screen may render or where to redirect"""
    role = None
    if session is not None:
        profile = profiles.get_profile(session.user_id)
        role = profile.role if profile else None
    redirect_to = resolve_route(path, session, role)
    return GuardResponse(path=path, allowed=redirect_to is None, redirect_to=redirect_to)

from fastapi import APIRouter, Depends
from app.modules.profiles.schemas import ProfileResponse, RoleUpdate
from app.modules.profiles.service import ProfileService
from app.modules.auth.schemas import SessionContext
from app.core.dependencies import get_profile_service, get_current_profile, require_admin
from typing import List

router = APIRouter(tags=["profiles"])


@router.get("/profiles/me", response_model=ProfileResponse)
async def get_my_profile(profile: ProfileResponse = Depends(get_current_profile)):
    """Profile of the signed-in user"""
    return profile


@router.get("/admin/users", response_model=List[ProfileResponse])
async def list_users(
    session: SessionContext = Depends(require_admin),
    service: ProfileService = Depends(get_profile_service)
):
    """All users, oldest first"""
    return service.list_profiles()


@router.put("/admin/users/{user_id}/role", response_model=ProfileResponse)
async def update_user_role(
    user_id: str,
    role_update: RoleUpdate,
    session: SessionContext = Depends(require_admin),
    service: ProfileService = Depends(get_profile_service)
):
    """Make a user admin or member"""
    return service.update_role(user_id, role_update.role)

import logging
from supabase import Client
from app.modules.profiles.schemas import ProfileResponse
from app.modules.auth.schemas import SessionContext
from typing import List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = "id, full_name, email, role, created_at"


class ProfileService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_profile(self, user_id: str) -> Optional[ProfileResponse]:
        """Get profile by user ID, or None when it does not exist"""
        try:
            result = self.supabase.table("profiles")\
                .select(PROFILE_COLUMNS)\
                .eq("id", user_id)\
                .limit(1)\
                .execute()

            if not result.data:
                return None

            return ProfileResponse(**result.data[0])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def ensure_profile(self, session: SessionContext) -> ProfileResponse:
        """Return the caller's profile, inserting a member profile if the sign-up trigger left none"""
        profile = self.get_profile(session.user_id)
        if profile:
            return profile
        try:
            result = self.supabase.table("profiles").insert({
                "id": session.user_id,
                "email": session.email,
                "full_name": session.user_metadata.get("full_name") or None,
                "role": "member"
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create profile")

            logger.info(f"Created missing profile for user {session.user_id}")
            return ProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_profiles(self) -> List[ProfileResponse]:
        """All profiles, oldest first"""
        try:
            result = self.supabase.table("profiles")\
                .select(PROFILE_COLUMNS)\
                .order("created_at")\
                .execute()
            return [ProfileResponse(**row) for row in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_members(self) -> List[ProfileResponse]:
        """Profiles eligible for pairing (role = member), oldest first"""
        try:
            result = self.supabase.table("profiles")\
                .select(PROFILE_COLUMNS)\
                .eq("role", "member")\
                .order("created_at")\
                .execute()
            return [ProfileResponse(**row) for row in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_profiles_by_ids(self, user_ids: List[str]) -> List[ProfileResponse]:
        if not user_ids:
            return []
        try:
            result = self.supabase.table("profiles")\
                .select(PROFILE_COLUMNS)\
                .in_("id", list(user_ids))\
                .execute()
            return [ProfileResponse(**row) for row in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_role(self, user_id: str, role: str) -> ProfileResponse:
        """Change a user's role"""
        try:
            result = self.supabase.table("profiles")\
                .update({"role": role})\
                .eq("id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="User not found")

            logger.info(f"Set role of user {user_id} to {role}")
            return ProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

from supabase import Client
from app.modules.dashboard.schemas import DashboardResponse
from app.modules.profiles.service import ProfileService
from app.modules.auth.schemas import SessionContext
from typing import Optional
from fastapi import HTTPException


class DashboardService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.profiles = ProfileService(supabase)

    def get_active_pair_id(self, user_id: str) -> Optional[int]:
        """The caller's pair in the active week, via the secure lookup"""
        try:
            result = self.supabase.rpc("get_active_pair_for_user", {"uid": user_id}).execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        rows = result.data or []
        return rows[0]["pair_id"] if rows else None

    def load(self, session: SessionContext) -> DashboardResponse:
        profile = self.profiles.ensure_profile(session)
        pair_id = self.get_active_pair_id(session.user_id)
        return DashboardResponse(
            profile=profile,
            active_pair_id=pair_id,
            redirect_to=f"/room/{pair_id}" if pair_id is not None else None
        )

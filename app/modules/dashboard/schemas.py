from pydantic import BaseModel
from typing import Optional
from app.modules.profiles.schemas import ProfileResponse


class DashboardResponse(BaseModel):
    profile: ProfileResponse
    active_pair_id: Optional[int] = None
    redirect_to: Optional[str] = None

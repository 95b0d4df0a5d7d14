from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from app.modules.profiles.schemas import ProfileResponse
from app.modules.weekly_cycles.schemas import WeeklyCycleResponse


class PairResponse(BaseModel):
    id: int
    weekly_cycle_id: int
    members: List[ProfileResponse] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ManualPairRequest(BaseModel):
    user_a: Optional[str] = None
    user_b: Optional[str] = None


class PairingOverview(BaseModel):
    week: Optional[WeeklyCycleResponse] = None
    pairs: List[PairResponse]
    unpaired: List[ProfileResponse]
    unpaired_count: int


class AutoPairResponse(BaseModel):
    pairs_created: int
    unpaired_count: int
    pairs: List[PairResponse]

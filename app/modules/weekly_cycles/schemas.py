from pydantic import BaseModel
from typing import Optional, Literal
from datetime import date, datetime

CycleStatus = Literal["planned", "active", "archived"]


class WeeklyCycleResponse(BaseModel):
    id: int
    week_start_date: date
    week_end_date: date
    status: CycleStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ManualRangeRequest(BaseModel):
    week_start_date: Optional[date] = None
    week_end_date: Optional[date] = None

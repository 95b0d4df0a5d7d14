from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime

GoalStatus = Literal["not_started", "in_progress", "blocked", "done"]


class RoomMember(BaseModel):
    id: str
    full_name: Optional[str] = None
    email: Optional[str] = None


class GoalCreate(BaseModel):
    title: str
    notes: Optional[str] = None


class GoalUpdate(BaseModel):
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    status: Optional[GoalStatus] = None


class GoalResponse(BaseModel):
    id: int
    pair_id: int
    owner_user_id: str
    title: str
    notes: Optional[str] = None
    status: GoalStatus = "not_started"
    progress: int = 0

    class Config:
        from_attributes = True


class CommentCreate(BaseModel):
    body: str


class CommentResponse(BaseModel):
    id: int
    pair_id: Optional[int] = None
    user_id: str
    body: str
    created_at: datetime

    class Config:
        from_attributes = True


class CheckInCreate(BaseModel):
    goal_id: Optional[int] = None
    progress: int = Field(ge=0, le=100)
    note: Optional[str] = None


class CheckInResponse(BaseModel):
    id: int
    goal_id: int
    user_id: str
    progress: Optional[int] = None
    body: Optional[str] = None
    created_at: datetime
    goal_title: str


class RoomResponse(BaseModel):
    pair_id: int
    me: Optional[RoomMember] = None
    partner: Optional[RoomMember] = None
    members: List[RoomMember]
    my_goals: List[GoalResponse]
    partner_goals: List[GoalResponse]
    comments: List[CommentResponse]
    recent_check_ins: List[CheckInResponse]

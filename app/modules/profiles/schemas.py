from pydantic import BaseModel
from typing import Optional, Literal
from datetime import datetime

Role = Literal["admin", "member"]


class ProfileResponse(BaseModel):
    id: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    role: Role = "member"
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RoleUpdate(BaseModel):
    role: Role

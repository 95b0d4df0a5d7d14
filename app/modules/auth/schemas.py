from pydantic import BaseModel, EmailStr
from typing import Optional, Dict, Any


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str


class SignupRequest(BaseModel):
    email: EmailStr
    password: str
    full_name: Optional[str] = None


class SignupResponse(BaseModel):
    user_id: str
    email: str
    access_token: Optional[str] = None
    confirmation_required: bool = False
    message: str


class SessionContext(BaseModel):
    """Identity of the caller, resolved once per request from the bearer token"""
    user_id: str
    email: Optional[str] = None
    access_token: str
    user_metadata: Dict[str, Any] = {}


class MeResponse(BaseModel):
    user_id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: Optional[str] = None


class GuardResponse(BaseModel):
    path: str
    allowed: bool
    redirect_to: Optional[str] = None

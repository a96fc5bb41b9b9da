from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from app.models.all_models import UserRole
from app.utils.permissions import Capability


class LoginRequest(BaseModel):
    username: str
    password: str

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int

class RefreshTokenRequest(BaseModel):
    refresh_token: str

class UserInfo(BaseModel):
    id: UUID
    username: str
    email: str
    full_name: Optional[str] = None
    role: UserRole
    capabilities: List[Capability] = []

    class Config:
        from_attributes = True

class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    full_name: Optional[str] = Field(None, max_length=120)
    password: str = Field(..., min_length=8, max_length=64)
    role: UserRole

class UserResponse(BaseModel):
    id: UUID
    username: str
    email: str
    full_name: Optional[str] = None
    role: UserRole
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .models import AccountRole


class UserBase(BaseModel):
    username: str
    role: AccountRole
    base_id: Optional[int] = None


class UserCreate(UserBase):
    password: str

    @field_validator("username")
    @classmethod
    def _strip_username(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("username is required")
        return v


class UserRead(UserBase):
    id: int

    class Config:
        from_attributes = True


class UserDetail(UserRead):
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime


class LoginRequest(BaseModel):
    username: str = Field(..., description="Login name, e.g. 'commander_alpha'")
    password: str


class LoginResponse(BaseModel):
    user: UserRead
    access_token: str
    token_type: str = "bearer"
    expires_in: int

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, field_validator


class BaseCreate(BaseModel):
    name: str
    location: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("field is required")
        return v


class BaseRead(BaseCreate):
    id: int

    class Config:
        from_attributes = True


class AssetCreate(BaseModel):
    name: str
    category: str
    description: Optional[str] = None

    @field_validator("name", "category")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("field is required")
        return v


class AssetRead(AssetCreate):
    id: int

    class Config:
        from_attributes = True

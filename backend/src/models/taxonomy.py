"""Category and tag models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

HEX_COLOR_PATTERN = r"^#[0-9a-fA-F]{3,8}$"


class UsageCounts(BaseModel):
    notes: int = Field(0, ge=0)


class Category(BaseModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    color: Optional[str] = None
    created_at: datetime
    counts: Optional[UsageCounts] = None


class CategoryCreate(BaseModel):
    name: str = Field(..., max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    color: Optional[str] = None


class Tag(BaseModel):
    id: str
    name: str
    slug: str
    color: Optional[str] = None
    created_at: datetime
    counts: Optional[UsageCounts] = None


class TagCreate(BaseModel):
    name: str = Field(..., max_length=100)
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)


class TagUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    color: Optional[str] = None


__all__ = [
    "UsageCounts",
    "Category",
    "CategoryCreate",
    "CategoryUpdate",
    "Tag",
    "TagCreate",
    "TagUpdate",
]

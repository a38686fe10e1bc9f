"""Search request/response models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .note import CategoryRef, LinkCounts, TagRef


class SearchResult(BaseModel):
    """Note matching a search query."""

    id: str
    title: str
    snippet: str = Field(..., description="Content excerpt around the first hit")
    category: Optional[CategoryRef] = None
    tags: List[TagRef] = Field(default_factory=list)
    is_pinned: bool = False
    updated_at: datetime
    counts: LinkCounts = Field(default_factory=LinkCounts)


class SearchRequest(BaseModel):
    """Search query parameters."""

    query: str = Field("", max_length=256)
    category_id: Optional[str] = None
    tag_ids: List[str] = Field(default_factory=list)
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    limit: int = Field(50, ge=1, le=100)


__all__ = ["SearchResult", "SearchRequest"]

"""Note-related Pydantic models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_CONTENT_CHARS = 1_048_576


class CategoryRef(BaseModel):
    id: str
    name: str
    color: Optional[str] = None


class TagRef(BaseModel):
    id: str
    name: str
    color: Optional[str] = None


class LinkCounts(BaseModel):
    """Outgoing and incoming link row counts."""

    links: int = Field(0, ge=0)
    backlinks: int = Field(0, ge=0)


class Note(BaseModel):
    """Complete note with content and relations."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "5f0c4d3e9a8b4f7c8d2e1a0b3c4d5e6f",
                "user_id": "alice",
                "title": "Project Plan",
                "content": "Milestones are tracked in [[Roadmap]].",
                "excerpt": None,
                "category": {"id": "c1", "name": "Work", "color": "#ef4444"},
                "tags": [{"id": "t1", "name": "planning", "color": None}],
                "is_pinned": False,
                "is_favorite": True,
                "is_moc": False,
                "post_id": None,
                "created_at": "2025-01-10T09:00:00Z",
                "updated_at": "2025-01-15T14:30:00Z",
            }
        }
    )

    id: str
    user_id: str = Field(..., description="Owner user ID")
    title: str = Field(..., min_length=1, description="Display title")
    content: str = Field(..., description="Markdown content with [[links]]")
    excerpt: Optional[str] = None
    category: Optional[CategoryRef] = None
    tags: List[TagRef] = Field(default_factory=list)
    is_pinned: bool = False
    is_favorite: bool = False
    is_moc: bool = Field(False, description="Map-of-content index page")
    post_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    counts: LinkCounts = Field(default_factory=LinkCounts)


class NoteCreate(BaseModel):
    """Request payload to create a note."""

    title: str = Field(..., min_length=1, max_length=256)
    content: str = Field("", max_length=MAX_CONTENT_CHARS)
    excerpt: Optional[str] = Field(None, max_length=1000)
    category_id: Optional[str] = None
    tag_ids: List[str] = Field(default_factory=list)
    is_moc: bool = False

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Title cannot be blank")
        return cleaned


class NoteUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    title: Optional[str] = Field(None, min_length=1, max_length=256)
    content: Optional[str] = Field(None, max_length=MAX_CONTENT_CHARS)
    excerpt: Optional[str] = Field(None, max_length=1000)
    category_id: Optional[str] = None
    tag_ids: Optional[List[str]] = None
    is_pinned: Optional[bool] = None
    is_favorite: Optional[bool] = None


class NoteSummary(BaseModel):
    """Lightweight representation used for listings."""

    id: str
    title: str
    category: Optional[CategoryRef] = None
    tags: List[TagRef] = Field(default_factory=list)
    is_pinned: bool = False
    is_favorite: bool = False
    is_moc: bool = False
    updated_at: datetime
    counts: LinkCounts = Field(default_factory=LinkCounts)


class NotePreview(BaseModel):
    """Hover preview for internal links."""

    id: str
    title: str
    preview: str
    category: Optional[CategoryRef] = None
    tags: List[TagRef] = Field(default_factory=list)
    updated_at: datetime
    counts: LinkCounts


class RenderedNote(BaseModel):
    """Note content with [[links]] rewritten to Markdown links."""

    id: str
    title: str
    content: str
    broken_links: List[str] = Field(default_factory=list)


class MocUpdate(BaseModel):
    is_moc: bool


__all__ = [
    "CategoryRef",
    "TagRef",
    "LinkCounts",
    "Note",
    "NoteCreate",
    "NoteUpdate",
    "NoteSummary",
    "NotePreview",
    "RenderedNote",
    "MocUpdate",
]

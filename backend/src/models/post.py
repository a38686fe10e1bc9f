"""Published post models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .note import CategoryRef, TagRef


class Post(BaseModel):
    """A blog post derived from a note."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "5f0c3a2b1e4d4c6a8b7e9f0a1b2c3d4e",
                "user_id": "local-dev",
                "note_id": "a1",
                "title": "Hello World",
                "slug": "hello-world",
                "content": "First post, see [[Roadmap]].",
                "excerpt": "First post",
                "meta_title": "Hello World",
                "meta_description": "First post",
                "category": {"id": "c1", "name": "Work", "color": "#ef4444"},
                "tags": [{"id": "t1", "name": "planning", "color": None}],
                "published": True,
                "comments_count": 2,
                "created_at": "2025-01-15T14:30:00Z",
                "updated_at": "2025-01-15T14:30:00Z",
            }
        }
    )

    id: str
    user_id: str
    note_id: Optional[str] = None
    title: str
    slug: str
    content: str
    excerpt: Optional[str] = None
    meta_title: Optional[str] = Field(None, description="SEO title, defaults to the note title")
    meta_description: Optional[str] = Field(None, description="SEO description")
    cover_image: Optional[str] = None
    category: Optional[CategoryRef] = None
    tags: List[TagRef] = Field(default_factory=list)
    published: bool = True
    comments_count: int = Field(0, description="Approved comments, replies included")
    created_at: datetime
    updated_at: datetime


class PublishRequest(BaseModel):
    """Options for publishing a note; defaults come from the note itself."""

    title: Optional[str] = Field(None, min_length=1, max_length=256)
    slug: Optional[str] = Field(None, max_length=256)
    excerpt: Optional[str] = Field(None, max_length=1000)
    meta_title: Optional[str] = Field(None, max_length=256)
    meta_description: Optional[str] = Field(None, max_length=1000)
    cover_image: Optional[str] = Field(None, max_length=2048)
    category_id: Optional[str] = Field(None, description="Defaults to the note's category")
    tag_ids: Optional[List[str]] = Field(None, description="Defaults to the note's tags")


class PostUpdate(BaseModel):
    """
    Partial post update.

    A new title re-derives the slug. Nullable fields are cleared when sent
    as explicit nulls.
    """

    title: Optional[str] = Field(None, max_length=256)
    content: Optional[str] = None
    excerpt: Optional[str] = Field(None, max_length=1000)
    meta_title: Optional[str] = Field(None, max_length=256)
    meta_description: Optional[str] = Field(None, max_length=1000)
    cover_image: Optional[str] = Field(None, max_length=2048)
    category_id: Optional[str] = None
    tag_ids: Optional[List[str]] = None
    published: Optional[bool] = None


__all__ = ["Post", "PublishRequest", "PostUpdate"]

"""Blog comment models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class CommentCreate(BaseModel):
    """A reader's comment or reply; signed-in readers are linked by user id."""

    content: str = Field(..., max_length=5000)
    author_name: str = Field(..., max_length=100)
    author_email: Optional[str] = Field(None, max_length=256, description="Stored, never shown")
    author_url: Optional[str] = Field(None, max_length=2048)
    parent_id: Optional[str] = Field(None, description="Comment being replied to")


class Comment(BaseModel):
    id: str
    post_id: str
    parent_id: Optional[str] = None
    user_id: Optional[str] = None
    author_name: str
    author_url: Optional[str] = None
    content: str
    approved: bool = True
    created_at: datetime
    replies: List[Comment] = Field(default_factory=list, description="Oldest first")


# Resolve the self reference in ``replies``
Comment.model_rebuild()


__all__ = ["Comment", "CommentCreate"]

"""Note link (edge) models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .note import CategoryRef, TagRef


class NoteLink(BaseModel):
    """Directed edge created from a ``[[...]]`` reference."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "8c1f0a6e2b3d4c5e9f7a6b5c4d3e2f1a",
                "source_id": "a1",
                "target_id": "b2",
                "context": "Milestones are tracked in [[Roadmap]].",
                "position": 26,
                "created_at": "2025-01-15T14:30:00Z",
            }
        }
    )

    id: str
    source_id: str
    target_id: str
    context: Optional[str] = Field(None, description="Text surrounding the reference")
    position: int = Field(..., ge=0, description="Character offset of the marker")
    created_at: datetime


class LinkedNote(BaseModel):
    """The note on the other end of a link, with the reference context."""

    link_id: str
    note_id: str
    title: str
    excerpt: Optional[str] = None
    context: Optional[str] = None
    position: int = 0
    category: Optional[CategoryRef] = None
    tags: List[TagRef] = Field(default_factory=list)
    created_at: datetime


class MocDetail(BaseModel):
    """A map-of-content note with both link directions expanded."""

    id: str
    title: str
    content: str
    category: Optional[CategoryRef] = None
    tags: List[TagRef] = Field(default_factory=list)
    links: List[LinkedNote] = Field(default_factory=list)
    backlinks: List[LinkedNote] = Field(default_factory=list)


class RebuildResponse(BaseModel):
    """Result of re-deriving every link of a user."""

    status: str
    notes_synced: int
    links_created: int


__all__ = ["NoteLink", "LinkedNote", "MocDetail", "RebuildResponse"]

"""HTTP API routes for search operations."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query

from ...models.search import SearchRequest, SearchResult
from ...services.notes import NoteService
from ..dependencies import get_note_service
from ..middleware import AuthContext, get_auth_context

router = APIRouter()


@router.get("/api/search", response_model=list[SearchResult])
async def search_notes(
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    notes: Annotated[NoteService, Depends(get_note_service)],
    q: str = Query("", max_length=256),
    category_id: Optional[str] = Query(None),
    tag_ids: Optional[List[str]] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    limit: int = Query(50, ge=1, le=100),
):
    """Search titles and content of the current user's notes."""
    request = SearchRequest(
        query=q,
        category_id=category_id,
        tag_ids=tag_ids or [],
        date_from=date_from,
        date_to=date_to,
        limit=limit,
    )
    return notes.search(auth.user_id, request)


__all__ = ["router"]

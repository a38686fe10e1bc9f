"""HTTP API routes for note operations."""

from __future__ import annotations

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ...models.link import LinkedNote, MocDetail, RebuildResponse
from ...models.note import (
    MocUpdate,
    Note,
    NoteCreate,
    NotePreview,
    NoteSummary,
    NoteUpdate,
    RenderedNote,
)
from ...services.errors import ServiceError
from ...services.link_sync import LinkSynchronizer
from ...services.notes import NoteService
from ..dependencies import get_link_synchronizer, get_note_service
from ..middleware import AuthContext, get_auth_context

logger = logging.getLogger(__name__)

router = APIRouter()

Auth = Annotated[AuthContext, Depends(get_auth_context)]
Notes = Annotated[NoteService, Depends(get_note_service)]


@router.get("/api/notes", response_model=list[NoteSummary])
async def list_notes(
    auth: Auth,
    notes: Notes,
    category_id: Optional[str] = Query(None, description="Only notes in this category"),
    tag_id: Optional[str] = Query(None, description="Only notes carrying this tag"),
    pinned: Optional[bool] = Query(None),
    favorite: Optional[bool] = Query(None),
):
    """List the current user's notes, pinned first."""
    try:
        return notes.list_notes(
            auth.user_id,
            category_id=category_id,
            tag_id=tag_id,
            pinned=pinned,
            favorite=favorite,
        )
    except ServiceError:
        raise
    except Exception as e:
        logger.exception("Listing notes failed")
        raise HTTPException(status_code=500, detail=f"Failed to list notes: {str(e)}")


@router.post("/api/notes", response_model=Note, status_code=status.HTTP_201_CREATED)
async def create_note(create: NoteCreate, auth: Auth, notes: Notes):
    """Create a note and link it to the notes it references."""
    return notes.create_note(auth.user_id, create)


@router.get("/api/notes/{note_id}", response_model=Note)
async def get_note(note_id: str, auth: Auth, notes: Notes):
    return notes.get_note(auth.user_id, note_id)


@router.patch("/api/notes/{note_id}", response_model=Note)
async def update_note(note_id: str, update: NoteUpdate, auth: Auth, notes: Notes):
    """Update a note; saving new content replaces its outgoing links."""
    return notes.update_note(auth.user_id, note_id, update)


@router.delete("/api/notes/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(note_id: str, auth: Auth, notes: Notes) -> Response:
    notes.delete_note(auth.user_id, note_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/api/notes/{note_id}/preview", response_model=NotePreview)
async def get_note_preview(note_id: str, auth: Auth, notes: Notes):
    """Short preview shown when hovering an internal link."""
    return notes.get_preview(auth.user_id, note_id)


@router.get("/api/notes/{note_id}/rendered", response_model=RenderedNote)
async def get_rendered_note(note_id: str, auth: Auth, notes: Notes):
    """Note content with [[links]] rewritten to /notes/<id> or broken: targets."""
    return notes.render_note(auth.user_id, note_id)


@router.get("/api/notes/{note_id}/links", response_model=list[LinkedNote])
async def get_outgoing_links(note_id: str, auth: Auth, notes: Notes):
    return notes.get_outgoing_links(auth.user_id, note_id)


@router.get("/api/notes/{note_id}/backlinks", response_model=list[LinkedNote])
async def get_backlinks(note_id: str, auth: Auth, notes: Notes):
    """Get all notes that link to this note."""
    return notes.get_backlinks(auth.user_id, note_id)


@router.put("/api/notes/{note_id}/moc", response_model=Note)
async def set_moc_status(note_id: str, update: MocUpdate, auth: Auth, notes: Notes):
    """Mark or unmark a note as a map of content."""
    return notes.set_moc(auth.user_id, note_id, update.is_moc)


@router.get("/api/moc", response_model=list[NoteSummary])
async def list_moc_notes(auth: Auth, notes: Notes):
    return notes.list_moc_notes(auth.user_id)


@router.get("/api/moc/{note_id}", response_model=MocDetail)
async def get_moc_note(note_id: str, auth: Auth, notes: Notes):
    return notes.get_moc_detail(auth.user_id, note_id)


@router.post("/api/links/rebuild", response_model=RebuildResponse)
async def rebuild_links(
    auth: Auth,
    synchronizer: Annotated[LinkSynchronizer, Depends(get_link_synchronizer)],
):
    """Re-derive the links of every note, e.g. after notes were renamed."""
    result = synchronizer.resync_user_links(auth.user_id)
    return RebuildResponse(status="completed", **result)


__all__ = ["router"]

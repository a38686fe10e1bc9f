"""FastMCP server exposing note, link and graph tools."""

from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP
from fastmcp.server.dependencies import get_http_request
from pydantic import Field

# Load environment variables from .env file
load_dotenv()

from ..models.note import NoteCreate, NoteUpdate
from ..models.search import SearchRequest
from ..services.auth import LOCAL_DEV_USER, AuthError, AuthService
from ..services.database import DatabaseService
from ..services.graph import GraphProjector
from ..services.notes import NoteService

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "notegraph",
    instructions=(
        "Personal knowledge base tools. STDIO uses LOCAL_USER_ID (default 'local-dev'); HTTP "
        "mode authenticates each request with a bearer JWT. Notes link to each other with "
        "[[Title]] markers; a marker resolves to the user's note whose title contains the text "
        "(case-insensitive), preferring an exact title match, then the most recently updated "
        "note. Saving content replaces the note's outgoing links; self references are ignored."
    ),
)

db_service = DatabaseService()
note_service = NoteService(db_service)
graph_projector = GraphProjector(db_service)


def _current_user_id() -> str:
    """Resolve the acting user ID (local mode defaults to local-dev)."""
    try:
        request = get_http_request()
    except RuntimeError:
        request = None

    if request is not None:
        header = request.headers.get("Authorization")
        if not header:
            raise PermissionError("Authorization header required")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token:
            raise PermissionError("Authorization header must be 'Bearer <token>'")
        try:
            payload = AuthService().validate_jwt(token)
        except AuthError as exc:
            raise PermissionError(exc.message) from exc
        return payload.sub

    # STDIO / local fall back
    return os.getenv("LOCAL_USER_ID", LOCAL_DEV_USER)


def _log_call(tool_name: str, user_id: str, start_time: float, **extra: Any) -> None:
    duration_ms = (time.time() - start_time) * 1000
    logger.info(
        "MCP tool called",
        extra={
            "tool_name": tool_name,
            "user_id": user_id,
            "duration_ms": f"{duration_ms:.2f}",
            **extra,
        },
    )


@mcp.tool(name="list_notes", description="List notes, pinned first, then most recently updated.")
def list_notes(
    category_id: Optional[str] = Field(default=None, description="Only notes in this category."),
    tag_id: Optional[str] = Field(default=None, description="Only notes carrying this tag."),
) -> List[Dict[str, Any]]:
    start_time = time.time()
    user_id = _current_user_id()

    notes = note_service.list_notes(user_id, category_id=category_id, tag_id=tag_id)

    _log_call("list_notes", user_id, start_time, result_count=len(notes))
    return [note.model_dump(mode="json") for note in notes]


@mcp.tool(name="read_note", description="Read a note with its content, tags and link counts.")
def read_note(
    note_id: str = Field(..., description="Note id."),
) -> Dict[str, Any]:
    start_time = time.time()
    user_id = _current_user_id()

    note = note_service.get_note(user_id, note_id)

    _log_call("read_note", user_id, start_time, note_id=note_id)
    return note.model_dump(mode="json")


@mcp.tool(
    name="write_note",
    description=(
        "Create a note, or update one when note_id is given. Saving content re-derives the "
        "note's outgoing [[links]]."
    ),
)
def write_note(
    title: Optional[str] = Field(
        default=None, description="Title; required when creating a note."
    ),
    content: Optional[str] = Field(default=None, description="Markdown content with [[links]]."),
    note_id: Optional[str] = Field(default=None, description="Existing note to update."),
    category_id: Optional[str] = Field(default=None, description="Category to file the note in."),
    tag_ids: Optional[List[str]] = Field(default=None, description="Replacement set of tag ids."),
) -> Dict[str, Any]:
    start_time = time.time()
    user_id = _current_user_id()

    if note_id:
        fields: Dict[str, Any] = {
            key: value
            for key, value in {
                "title": title,
                "content": content,
                "category_id": category_id,
                "tag_ids": tag_ids,
            }.items()
            if value is not None
        }
        note = note_service.update_note(user_id, note_id, NoteUpdate(**fields))
    else:
        if not title:
            raise ValueError("title is required when creating a note")
        note = note_service.create_note(
            user_id,
            NoteCreate(
                title=title,
                content=content or "",
                category_id=category_id,
                tag_ids=tag_ids or [],
            ),
        )

    _log_call(
        "write_note",
        user_id,
        start_time,
        note_id=note.id,
        is_new=not note_id,
        links=note.counts.links,
    )
    return note.model_dump(mode="json")


@mcp.tool(name="delete_note", description="Delete a note together with its links.")
def delete_note(
    note_id: str = Field(..., description="Note id."),
) -> Dict[str, str]:
    start_time = time.time()
    user_id = _current_user_id()

    note_service.delete_note(user_id, note_id)

    _log_call("delete_note", user_id, start_time, note_id=note_id)
    return {"status": "ok"}


@mcp.tool(name="get_backlinks", description="List notes that link to the target note.")
def get_backlinks(
    note_id: str = Field(..., description="Note id."),
) -> List[Dict[str, Any]]:
    start_time = time.time()
    user_id = _current_user_id()

    backlinks = note_service.get_backlinks(user_id, note_id)

    _log_call("get_backlinks", user_id, start_time, note_id=note_id, result_count=len(backlinks))
    return [link.model_dump(mode="json") for link in backlinks]


@mcp.tool(
    name="get_graph",
    description="Nodes (sized by link count) and directed edges of the note graph.",
)
def get_graph(
    category_id: Optional[str] = Field(default=None, description="Restrict to one category."),
    tag_ids: Optional[List[str]] = Field(
        default=None, description="Restrict to notes carrying any of these tags."
    ),
) -> Dict[str, Any]:
    start_time = time.time()
    user_id = _current_user_id()

    graph = graph_projector.get_graph_data(user_id, category_id=category_id, tag_ids=tag_ids)

    _log_call(
        "get_graph",
        user_id,
        start_time,
        node_count=len(graph.nodes),
        edge_count=len(graph.edges),
    )
    return graph.model_dump(mode="json", by_alias=True)


@mcp.tool(name="search_notes", description="Case-insensitive search over titles and content.")
def search_notes(
    query: str = Field(..., description="Search text."),
    limit: int = Field(50, ge=1, le=100, description="Result cap between 1 and 100."),
) -> List[Dict[str, Any]]:
    start_time = time.time()
    user_id = _current_user_id()

    results = note_service.search(user_id, SearchRequest(query=query, limit=limit))

    _log_call(
        "search_notes",
        user_id,
        start_time,
        query=query,
        limit=limit,
        result_count=len(results),
    )
    return [result.model_dump(mode="json") for result in results]


if __name__ == "__main__":
    transport = os.getenv("MCP_TRANSPORT", "stdio").strip().lower() or "stdio"

    # Configure HTTP transport with custom port if specified
    if transport == "http":
        port = int(os.getenv("MCP_PORT", "8001"))
        host = os.getenv("MCP_HOST", "127.0.0.1")
        logger.info(
            "Starting MCP server",
            extra={"transport": transport, "host": host, "port": port},
        )
        mcp.run(transport=transport, host=host, port=port)
    else:
        logger.info("Starting MCP server", extra={"transport": transport})
        mcp.run(transport=transport)

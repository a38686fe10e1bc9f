"""Pydantic models for data validation and serialization."""

from .auth import CurrentUser, JWTPayload, TokenResponse
from .graph import GraphData, GraphEdge, GraphFilterOption, GraphFilters, GraphNode
from .link import LinkedNote, MocDetail, NoteLink, RebuildResponse
from .note import (
    CategoryRef,
    LinkCounts,
    MocUpdate,
    Note,
    NoteCreate,
    NotePreview,
    NoteSummary,
    NoteUpdate,
    RenderedNote,
    TagRef,
)
from .comment import Comment, CommentCreate
from .post import Post, PostUpdate, PublishRequest
from .search import SearchRequest, SearchResult
from .taxonomy import (
    Category,
    CategoryCreate,
    CategoryUpdate,
    Tag,
    TagCreate,
    TagUpdate,
    UsageCounts,
)

__all__ = [
    "Note",
    "NoteCreate",
    "NoteUpdate",
    "NoteSummary",
    "NotePreview",
    "RenderedNote",
    "MocUpdate",
    "CategoryRef",
    "TagRef",
    "LinkCounts",
    "NoteLink",
    "LinkedNote",
    "MocDetail",
    "RebuildResponse",
    "GraphNode",
    "GraphEdge",
    "GraphData",
    "GraphFilterOption",
    "GraphFilters",
    "Category",
    "CategoryCreate",
    "CategoryUpdate",
    "Tag",
    "TagCreate",
    "TagUpdate",
    "UsageCounts",
    "Post",
    "PublishRequest",
    "PostUpdate",
    "Comment",
    "CommentCreate",
    "SearchResult",
    "SearchRequest",
    "TokenResponse",
    "JWTPayload",
    "CurrentUser",
]

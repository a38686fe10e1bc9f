"""FastAPI dependency providers for the service layer."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from ..services.comments import CommentService
from ..services.database import DatabaseService
from ..services.graph import GraphProjector
from ..services.link_sync import LinkSynchronizer
from ..services.notes import NoteService
from ..services.posts import PostService
from ..services.taxonomy import TaxonomyService


def get_db_service() -> DatabaseService:
    return DatabaseService()


Database = Annotated[DatabaseService, Depends(get_db_service)]


def get_note_service(db: Database) -> NoteService:
    return NoteService(db)


def get_link_synchronizer(db: Database) -> LinkSynchronizer:
    return LinkSynchronizer(db)


def get_graph_projector(db: Database) -> GraphProjector:
    return GraphProjector(db)


def get_taxonomy_service(db: Database) -> TaxonomyService:
    return TaxonomyService(db)


def get_post_service(db: Database) -> PostService:
    return PostService(db)


def get_comment_service(db: Database) -> CommentService:
    return CommentService(db)


__all__ = [
    "get_db_service",
    "get_note_service",
    "get_link_synchronizer",
    "get_graph_projector",
    "get_taxonomy_service",
    "get_post_service",
    "get_comment_service",
]

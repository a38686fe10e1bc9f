"""Service layer for business logic and persistence."""

from .auth import AuthError, AuthService
from .comments import CommentNotFoundError, CommentService
from .config import AppConfig, get_config, reload_config
from .database import DatabaseService, init_database, utcnow_iso
from .errors import ConflictError, NotFoundError, ServiceError
from .graph import GraphProjector, node_color, node_size
from .link_parser import ParsedLink, extract_note_mentions, parse_links
from .link_resolver import TitleIndex, build_title_map, render_links
from .link_sync import LinkSyncError, LinkSynchronizer
from .notes import NoteNotFoundError, NoteService
from .posts import PostNotFoundError, PostService
from .taxonomy import TaxonomyService, generate_slug, validate_relations

__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
    "DatabaseService",
    "init_database",
    "utcnow_iso",
    "AuthService",
    "AuthError",
    "ServiceError",
    "NotFoundError",
    "ConflictError",
    "ParsedLink",
    "parse_links",
    "extract_note_mentions",
    "TitleIndex",
    "build_title_map",
    "render_links",
    "LinkSynchronizer",
    "LinkSyncError",
    "GraphProjector",
    "node_size",
    "node_color",
    "NoteService",
    "NoteNotFoundError",
    "PostService",
    "PostNotFoundError",
    "CommentService",
    "CommentNotFoundError",
    "TaxonomyService",
    "generate_slug",
    "validate_relations",
]

from pathlib import Path

import pytest

from backend.src.services.comments import CommentService
from backend.src.services.database import DatabaseService
from backend.src.services.graph import GraphProjector
from backend.src.services.link_sync import LinkSynchronizer
from backend.src.services.notes import NoteService
from backend.src.services.posts import PostService
from backend.src.services.taxonomy import TaxonomyService


@pytest.fixture
def db_service(tmp_path: Path) -> DatabaseService:
    service = DatabaseService(tmp_path / "notes.db")
    service.initialize()
    return service


@pytest.fixture
def note_service(db_service: DatabaseService) -> NoteService:
    return NoteService(db_service)


@pytest.fixture
def link_sync(db_service: DatabaseService) -> LinkSynchronizer:
    return LinkSynchronizer(db_service)


@pytest.fixture
def projector(db_service: DatabaseService) -> GraphProjector:
    return GraphProjector(db_service, default_color="#3b82f6")


@pytest.fixture
def taxonomy(db_service: DatabaseService) -> TaxonomyService:
    return TaxonomyService(db_service)


@pytest.fixture
def post_service(db_service: DatabaseService) -> PostService:
    return PostService(db_service)


@pytest.fixture
def set_updated_at(db_service: DatabaseService):
    """Overwrite a note's ``updated_at`` to control resolution tie-breaks."""

    def _set(note_id: str, value: str) -> None:
        conn = db_service.connect()
        try:
            with conn:
                conn.execute("UPDATE notes SET updated_at = ? WHERE id = ?", (value, note_id))
        finally:
            conn.close()

    return _set


@pytest.fixture
def link_rows(db_service: DatabaseService):
    """Return raw ``note_links`` rows, optionally for one source note."""

    def _rows(source_id: str | None = None) -> list[dict]:
        conn = db_service.connect()
        try:
            sql = "SELECT * FROM note_links"
            params: tuple = ()
            if source_id:
                sql += " WHERE source_id = ?"
                params = (source_id,)
            return [dict(row) for row in conn.execute(sql + " ORDER BY rowid", params)]
        finally:
            conn.close()

    return _rows


@pytest.fixture
def comment_service(db_service: DatabaseService) -> CommentService:
    return CommentService(db_service)

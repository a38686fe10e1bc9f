"""Keep the ``note_links`` edge table consistent with note content."""

from __future__ import annotations

import logging
import sqlite3
import time
import uuid
from typing import Any, Dict, List, Optional

from ..models.link import NoteLink
from .database import DatabaseService, utcnow_iso
from .errors import ServiceError
from .link_parser import parse_links
from .link_resolver import TitleIndex

logger = logging.getLogger(__name__)


class LinkSyncError(ServiceError):
    """Raised when the link rows of a note could not be replaced."""

    def __init__(self, message: str, *, detail: Optional[Dict[str, Any]] = None) -> None:
        super().__init__("save_failed", message, status_code=500, detail=detail)


class LinkSynchronizer:
    """Replace a note's outgoing links with the set derived from its content."""

    def __init__(self, db_service: DatabaseService | None = None) -> None:
        self.db_service = db_service or DatabaseService()

    def sync_note_links(
        self,
        conn: sqlite3.Connection,
        user_id: str,
        note_id: str,
        content: str,
        *,
        title_index: TitleIndex | None = None,
    ) -> List[NoteLink]:
        """
        Delete and recreate the outgoing links of ``note_id`` on ``conn``.

        Does not commit; callers wrap this in ``with conn:`` together with
        the note write so the swap is atomic.
        """
        parsed = parse_links(content)
        index = title_index or TitleIndex.for_user(conn, user_id)

        conn.execute("DELETE FROM note_links WHERE source_id = ?", (note_id,))

        rows: List[Dict[str, Any]] = []
        for link in parsed:
            target_id = index.resolve(link.text)
            if target_id is None or target_id == note_id:
                continue
            rows.append(
                {
                    "id": uuid.uuid4().hex,
                    "source_id": note_id,
                    "target_id": target_id,
                    "context": link.context,
                    "position": link.start,
                    "created_at": utcnow_iso(),
                }
            )

        if rows:
            conn.executemany(
                """
                INSERT INTO note_links (id, source_id, target_id, context, position, created_at)
                VALUES (:id, :source_id, :target_id, :context, :position, :created_at)
                """,
                rows,
            )

        logger.debug(
            "Note links synchronized",
            extra={
                "user_id": user_id,
                "note_id": note_id,
                "parsed_count": len(parsed),
                "resolved_count": len(rows),
            },
        )
        return [NoteLink(**row) for row in rows]

    def synchronize(self, user_id: str, note_id: str, content: str) -> List[NoteLink]:
        """Replace the links of one note in its own transaction."""
        start_time = time.time()
        conn = self.db_service.connect()
        try:
            with conn:
                created = self.sync_note_links(conn, user_id, note_id, content)
        except sqlite3.Error as exc:
            logger.exception("Link synchronization failed", extra={"note_id": note_id})
            raise LinkSyncError(
                "Failed to save note links", detail={"note_id": note_id}
            ) from exc
        finally:
            conn.close()

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Note links replaced",
            extra={
                "user_id": user_id,
                "note_id": note_id,
                "links_count": len(created),
                "duration_ms": f"{duration_ms:.2f}",
            },
        )
        return created

    def resync_user_links(self, user_id: str) -> Dict[str, int]:
        """Re-derive the links of every note owned by ``user_id``."""
        start_time = time.time()
        total = 0
        conn = self.db_service.connect()
        try:
            with conn:
                index = TitleIndex.for_user(conn, user_id)
                rows = conn.execute(
                    "SELECT id, content FROM notes WHERE user_id = ? ORDER BY rowid",
                    (user_id,),
                ).fetchall()
                for row in rows:
                    total += len(
                        self.sync_note_links(
                            conn, user_id, row["id"], row["content"], title_index=index
                        )
                    )
        except sqlite3.Error as exc:
            logger.exception("Link rebuild failed", extra={"user_id": user_id})
            raise LinkSyncError(
                "Failed to rebuild note links", detail={"user_id": user_id}
            ) from exc
        finally:
            conn.close()

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Note links rebuilt",
            extra={
                "user_id": user_id,
                "notes_count": len(rows),
                "links_count": total,
                "duration_ms": f"{duration_ms:.2f}",
            },
        )
        return {"notes_synced": len(rows), "links_created": total}


__all__ = ["LinkSyncError", "LinkSynchronizer"]

"""Note persistence, relations and link-aware reads."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import sqlite3
import time
import uuid
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..models.link import LinkedNote, MocDetail, NoteLink
from ..models.note import (
    CategoryRef,
    LinkCounts,
    Note,
    NoteCreate,
    NotePreview,
    NoteSummary,
    NoteUpdate,
    RenderedNote,
    TagRef,
)
from ..models.search import SearchRequest, SearchResult
from .database import DatabaseService, utcnow_iso
from .errors import NotFoundError, ServiceError
from .link_parser import extract_note_mentions
from .link_resolver import build_title_map, render_links
from .link_sync import LinkSyncError, LinkSynchronizer
from .taxonomy import validate_relations

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 200
SNIPPET_RADIUS = 60


def _as_utc_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def make_preview(content: str, excerpt: Optional[str] = None) -> str:
    """Excerpt if set, otherwise the first 200 characters of content."""
    if excerpt:
        return excerpt
    preview = content[:PREVIEW_CHARS]
    if len(content) > PREVIEW_CHARS:
        preview += "..."
    return preview


def _casefold_with_offsets(text: str) -> tuple[str, List[int]]:
    """Casefold ``text`` and record the source index of every folded character."""
    folded: List[str] = []
    owners: List[int] = []
    for index, char in enumerate(text):
        piece = char.casefold()
        folded.append(piece)
        owners.extend([index] * len(piece))
    return "".join(folded), owners


def make_snippet(content: str, query: str) -> str:
    """Return the slice of ``content`` around the first hit of ``query``."""
    if not content:
        return ""
    needle = query.casefold() if query else ""
    folded, owners = _casefold_with_offsets(content)
    position = folded.find(needle) if needle else -1
    if position < 0:
        return make_preview(content)
    # folding can change lengths (ß -> ss); slice by original indices
    hit_start = owners[position]
    hit_end = owners[position + len(needle) - 1] + 1
    start = max(0, hit_start - SNIPPET_RADIUS)
    end = min(len(content), hit_end + SNIPPET_RADIUS)
    snippet = content[start:end]
    if start > 0:
        snippet = "..." + snippet
    if end < len(content):
        snippet += "..."
    return snippet


class NoteNotFoundError(NotFoundError):
    """Raised for missing notes and for notes owned by another user."""

    def __init__(self, note_id: str) -> None:
        super().__init__("note_not_found", "Note not found", detail={"note_id": note_id})


class NoteService:
    """Read and write notes, keeping their link rows in sync."""

    def __init__(
        self,
        db_service: DatabaseService | None = None,
        link_synchronizer: LinkSynchronizer | None = None,
    ) -> None:
        self.db_service = db_service or DatabaseService()
        self.link_synchronizer = link_synchronizer or LinkSynchronizer(self.db_service)

    # Writes ---------------------------------------------------------------

    def create_note(self, user_id: str, payload: NoteCreate) -> Note:
        """Insert a note and derive its outgoing links in one transaction."""
        start_time = time.time()
        note_id = uuid.uuid4().hex
        now = utcnow_iso()

        conn = self.db_service.connect()
        try:
            validate_relations(conn, payload.category_id, payload.tag_ids)
            try:
                with conn:
                    conn.execute(
                        """
                        INSERT INTO notes (
                            id, user_id, title, content, excerpt, category_id,
                            is_moc, created_at, updated_at
                        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            note_id,
                            user_id,
                            payload.title,
                            payload.content,
                            payload.excerpt,
                            payload.category_id,
                            1 if payload.is_moc else 0,
                            now,
                            now,
                        ),
                    )
                    self._replace_tags(conn, note_id, payload.tag_ids)
                    links = self.link_synchronizer.sync_note_links(
                        conn, user_id, note_id, payload.content
                    )
            except sqlite3.Error as exc:
                logger.exception("Note create failed", extra={"user_id": user_id})
                raise LinkSyncError("Failed to save note", detail={"note_id": note_id}) from exc

            note = self._load_note(conn, user_id, note_id)
        finally:
            conn.close()

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Note created",
            extra={
                "user_id": user_id,
                "note_id": note_id,
                "links_count": len(links),
                "duration_ms": f"{duration_ms:.2f}",
            },
        )
        return note

    def update_note(self, user_id: str, note_id: str, payload: NoteUpdate) -> Note:
        """
        Apply a partial update.

        Links are re-derived only when ``content`` is part of the payload. An
        explicit ``category_id: null`` clears the category.
        """
        start_time = time.time()
        fields = payload.model_fields_set
        links: Optional[List[NoteLink]] = None

        conn = self.db_service.connect()
        try:
            self._require_owned(conn, user_id, note_id)
            validate_relations(
                conn,
                payload.category_id if "category_id" in fields else None,
                payload.tag_ids or [],
            )

            updates: Dict[str, Any] = {}
            if payload.title is not None:
                title = payload.title.strip()
                if not title:
                    raise ServiceError("invalid_title", "Title cannot be blank")
                updates["title"] = title
            if payload.content is not None:
                updates["content"] = payload.content
            if "excerpt" in fields:
                updates["excerpt"] = payload.excerpt or None
            if "category_id" in fields:
                updates["category_id"] = payload.category_id
            if payload.is_pinned is not None:
                updates["is_pinned"] = 1 if payload.is_pinned else 0
            if payload.is_favorite is not None:
                updates["is_favorite"] = 1 if payload.is_favorite else 0
            updates["updated_at"] = utcnow_iso()

            assignments = ", ".join(f"{column} = :{column}" for column in updates)
            try:
                with conn:
                    conn.execute(
                        f"UPDATE notes SET {assignments} WHERE id = :id",
                        {**updates, "id": note_id},
                    )
                    if payload.tag_ids is not None:
                        self._replace_tags(conn, note_id, payload.tag_ids)
                    if payload.content is not None:
                        links = self.link_synchronizer.sync_note_links(
                            conn, user_id, note_id, payload.content
                        )
            except sqlite3.Error as exc:
                logger.exception("Note update failed", extra={"note_id": note_id})
                raise LinkSyncError("Failed to save note", detail={"note_id": note_id}) from exc

            note = self._load_note(conn, user_id, note_id)
        finally:
            conn.close()

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Note updated",
            extra={
                "user_id": user_id,
                "note_id": note_id,
                "fields": sorted(fields),
                "links_count": None if links is None else len(links),
                "duration_ms": f"{duration_ms:.2f}",
            },
        )
        return note

    def delete_note(self, user_id: str, note_id: str) -> None:
        """Delete a note, its published post, tags and links in both directions."""
        conn = self.db_service.connect()
        try:
            row = self._require_owned(conn, user_id, note_id)
            with conn:
                if row["post_id"]:
                    conn.execute("DELETE FROM posts WHERE id = ?", (row["post_id"],))
                conn.execute("DELETE FROM notes WHERE id = ?", (note_id,))
        finally:
            conn.close()
        logger.info(
            "Note deleted",
            extra={"user_id": user_id, "note_id": note_id, "post_id": row["post_id"]},
        )

    def set_moc(self, user_id: str, note_id: str, is_moc: bool) -> Note:
        conn = self.db_service.connect()
        try:
            self._require_owned(conn, user_id, note_id)
            with conn:
                conn.execute(
                    "UPDATE notes SET is_moc = ?, updated_at = ? WHERE id = ?",
                    (1 if is_moc else 0, utcnow_iso(), note_id),
                )
            return self._load_note(conn, user_id, note_id)
        finally:
            conn.close()

    # Reads ----------------------------------------------------------------

    def get_note(self, user_id: str, note_id: str) -> Note:
        conn = self.db_service.connect()
        try:
            return self._load_note(conn, user_id, note_id)
        finally:
            conn.close()

    def list_notes(
        self,
        user_id: str,
        *,
        category_id: Optional[str] = None,
        tag_id: Optional[str] = None,
        pinned: Optional[bool] = None,
        favorite: Optional[bool] = None,
        moc_only: bool = False,
    ) -> List[NoteSummary]:
        """Notes of a user, pinned first then most recently updated."""
        clauses = ["n.user_id = ?"]
        params: List[Any] = [user_id]
        if category_id:
            clauses.append("n.category_id = ?")
            params.append(category_id)
        if tag_id:
            clauses.append(
                "EXISTS (SELECT 1 FROM note_tags nt WHERE nt.note_id = n.id AND nt.tag_id = ?)"
            )
            params.append(tag_id)
        if pinned is not None:
            clauses.append("n.is_pinned = ?")
            params.append(1 if pinned else 0)
        if favorite is not None:
            clauses.append("n.is_favorite = ?")
            params.append(1 if favorite else 0)
        if moc_only:
            clauses.append("n.is_moc = 1")

        conn = self.db_service.connect()
        try:
            rows = conn.execute(
                f"""
                SELECT n.* FROM notes n
                WHERE {" AND ".join(clauses)}
                ORDER BY n.is_pinned DESC, n.updated_at DESC
                """,
                params,
            ).fetchall()
            relations = self._relations(conn, rows)
        finally:
            conn.close()

        return [NoteSummary(**self._note_fields(row, relations)) for row in rows]

    def list_moc_notes(self, user_id: str) -> List[NoteSummary]:
        return self.list_notes(user_id, moc_only=True)

    def get_preview(self, user_id: str, note_id: str) -> NotePreview:
        note = self.get_note(user_id, note_id)
        return NotePreview(
            id=note.id,
            title=note.title,
            preview=make_preview(note.content, note.excerpt),
            category=note.category,
            tags=note.tags,
            updated_at=note.updated_at,
            counts=note.counts,
        )

    def get_outgoing_links(self, user_id: str, note_id: str) -> List[LinkedNote]:
        """Notes referenced by ``note_id``, newest link first."""
        return self._linked_notes(user_id, note_id, direction="outgoing")

    def get_backlinks(self, user_id: str, note_id: str) -> List[LinkedNote]:
        """Notes that reference ``note_id``, newest link first."""
        return self._linked_notes(user_id, note_id, direction="incoming")

    def get_moc_detail(self, user_id: str, note_id: str) -> MocDetail:
        note = self.get_note(user_id, note_id)
        if not note.is_moc:
            raise NotFoundError(
                "moc_not_found", "Note is not a map of content", detail={"note_id": note_id}
            )
        return MocDetail(
            id=note.id,
            title=note.title,
            content=note.content,
            category=note.category,
            tags=note.tags,
            links=self.get_outgoing_links(user_id, note_id),
            backlinks=self.get_backlinks(user_id, note_id),
        )

    def title_map(self, user_id: str) -> Dict[str, str]:
        conn = self.db_service.connect()
        try:
            rows = conn.execute(
                "SELECT id, title FROM notes WHERE user_id = ? ORDER BY rowid", (user_id,)
            ).fetchall()
        finally:
            conn.close()
        return build_title_map(rows)

    def render_note(self, user_id: str, note_id: str) -> RenderedNote:
        """Content with links resolved against the user's title map."""
        note = self.get_note(user_id, note_id)
        title_map = self.title_map(user_id)
        broken = [
            text
            for text in extract_note_mentions(note.content)
            if not (title_map.get(text.lower()) or title_map.get(text))
        ]
        return RenderedNote(
            id=note.id,
            title=note.title,
            content=render_links(note.content, title_map),
            broken_links=broken,
        )

    def search(self, user_id: str, request: SearchRequest) -> List[SearchResult]:
        """Case-insensitive substring search over titles and content."""
        query = request.query.strip()
        clauses = ["n.user_id = ?"]
        params: List[Any] = [user_id]
        if query:
            clauses.append("(instr(casefold(n.title), ?) > 0 OR instr(casefold(n.content), ?) > 0)")
            params.extend([query.casefold(), query.casefold()])
        if request.category_id:
            clauses.append("n.category_id = ?")
            params.append(request.category_id)
        if request.tag_ids:
            placeholders = ", ".join("?" for _ in request.tag_ids)
            clauses.append(
                "EXISTS (SELECT 1 FROM note_tags nt "
                f"WHERE nt.note_id = n.id AND nt.tag_id IN ({placeholders}))"
            )
            params.extend(request.tag_ids)
        if request.date_from:
            clauses.append("n.updated_at >= ?")
            params.append(_as_utc_iso(request.date_from))
        if request.date_to:
            clauses.append("n.updated_at <= ?")
            params.append(_as_utc_iso(request.date_to))
        params.append(request.limit)

        conn = self.db_service.connect()
        try:
            rows = conn.execute(
                f"""
                SELECT n.* FROM notes n
                WHERE {" AND ".join(clauses)}
                ORDER BY n.is_pinned DESC, n.updated_at DESC
                LIMIT ?
                """,
                params,
            ).fetchall()
            relations = self._relations(conn, rows)
        finally:
            conn.close()

        results = []
        for row in rows:
            fields = self._note_fields(row, relations)
            results.append(
                SearchResult(
                    id=fields["id"],
                    title=fields["title"],
                    snippet=make_snippet(row["content"], query),
                    category=fields["category"],
                    tags=fields["tags"],
                    is_pinned=fields["is_pinned"],
                    updated_at=fields["updated_at"],
                    counts=fields["counts"],
                )
            )
        logger.info(
            "Notes searched",
            extra={"user_id": user_id, "query": query, "result_count": len(results)},
        )
        return results

    # Helpers --------------------------------------------------------------

    def _require_owned(self, conn: sqlite3.Connection, user_id: str, note_id: str) -> sqlite3.Row:
        row = conn.execute(
            "SELECT * FROM notes WHERE id = ? AND user_id = ?", (note_id, user_id)
        ).fetchone()
        if row is None:
            raise NoteNotFoundError(note_id)
        return row

    def _replace_tags(self, conn: sqlite3.Connection, note_id: str, tag_ids: Iterable[str]) -> None:
        conn.execute("DELETE FROM note_tags WHERE note_id = ?", (note_id,))
        conn.executemany(
            "INSERT INTO note_tags (note_id, tag_id) VALUES (?, ?)",
            [(note_id, tag_id) for tag_id in dict.fromkeys(tag_ids)],
        )

    def _load_note(self, conn: sqlite3.Connection, user_id: str, note_id: str) -> Note:
        row = self._require_owned(conn, user_id, note_id)
        relations = self._relations(conn, [row])
        fields = self._note_fields(row, relations)
        return Note(
            **fields,
            user_id=row["user_id"],
            content=row["content"],
            excerpt=row["excerpt"],
            post_id=row["post_id"],
            created_at=row["created_at"],
        )

    def _relations(self, conn: sqlite3.Connection, rows: Sequence[sqlite3.Row]) -> Dict[str, Any]:
        """Load categories, tags and link counts for ``rows`` in bulk."""
        note_ids = [row["id"] for row in rows]
        if not note_ids:
            return {"categories": {}, "tags": {}, "outgoing": {}, "incoming": {}}
        placeholders = ", ".join("?" for _ in note_ids)

        category_ids = sorted({row["category_id"] for row in rows if row["category_id"]})
        categories: Dict[str, CategoryRef] = {}
        if category_ids:
            category_placeholders = ", ".join("?" for _ in category_ids)
            for row in conn.execute(
                f"SELECT id, name, color FROM categories WHERE id IN ({category_placeholders})",
                category_ids,
            ):
                categories[row["id"]] = CategoryRef(**dict(row))

        tags: Dict[str, List[TagRef]] = {}
        for row in conn.execute(
            f"""
            SELECT nt.note_id, t.id, t.name, t.color
            FROM note_tags nt JOIN tags t ON t.id = nt.tag_id
            WHERE nt.note_id IN ({placeholders})
            ORDER BY nt.rowid
            """,
            note_ids,
        ):
            tags.setdefault(row["note_id"], []).append(
                TagRef(id=row["id"], name=row["name"], color=row["color"])
            )

        outgoing = {
            row["source_id"]: int(row["count"])
            for row in conn.execute(
                f"""
                SELECT source_id, COUNT(*) AS count FROM note_links
                WHERE source_id IN ({placeholders}) GROUP BY source_id
                """,
                note_ids,
            )
        }
        incoming = {
            row["target_id"]: int(row["count"])
            for row in conn.execute(
                f"""
                SELECT target_id, COUNT(*) AS count FROM note_links
                WHERE target_id IN ({placeholders}) GROUP BY target_id
                """,
                note_ids,
            )
        }
        return {"categories": categories, "tags": tags, "outgoing": outgoing, "incoming": incoming}

    @staticmethod
    def _note_fields(row: sqlite3.Row, relations: Dict[str, Any]) -> Dict[str, Any]:
        note_id = row["id"]
        return {
            "id": note_id,
            "title": row["title"],
            "category": relations["categories"].get(row["category_id"]),
            "tags": relations["tags"].get(note_id, []),
            "is_pinned": bool(row["is_pinned"]),
            "is_favorite": bool(row["is_favorite"]),
            "is_moc": bool(row["is_moc"]),
            "updated_at": row["updated_at"],
            "counts": LinkCounts(
                links=relations["outgoing"].get(note_id, 0),
                backlinks=relations["incoming"].get(note_id, 0),
            ),
        }

    def _linked_notes(self, user_id: str, note_id: str, *, direction: str) -> List[LinkedNote]:
        if direction == "outgoing":
            anchor, other = "source_id", "target_id"
        else:
            anchor, other = "target_id", "source_id"

        conn = self.db_service.connect()
        try:
            self._require_owned(conn, user_id, note_id)
            rows = conn.execute(
                f"""
                SELECT l.id AS link_id, l.context, l.position, l.created_at AS link_created_at,
                       n.*
                FROM note_links l
                JOIN notes n ON n.id = l.{other}
                WHERE l.{anchor} = ? AND n.user_id = ?
                ORDER BY l.created_at DESC, l.rowid DESC
                """,
                (note_id, user_id),
            ).fetchall()
            relations = self._relations(conn, rows)
        finally:
            conn.close()

        return [
            LinkedNote(
                link_id=row["link_id"],
                note_id=row["id"],
                title=row["title"],
                excerpt=row["excerpt"],
                context=row["context"],
                position=row["position"],
                category=relations["categories"].get(row["category_id"]),
                tags=relations["tags"].get(row["id"], []),
                created_at=row["link_created_at"],
            )
            for row in rows
        ]


__all__ = ["NoteService", "NoteNotFoundError", "make_preview", "make_snippet"]

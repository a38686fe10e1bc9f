"""Publishing notes as blog posts."""

from __future__ import annotations

import logging
import sqlite3
import uuid
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..models.note import CategoryRef, TagRef
from ..models.post import Post, PostUpdate, PublishRequest
from .database import DatabaseService, utcnow_iso
from .errors import NotFoundError, ServiceError
from .notes import NoteNotFoundError, make_preview
from .taxonomy import generate_slug, validate_relations

logger = logging.getLogger(__name__)

# Columns a partial update may clear with an explicit null
NULLABLE_FIELDS = ("excerpt", "meta_title", "meta_description", "cover_image", "category_id")


class PostNotFoundError(NotFoundError):
    def __init__(self, key: str) -> None:
        super().__init__("post_not_found", "Post not found", detail={"post": key})


class PostService:
    """Create, read, edit and remove posts derived from notes."""

    def __init__(self, db_service: DatabaseService | None = None) -> None:
        self.db_service = db_service or DatabaseService()

    def publish_note(
        self, user_id: str, note_id: str, request: PublishRequest | None = None
    ) -> Post:
        """
        Publish a note, or refresh the post it was already published as.

        A republished post keeps its slug. New slugs come from the title and
        get a numeric suffix when taken. Category and tags default to the
        note's own; the meta title defaults to the title and the meta
        description to the excerpt.
        """
        request = request or PublishRequest()
        conn = self.db_service.connect()
        try:
            note = conn.execute(
                "SELECT * FROM notes WHERE id = ? AND user_id = ?", (note_id, user_id)
            ).fetchone()
            if note is None:
                raise NoteNotFoundError(note_id)

            title = (request.title or note["title"]).strip()
            if not title:
                raise ServiceError("invalid_title", "Title cannot be blank")
            category_id = request.category_id or note["category_id"]
            if request.tag_ids is not None:
                tag_ids = list(dict.fromkeys(request.tag_ids))
            else:
                tag_ids = [
                    row["tag_id"]
                    for row in conn.execute(
                        "SELECT tag_id FROM note_tags WHERE note_id = ? ORDER BY rowid", (note_id,)
                    )
                ]
            validate_relations(conn, category_id, tag_ids)

            preview = make_preview(note["content"], note["excerpt"])
            values: Dict[str, Any] = {
                "title": title,
                "content": note["content"],
                "excerpt": request.excerpt or request.meta_description or preview,
                "meta_title": request.meta_title or title,
                "meta_description": request.meta_description or preview,
                "category_id": category_id,
                "updated_at": utcnow_iso(),
            }
            existing = None
            if note["post_id"]:
                existing = conn.execute(
                    "SELECT * FROM posts WHERE id = ?", (note["post_id"],)
                ).fetchone()

            with conn:
                if existing is not None:
                    post_id = existing["id"]
                    values["slug"] = existing["slug"]
                    if request.slug:
                        values["slug"] = self._unique_slug(conn, request.slug, exclude_id=post_id)
                    values["cover_image"] = request.cover_image or existing["cover_image"]
                    conn.execute(
                        """
                        UPDATE posts
                        SET title = :title, slug = :slug, content = :content,
                            excerpt = :excerpt, meta_title = :meta_title,
                            meta_description = :meta_description,
                            cover_image = :cover_image, category_id = :category_id,
                            published = 1, updated_at = :updated_at
                        WHERE id = :id
                        """,
                        {**values, "id": post_id},
                    )
                else:
                    post_id = uuid.uuid4().hex
                    values["slug"] = self._unique_slug(
                        conn, request.slug or title, fallback=note_id
                    )
                    values["cover_image"] = request.cover_image
                    conn.execute(
                        """
                        INSERT INTO posts (
                            id, user_id, note_id, title, slug, content, excerpt,
                            meta_title, meta_description, cover_image, category_id,
                            published, created_at, updated_at
                        ) VALUES (
                            :id, :user_id, :note_id, :title, :slug, :content, :excerpt,
                            :meta_title, :meta_description, :cover_image, :category_id,
                            1, :updated_at, :updated_at
                        )
                        """,
                        {**values, "id": post_id, "user_id": user_id, "note_id": note_id},
                    )
                    conn.execute("UPDATE notes SET post_id = ? WHERE id = ?", (post_id, note_id))
                self._replace_tags(conn, post_id, tag_ids)
            post = self._load_post(conn, post_id)
        finally:
            conn.close()

        logger.info(
            "Note published",
            extra={
                "user_id": user_id,
                "note_id": note_id,
                "post_id": post_id,
                "republished": existing is not None,
            },
        )
        return post

    def update_post(self, user_id: str, post_id: str, payload: PostUpdate) -> Post:
        """
        Edit a post owned by ``user_id``.

        Changing the title re-derives the slug (numeric suffix on clash);
        ``published`` hides or shows the post on the public blog.
        """
        fields = payload.model_fields_set
        conn = self.db_service.connect()
        try:
            existing = self._require_owned(conn, user_id, post_id)
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
                if title != existing["title"]:
                    updates["slug"] = self._unique_slug(
                        conn, title, exclude_id=post_id, fallback=existing["slug"]
                    )
            if payload.content is not None:
                updates["content"] = payload.content
            for column in NULLABLE_FIELDS:
                if column in fields:
                    updates[column] = getattr(payload, column) or None
            if payload.published is not None:
                updates["published"] = 1 if payload.published else 0
            updates["updated_at"] = utcnow_iso()

            assignments = ", ".join(f"{column} = :{column}" for column in updates)
            with conn:
                conn.execute(
                    f"UPDATE posts SET {assignments} WHERE id = :id", {**updates, "id": post_id}
                )
                if payload.tag_ids is not None:
                    self._replace_tags(conn, post_id, payload.tag_ids)
            post = self._load_post(conn, post_id)
        finally:
            conn.close()

        logger.info(
            "Post updated",
            extra={"user_id": user_id, "post_id": post_id, "fields": sorted(fields)},
        )
        return post

    def list_posts(self, user_id: Optional[str] = None) -> List[Post]:
        """Published posts, newest first; all users unless ``user_id`` is given."""
        sql = "SELECT * FROM posts WHERE published = 1"
        params: tuple = ()
        if user_id:
            sql += " AND user_id = ?"
            params = (user_id,)
        return self._query(sql + " ORDER BY created_at DESC", params)

    def list_user_posts(self, user_id: str) -> List[Post]:
        """Every post of ``user_id``, drafts included, newest first."""
        return self._query(
            "SELECT * FROM posts WHERE user_id = ? ORDER BY created_at DESC", (user_id,)
        )

    def get_post_by_slug(self, slug: str) -> Post:
        conn = self.db_service.connect()
        try:
            row = conn.execute(
                "SELECT * FROM posts WHERE slug = ? AND published = 1", (slug,)
            ).fetchone()
            if row is None:
                raise PostNotFoundError(slug)
            return self._to_models(conn, [row])[0]
        finally:
            conn.close()

    def delete_post(self, user_id: str, post_id: str) -> None:
        """Delete a post with its comments and detach it from its source note."""
        conn = self.db_service.connect()
        try:
            self._require_owned(conn, user_id, post_id)
            with conn:
                conn.execute("UPDATE notes SET post_id = NULL WHERE post_id = ?", (post_id,))
                conn.execute("DELETE FROM posts WHERE id = ?", (post_id,))
        finally:
            conn.close()
        logger.info("Post deleted", extra={"user_id": user_id, "post_id": post_id})

    # Helpers --------------------------------------------------------------

    def _require_owned(self, conn: sqlite3.Connection, user_id: str, post_id: str) -> sqlite3.Row:
        row = conn.execute(
            "SELECT * FROM posts WHERE id = ? AND user_id = ?", (post_id, user_id)
        ).fetchone()
        if row is None:
            raise PostNotFoundError(post_id)
        return row

    def _unique_slug(
        self,
        conn: sqlite3.Connection,
        text: str,
        *,
        exclude_id: Optional[str] = None,
        fallback: Optional[str] = None,
    ) -> str:
        base = generate_slug(text) or (fallback or "")
        if not base:
            raise ServiceError("invalid_slug", "Could not derive a slug for the post")
        slug = base
        suffix = 2
        while True:
            row = conn.execute("SELECT id FROM posts WHERE slug = ?", (slug,)).fetchone()
            if row is None or row["id"] == exclude_id:
                return slug
            slug = f"{base}-{suffix}"
            suffix += 1

    def _replace_tags(self, conn: sqlite3.Connection, post_id: str, tag_ids: Iterable[str]) -> None:
        conn.execute("DELETE FROM post_tags WHERE post_id = ?", (post_id,))
        conn.executemany(
            "INSERT INTO post_tags (post_id, tag_id) VALUES (?, ?)",
            [(post_id, tag_id) for tag_id in dict.fromkeys(tag_ids)],
        )

    def _query(self, sql: str, params: tuple) -> List[Post]:
        conn = self.db_service.connect()
        try:
            return self._to_models(conn, conn.execute(sql, params).fetchall())
        finally:
            conn.close()

    def _load_post(self, conn: sqlite3.Connection, post_id: str) -> Post:
        row = conn.execute("SELECT * FROM posts WHERE id = ?", (post_id,)).fetchone()
        return self._to_models(conn, [row])[0]

    def _to_models(self, conn: sqlite3.Connection, rows: Sequence[sqlite3.Row]) -> List[Post]:
        """Attach category, tags and approved comment counts in bulk."""
        if not rows:
            return []
        post_ids = [row["id"] for row in rows]
        placeholders = ", ".join("?" for _ in post_ids)

        categories: Dict[str, CategoryRef] = {}
        category_ids = sorted({row["category_id"] for row in rows if row["category_id"]})
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
            SELECT pt.post_id, t.id, t.name, t.color
            FROM post_tags pt JOIN tags t ON t.id = pt.tag_id
            WHERE pt.post_id IN ({placeholders})
            ORDER BY pt.rowid
            """,
            post_ids,
        ):
            tags.setdefault(row["post_id"], []).append(
                TagRef(id=row["id"], name=row["name"], color=row["color"])
            )

        comment_counts = {
            row["post_id"]: row["total"]
            for row in conn.execute(
                f"""
                SELECT post_id, COUNT(*) AS total FROM comments
                WHERE approved = 1 AND post_id IN ({placeholders})
                GROUP BY post_id
                """,
                post_ids,
            )
        }

        posts = []
        for row in rows:
            data = dict(row)
            category_id = data.pop("category_id")
            data["published"] = bool(data["published"])
            posts.append(
                Post(
                    **data,
                    category=categories.get(category_id) if category_id else None,
                    tags=tags.get(row["id"], []),
                    comments_count=comment_counts.get(row["id"], 0),
                )
            )
        return posts


__all__ = ["PostService", "PostNotFoundError"]

"""Category and tag management."""

from __future__ import annotations

import logging
import re
import sqlite3
import uuid
from typing import Any, Dict, List, Optional, Sequence

from ..models.taxonomy import (
    Category,
    CategoryCreate,
    CategoryUpdate,
    Tag,
    TagCreate,
    TagUpdate,
    UsageCounts,
)
from .database import DatabaseService, utcnow_iso
from .errors import ConflictError, NotFoundError, ServiceError

logger = logging.getLogger(__name__)


def generate_slug(name: str | None) -> str:
    """Lowercase, drop punctuation and join words with single hyphens."""
    if not name:
        return ""
    slug = name.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-")


def _clean_name(name: str | None, kind: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ServiceError("invalid_name", f"{kind} name cannot be empty")
    if not generate_slug(cleaned):
        raise ServiceError("invalid_name", f"{kind} name must contain letters or digits")
    return cleaned


def validate_relations(
    conn: sqlite3.Connection, category_id: Optional[str], tag_ids: Sequence[str]
) -> None:
    """Raise ``invalid_category``/``invalid_tag`` for ids that do not exist."""
    if category_id:
        found = conn.execute("SELECT 1 FROM categories WHERE id = ?", (category_id,)).fetchone()
        if found is None:
            raise ServiceError(
                "invalid_category", "Category does not exist", detail={"category_id": category_id}
            )
    unique_ids = list(dict.fromkeys(tag_ids))
    if unique_ids:
        placeholders = ", ".join("?" for _ in unique_ids)
        known = {
            row["id"]
            for row in conn.execute(f"SELECT id FROM tags WHERE id IN ({placeholders})", unique_ids)
        }
        missing = [tag_id for tag_id in unique_ids if tag_id not in known]
        if missing:
            raise ServiceError("invalid_tag", "Tag does not exist", detail={"tag_ids": missing})


class TaxonomyService:
    """CRUD for the categories and tags shared by notes and posts."""

    def __init__(self, db_service: DatabaseService | None = None) -> None:
        self.db_service = db_service or DatabaseService()

    # Categories -----------------------------------------------------------

    def create_category(self, payload: CategoryCreate) -> Category:
        name = _clean_name(payload.name, "Category")
        slug = generate_slug(name)
        category_id = uuid.uuid4().hex
        conn = self.db_service.connect()
        try:
            self._ensure_slug_free(conn, "categories", slug)
            with conn:
                conn.execute(
                    """
                    INSERT INTO categories (id, name, slug, description, color, created_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        category_id,
                        name,
                        slug,
                        (payload.description or "").strip() or None,
                        payload.color,
                        utcnow_iso(),
                    ),
                )
            row = self._fetch(conn, "categories", category_id, "category_not_found", "Category")
        finally:
            conn.close()
        logger.info("Category created", extra={"category_id": category_id, "slug": slug})
        return Category(**dict(row))

    def update_category(self, category_id: str, payload: CategoryUpdate) -> Category:
        conn = self.db_service.connect()
        try:
            self._fetch(conn, "categories", category_id, "category_not_found", "Category")
            updates: Dict[str, Any] = {}
            fields = payload.model_fields_set
            if "name" in fields:
                name = _clean_name(payload.name, "Category")
                slug = generate_slug(name)
                self._ensure_slug_free(conn, "categories", slug, exclude_id=category_id)
                updates["name"] = name
                updates["slug"] = slug
            if "description" in fields:
                updates["description"] = (payload.description or "").strip() or None
            if "color" in fields:
                updates["color"] = payload.color or None
            if updates:
                assignments = ", ".join(f"{column} = :{column}" for column in updates)
                with conn:
                    conn.execute(
                        f"UPDATE categories SET {assignments} WHERE id = :id",
                        {**updates, "id": category_id},
                    )
            row = self._fetch(conn, "categories", category_id, "category_not_found", "Category")
        finally:
            conn.close()
        return Category(**dict(row))

    def delete_category(self, category_id: str) -> None:
        conn = self.db_service.connect()
        try:
            self._fetch(conn, "categories", category_id, "category_not_found", "Category")
            in_use = conn.execute(
                "SELECT 1 FROM notes WHERE category_id = ? LIMIT 1", (category_id,)
            ).fetchone()
            if in_use:
                raise ConflictError(
                    "in_use", "Category is still assigned to notes; remove it from them first"
                )
            with conn:
                conn.execute("DELETE FROM categories WHERE id = ?", (category_id,))
        finally:
            conn.close()
        logger.info("Category deleted", extra={"category_id": category_id})

    def list_categories(self, user_id: str) -> List[Category]:
        """All categories by name, with note counts for ``user_id``."""
        conn = self.db_service.connect()
        try:
            rows = conn.execute(
                """
                SELECT c.*,
                       (SELECT COUNT(*) FROM notes n
                        WHERE n.category_id = c.id AND n.user_id = ?) AS notes_count
                FROM categories c
                ORDER BY c.name ASC
                """,
                (user_id,),
            ).fetchall()
        finally:
            conn.close()
        return [self._with_counts(Category, row) for row in rows]

    # Tags -----------------------------------------------------------------

    def create_tag(self, payload: TagCreate) -> Tag:
        name = _clean_name(payload.name, "Tag")
        slug = generate_slug(name)
        tag_id = uuid.uuid4().hex
        conn = self.db_service.connect()
        try:
            self._ensure_slug_free(conn, "tags", slug)
            with conn:
                conn.execute(
                    "INSERT INTO tags (id, name, slug, color, created_at) VALUES (?, ?, ?, ?, ?)",
                    (tag_id, name, slug, payload.color, utcnow_iso()),
                )
            row = self._fetch(conn, "tags", tag_id, "tag_not_found", "Tag")
        finally:
            conn.close()
        logger.info("Tag created", extra={"tag_id": tag_id, "slug": slug})
        return Tag(**dict(row))

    def update_tag(self, tag_id: str, payload: TagUpdate) -> Tag:
        conn = self.db_service.connect()
        try:
            self._fetch(conn, "tags", tag_id, "tag_not_found", "Tag")
            updates: Dict[str, Any] = {}
            fields = payload.model_fields_set
            if "name" in fields:
                name = _clean_name(payload.name, "Tag")
                slug = generate_slug(name)
                self._ensure_slug_free(conn, "tags", slug, exclude_id=tag_id)
                updates["name"] = name
                updates["slug"] = slug
            if "color" in fields:
                updates["color"] = payload.color or None
            if updates:
                assignments = ", ".join(f"{column} = :{column}" for column in updates)
                with conn:
                    conn.execute(
                        f"UPDATE tags SET {assignments} WHERE id = :id", {**updates, "id": tag_id}
                    )
            row = self._fetch(conn, "tags", tag_id, "tag_not_found", "Tag")
        finally:
            conn.close()
        return Tag(**dict(row))

    def delete_tag(self, tag_id: str) -> None:
        conn = self.db_service.connect()
        try:
            self._fetch(conn, "tags", tag_id, "tag_not_found", "Tag")
            in_use = conn.execute(
                "SELECT 1 FROM note_tags WHERE tag_id = ? LIMIT 1", (tag_id,)
            ).fetchone()
            if in_use:
                raise ConflictError(
                    "in_use", "Tag is still attached to notes; remove it from them first"
                )
            with conn:
                conn.execute("DELETE FROM tags WHERE id = ?", (tag_id,))
        finally:
            conn.close()
        logger.info("Tag deleted", extra={"tag_id": tag_id})

    def list_tags(self, user_id: str) -> List[Tag]:
        conn = self.db_service.connect()
        try:
            rows = conn.execute(
                """
                SELECT t.*,
                       (SELECT COUNT(*) FROM note_tags nt
                        JOIN notes n ON n.id = nt.note_id
                        WHERE nt.tag_id = t.id AND n.user_id = ?) AS notes_count
                FROM tags t
                ORDER BY t.name ASC
                """,
                (user_id,),
            ).fetchall()
        finally:
            conn.close()
        return [self._with_counts(Tag, row) for row in rows]

    # Helpers --------------------------------------------------------------

    def _fetch(
        self, conn: sqlite3.Connection, table: str, row_id: str, error: str, kind: str
    ) -> sqlite3.Row:
        row = conn.execute(f"SELECT * FROM {table} WHERE id = ?", (row_id,)).fetchone()
        if row is None:
            raise NotFoundError(error, f"{kind} not found", detail={"id": row_id})
        return row

    def _ensure_slug_free(
        self,
        conn: sqlite3.Connection,
        table: str,
        slug: str,
        *,
        exclude_id: Optional[str] = None,
    ) -> None:
        row = conn.execute(f"SELECT id FROM {table} WHERE slug = ?", (slug,)).fetchone()
        if row is not None and row["id"] != exclude_id:
            raise ConflictError("name_conflict", "Name already exists", detail={"slug": slug})

    @staticmethod
    def _with_counts(model: Any, row: sqlite3.Row) -> Any:
        data = dict(row)
        notes_count = int(data.pop("notes_count", 0) or 0)
        data["counts"] = UsageCounts(notes=notes_count)
        return model(**data)


__all__ = ["TaxonomyService", "generate_slug", "validate_relations"]

"""Reader comments on published posts."""

from __future__ import annotations

import logging
import sqlite3
import uuid
from typing import Dict, List, Optional

from ..models.comment import Comment, CommentCreate
from .database import DatabaseService, utcnow_iso
from .errors import NotFoundError, ServiceError
from .posts import PostNotFoundError

logger = logging.getLogger(__name__)


class CommentNotFoundError(NotFoundError):
    def __init__(self, comment_id: str) -> None:
        super().__init__(
            "comment_not_found", "Comment not found", detail={"comment_id": comment_id}
        )


def _clean(value: Optional[str]) -> Optional[str]:
    cleaned = (value or "").strip()
    return cleaned or None


class CommentService:
    """Create, list and delete comments; replies form a tree via ``parent_id``."""

    def __init__(self, db_service: DatabaseService | None = None) -> None:
        self.db_service = db_service or DatabaseService()

    def create_comment(
        self, post_id: str, payload: CommentCreate, user_id: Optional[str] = None
    ) -> Comment:
        """
        Add a comment to a published post.

        Anonymous readers may comment; ``user_id`` links the comment to a
        signed-in reader so they can delete it later. Comments are approved
        on creation.
        """
        content = _clean(payload.content)
        author_name = _clean(payload.author_name)
        if not content or not author_name:
            raise ServiceError(
                "invalid_comment", "Comment content and author name cannot be empty"
            )

        conn = self.db_service.connect()
        try:
            post = conn.execute(
                "SELECT id FROM posts WHERE id = ? AND published = 1", (post_id,)
            ).fetchone()
            if post is None:
                raise PostNotFoundError(post_id)
            if payload.parent_id:
                parent = conn.execute(
                    "SELECT post_id FROM comments WHERE id = ?", (payload.parent_id,)
                ).fetchone()
                if parent is None or parent["post_id"] != post_id:
                    raise ServiceError(
                        "invalid_parent",
                        "Parent comment does not belong to this post",
                        detail={"parent_id": payload.parent_id},
                    )

            comment_id = uuid.uuid4().hex
            with conn:
                conn.execute(
                    """
                    INSERT INTO comments (
                        id, post_id, parent_id, user_id, author_name, author_email,
                        author_url, content, approved, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, 1, ?)
                    """,
                    (
                        comment_id,
                        post_id,
                        payload.parent_id,
                        user_id,
                        author_name,
                        _clean(payload.author_email),
                        _clean(payload.author_url),
                        content,
                        utcnow_iso(),
                    ),
                )
            row = conn.execute("SELECT * FROM comments WHERE id = ?", (comment_id,)).fetchone()
        finally:
            conn.close()

        logger.info(
            "Comment created",
            extra={
                "post_id": post_id,
                "comment_id": comment_id,
                "parent_id": payload.parent_id,
                "user_id": user_id,
            },
        )
        return self._to_model(row)

    def list_post_comments(self, post_id: str) -> List[Comment]:
        """Approved top-level comments newest first, each with its replies oldest first."""
        conn = self.db_service.connect()
        try:
            post = conn.execute(
                "SELECT id FROM posts WHERE id = ? AND published = 1", (post_id,)
            ).fetchone()
            if post is None:
                raise PostNotFoundError(post_id)
            rows = conn.execute(
                """
                SELECT * FROM comments
                WHERE post_id = ? AND approved = 1
                ORDER BY created_at, rowid
                """,
                (post_id,),
            ).fetchall()
        finally:
            conn.close()

        comments: Dict[str, Comment] = {row["id"]: self._to_model(row) for row in rows}
        roots: List[Comment] = []
        for comment in comments.values():
            parent = comments.get(comment.parent_id) if comment.parent_id else None
            if parent is not None:
                parent.replies.append(comment)
            elif comment.parent_id is None:
                roots.append(comment)
        roots.reverse()
        return roots

    def delete_comment(self, user_id: str, comment_id: str) -> None:
        """Delete a comment and its replies; allowed for its author or the post owner."""
        conn = self.db_service.connect()
        try:
            row = conn.execute(
                """
                SELECT c.user_id AS author_id, p.user_id AS owner_id
                FROM comments c JOIN posts p ON p.id = c.post_id
                WHERE c.id = ?
                """,
                (comment_id,),
            ).fetchone()
            if row is None or user_id not in (row["author_id"], row["owner_id"]):
                raise CommentNotFoundError(comment_id)
            with conn:
                conn.execute("DELETE FROM comments WHERE id = ?", (comment_id,))
        finally:
            conn.close()
        logger.info("Comment deleted", extra={"user_id": user_id, "comment_id": comment_id})

    @staticmethod
    def _to_model(row: sqlite3.Row) -> Comment:
        data = dict(row)
        data.pop("author_email", None)
        data["approved"] = bool(data["approved"])
        return Comment(**data)


__all__ = ["CommentService", "CommentNotFoundError"]

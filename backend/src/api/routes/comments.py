"""HTTP API routes for post comments."""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Response, status

from ...models.comment import Comment, CommentCreate
from ...services.comments import CommentService
from ..dependencies import get_comment_service
from ..middleware import AuthContext, get_auth_context, get_optional_auth_context

router = APIRouter()

Comments = Annotated[CommentService, Depends(get_comment_service)]


@router.post(
    "/api/posts/{post_id}/comments",
    response_model=Comment,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    post_id: str,
    payload: CommentCreate,
    comments: Comments,
    auth: Annotated[Optional[AuthContext], Depends(get_optional_auth_context)],
):
    """Comment on a published post; a bearer token links the comment to its reader."""
    return comments.create_comment(post_id, payload, auth.user_id if auth else None)


@router.get("/api/posts/{post_id}/comments", response_model=list[Comment])
async def list_comments(post_id: str, comments: Comments):
    """Approved comments as a reply tree (public)."""
    return comments.list_post_comments(post_id)


@router.delete("/api/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: str,
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    comments: Comments,
) -> Response:
    comments.delete_comment(auth.user_id, comment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]

"""HTTP API routes for published posts."""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Body, Depends, Response, status

from ...models.post import Post, PostUpdate, PublishRequest
from ...services.posts import PostService
from ..dependencies import get_post_service
from ..middleware import AuthContext, get_auth_context

router = APIRouter()

Posts = Annotated[PostService, Depends(get_post_service)]


@router.post("/api/notes/{note_id}/publish", response_model=Post)
async def publish_note(
    note_id: str,
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    posts: Posts,
    request: Optional[PublishRequest] = Body(None),
):
    """Publish a note as a post, or refresh its existing post."""
    return posts.publish_note(auth.user_id, note_id, request)


@router.get("/api/posts", response_model=list[Post])
async def list_posts(posts: Posts):
    """Published posts, newest first (public)."""
    return posts.list_posts()


@router.get("/api/posts/{slug}", response_model=Post)
async def get_post(slug: str, posts: Posts):
    return posts.get_post_by_slug(slug)


@router.get("/api/me/posts", response_model=list[Post])
async def list_my_posts(
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    posts: Posts,
):
    """The caller's posts, drafts included."""
    return posts.list_user_posts(auth.user_id)


@router.patch("/api/posts/{post_id}", response_model=Post)
async def update_post(
    post_id: str,
    payload: PostUpdate,
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    posts: Posts,
):
    return posts.update_post(auth.user_id, post_id, payload)


@router.delete("/api/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: str,
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    posts: Posts,
) -> Response:
    posts.delete_post(auth.user_id, post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]

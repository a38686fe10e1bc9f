"""HTTP API routes for categories and tags."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from ...models.taxonomy import (
    Category,
    CategoryCreate,
    CategoryUpdate,
    Tag,
    TagCreate,
    TagUpdate,
)
from ...services.taxonomy import TaxonomyService
from ..dependencies import get_taxonomy_service
from ..middleware import AuthContext, get_auth_context

router = APIRouter()

Auth = Annotated[AuthContext, Depends(get_auth_context)]
Taxonomy = Annotated[TaxonomyService, Depends(get_taxonomy_service)]


@router.get("/api/categories", response_model=list[Category])
async def list_categories(auth: Auth, taxonomy: Taxonomy):
    """All categories with the current user's note counts."""
    return taxonomy.list_categories(auth.user_id)


@router.post("/api/categories", response_model=Category, status_code=status.HTTP_201_CREATED)
async def create_category(payload: CategoryCreate, auth: Auth, taxonomy: Taxonomy):
    return taxonomy.create_category(payload)


@router.patch("/api/categories/{category_id}", response_model=Category)
async def update_category(
    category_id: str, payload: CategoryUpdate, auth: Auth, taxonomy: Taxonomy
):
    return taxonomy.update_category(category_id, payload)


@router.delete("/api/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(category_id: str, auth: Auth, taxonomy: Taxonomy) -> Response:
    """Delete an unused category."""
    taxonomy.delete_category(category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/api/tags", response_model=list[Tag])
async def list_tags(auth: Auth, taxonomy: Taxonomy):
    """All tags with the current user's note counts."""
    return taxonomy.list_tags(auth.user_id)


@router.post("/api/tags", response_model=Tag, status_code=status.HTTP_201_CREATED)
async def create_tag(payload: TagCreate, auth: Auth, taxonomy: Taxonomy):
    return taxonomy.create_tag(payload)


@router.patch("/api/tags/{tag_id}", response_model=Tag)
async def update_tag(tag_id: str, payload: TagUpdate, auth: Auth, taxonomy: Taxonomy):
    return taxonomy.update_tag(tag_id, payload)


@router.delete("/api/tags/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tag(tag_id: str, auth: Auth, taxonomy: Taxonomy) -> Response:
    taxonomy.delete_tag(tag_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]

"""Token issuance and current-user routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from ...models.auth import CurrentUser, TokenResponse
from ...services.auth import AuthService
from ...services.config import get_config
from ..middleware import AuthContext, get_auth_context

router = APIRouter()


@router.post("/api/tokens", response_model=TokenResponse)
async def create_api_token(auth: Annotated[AuthContext, Depends(get_auth_context)]):
    """Issue a new JWT for the authenticated user."""
    token, expires_at = AuthService(get_config()).issue_token_response(auth.user_id)
    return TokenResponse(token=token, token_type="bearer", expires_at=expires_at)


@router.get("/api/me", response_model=CurrentUser)
async def get_current_user(auth: Annotated[AuthContext, Depends(get_auth_context)]):
    return CurrentUser(user_id=auth.user_id)


__all__ = ["router"]

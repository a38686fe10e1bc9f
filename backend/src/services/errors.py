"""Domain errors raised by the service layer."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import status


class ServiceError(Exception):
    """Error carrying an API error code, message and HTTP status."""

    def __init__(
        self,
        error: str,
        message: str,
        *,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        detail: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.error = error
        self.message = message
        self.status_code = status_code
        self.detail = detail or {}


class NotFoundError(ServiceError):
    def __init__(self, error: str, message: str, **kwargs: Any) -> None:
        super().__init__(error, message, status_code=status.HTTP_404_NOT_FOUND, **kwargs)


class ConflictError(ServiceError):
    def __init__(self, error: str, message: str, **kwargs: Any) -> None:
        super().__init__(error, message, status_code=status.HTTP_409_CONFLICT, **kwargs)


__all__ = ["ServiceError", "NotFoundError", "ConflictError"]

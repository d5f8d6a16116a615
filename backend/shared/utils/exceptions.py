"""
Centralized exceptions for consistent error handling.

Two families live here:

- Store/persistence errors (StoreError and subclasses). Adapters raise them,
  the store catches and logs them. They never reach the store's caller.
- HTTP errors for the REST API (AppException and subclasses), logged on
  construction.

Usage:
    from shared.utils.exceptions import NotFoundError, RemoteApiError

    raise NotFoundError("Cosecha", harvest_id)
    raise RemoteApiError("POST /harvests failed", status_code=502)
"""

from typing import Any

from fastapi import HTTPException, status

from shared.config.logging import get_logger

logger = get_logger(__name__)


# =============================================================================
# Store / persistence errors
# =============================================================================


class StoreError(Exception):
    """Base class for errors raised inside the data store layers."""


class MalformedBlobError(StoreError):
    """A persisted blob is not valid JSON or not a JSON array."""


class RemoteApiError(StoreError):
    """
    A request to the cooperative REST API failed.

    Covers transport errors, non-2xx responses and envelopes with
    success = false.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


# =============================================================================
# HTTP errors (REST API)
# =============================================================================


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    All API exceptions should inherit from this class
    to ensure consistent logging and response format.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)


class NotFoundError(AppException):
    """
    Entity not found error (404).

    Usage:
        raise NotFoundError("Cosecha", harvest_id)
    """

    def __init__(self, entity: str, entity_id: int | str | None = None, **log_context: Any):
        if entity_id is not None:
            detail = f"{entity} con ID {entity_id} no encontrado"
        else:
            detail = f"{entity} no encontrado"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            log_level="warning",
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )


class DatabaseError(AppException):
    """
    Database operation failed (500).

    Usage:
        raise DatabaseError("crear cosecha") from exc
    """

    def __init__(self, operation: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error de base de datos durante {operation}. Por favor intente de nuevo.",
            log_level="error",
            operation=operation,
            **log_context,
        )

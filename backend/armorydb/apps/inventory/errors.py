"""
Error taxonomy for stock operations.

Services raise these; routers translate them to HTTP responses.
"""

from __future__ import annotations

from fastapi import HTTPException


class InventoryError(Exception):
    """Base class for rejected or failed stock operations."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnauthorizedError(InventoryError):
    """Raised when the caller's role may not perform the operation."""

    status_code = 403


class InvalidArgumentError(InventoryError):
    """Raised before any mutation when the request itself is invalid."""

    status_code = 400


class InsufficientStockError(InvalidArgumentError):
    """Raised when the negative-stock policy is disabled and stock would drop below zero."""

    status_code = 409


class StorageFailureError(InventoryError):
    """Raised when the store fails; the whole unit of work has been rolled back."""

    status_code = 500


def to_http_exception(exc: InventoryError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)

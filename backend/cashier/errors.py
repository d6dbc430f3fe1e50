"""
Error taxonomy shared by services, storage backends and routes.

Every failure the core reports carries an ErrorKind discriminant. Callers
match on `exc.kind` (see routes.error_response) instead of walking exception
chains; the HTTP status is derived from the kind.
"""
from __future__ import annotations

import enum


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation_error"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal_error"


HTTP_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
}


class CashierError(Exception):
    """Base error with a kind discriminant and a client-safe message."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def status_code(self) -> int:
        return HTTP_STATUS_BY_KIND[self.kind]

    def to_dict(self) -> dict:
        body = {"error": self.message, "type": self.kind.value}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(CashierError):
    """400-level input problem (malformed request, insufficient stock)."""

    kind = ErrorKind.VALIDATION


class NotFoundError(CashierError):
    """404-level missing product, category or transaction."""

    kind = ErrorKind.NOT_FOUND


class ConflictError(CashierError):
    """409-level business rule conflict. Not raised by checkout."""

    kind = ErrorKind.CONFLICT


class InternalError(CashierError):
    """500-level storage or connectivity failure, deadline exceeded."""

    kind = ErrorKind.INTERNAL

    def to_dict(self) -> dict:
        # Never leak storage details to clients.
        return {"error": "Internal server error", "type": self.kind.value}

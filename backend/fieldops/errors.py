"""Typed errors raised by the access-control engine.

Every error carries a stable ``code`` and the HTTP status it maps to, so the
transport layer can surface it verbatim without re-classifying it.
"""
from __future__ import annotations

from typing import Any

from fastapi import status


class AccessError(Exception):
    """Base class for all engine errors."""

    code = "ACCESS_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "code": self.code, **self.details}


class Unauthenticated(AccessError):
    """Missing, malformed or expired credential, or unknown subject."""

    code = "UNAUTHENTICATED"
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(AccessError):
    """Authenticated, but lacking the permission, role class or scope."""

    code = "FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN


class InvalidRequest(AccessError):
    code = "BAD_REQUEST"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(AccessError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(AccessError):
    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT


class InfrastructureError(AccessError):
    """The record store failed or timed out.

    Callers may retry with backoff; the engine itself never retries.
    """

    code = "INFRASTRUCTURE_ERROR"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True

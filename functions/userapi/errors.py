"""
Error kinds raised by handlers and repositories.

Each kind carries the HTTP status it maps to, so the router never has to
inspect error text to pick a status code.
"""

from __future__ import annotations


class ApiError(Exception):
    """Base class for errors that surface as a JSON error response."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ApiError):
    """Missing/empty required field or malformed request body."""

    status_code = 400


class NotFoundError(ApiError):
    status_code = 404


class SerializationError(ApiError):
    """A response body could not be encoded."""

    status_code = 500


class BackendError(ApiError):
    """The storage backend failed for a reason other than a missing record."""

    status_code = 500

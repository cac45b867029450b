"""
API error types shared by the web subsystems.

Routes catch ``ApiError`` and turn it into ``{"error": message}`` with the
error's HTTP status. Idempotent re-creation is not an error and has no
exception type here.
"""

from typing import Optional

from flask import jsonify


class ApiError(Exception):
    """Base class for errors surfaced to API callers."""

    status = 500
    default_message = "internal-error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_response(self):
        return jsonify({"error": self.message}), self.status


class ValidationError(ApiError):
    """Missing required field, invalid enum value or empty required list."""
    status = 400
    default_message = "invalid-request"


class Unauthorized(ApiError):
    """Missing or invalid bearer credential."""
    status = 401
    default_message = "unauthorized"


class Forbidden(ApiError):
    """The caller does not own the entity."""
    status = 403
    default_message = "forbidden"


class NotFound(ApiError):
    """Entity or interaction absent."""
    status = 404
    default_message = "not-found"


def validation_error_from_pydantic(exc) -> ValidationError:
    """Condense a pydantic ValidationError into one readable message."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return ValidationError("; ".join(parts) or "invalid-request")

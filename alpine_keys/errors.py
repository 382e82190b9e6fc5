"""Alpine keys error types.

Error codes are stable strings for programmatic handling.

Authentication failures keep an internal ``reason`` for logging and audit,
but every public rendering of them collapses to the same generic result so
an untrusted caller cannot tell an unknown key from a wrong secret.
"""

from __future__ import annotations

from typing import Any


class AlpineError(Exception):
    """Base error for all alpine_keys exceptions."""

    code: str = "internal_error"
    message: str = "An internal error occurred"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.__class__.message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self, request_id: str | None = None) -> dict[str, Any]:
        """Render as an API-style error body."""
        error: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }
        if request_id:
            error["request_id"] = request_id
        return {"error": error}


class NotFoundError(AlpineError):
    """Resource not found (404)."""

    code = "not_found"
    message = "Resource not found"
    status_code = 404


class ConflictError(AlpineError):
    """Conflict, e.g. a unique constraint could not be satisfied (409)."""

    code = "conflict"
    message = "Conflict"
    status_code = 409


class ValidationError(AlpineError):
    """Record validation error (400)."""

    code = "validation_error"
    message = "Validation error"
    status_code = 400


class AuthenticationError(AlpineError):
    """API key authentication failed (401).

    Subclasses distinguish the failure internally via ``reason``. The
    public message and ``to_dict()`` never include it.
    """

    code = "unauthorized"
    message = "Authentication failed"
    status_code = 401
    reason: str = "authentication_failed"

    def __init__(self, details: dict[str, Any] | None = None) -> None:
        # Detail text is internal only, the public message is fixed
        super().__init__(AuthenticationError.message)
        self.internal_details = details or {}

    def to_dict(self, request_id: str | None = None) -> dict[str, Any]:
        error: dict[str, Any] = {
            "code": AuthenticationError.code,
            "message": AuthenticationError.message,
            "details": {},
        }
        if request_id:
            error["request_id"] = request_id
        return {"error": error}


class MalformedKeyError(AuthenticationError):
    """Presented key matches none of the recognized key formats."""

    reason = "malformed_key"


class KeyNotFoundError(AuthenticationError):
    """Well-formed key, but no record matches its public id."""

    reason = "not_found"


class InvalidSecretError(AuthenticationError):
    """Record found, but the secret does not hash to the stored value."""

    reason = "invalid_secret"


# Result type of key verification
VerifyError = AuthenticationError

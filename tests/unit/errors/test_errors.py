"""Unit tests for the error hierarchy."""

from __future__ import annotations

import pytest

from alpine_keys.errors import (
    AlpineError,
    AuthenticationError,
    InvalidSecretError,
    KeyNotFoundError,
    MalformedKeyError,
    NotFoundError,
    VerifyError,
)


class TestAlpineError:
    def test_defaults(self):
        err = NotFoundError()
        assert err.message == "Resource not found"
        assert err.status_code == 404
        assert err.details == {}

    def test_to_dict(self):
        err = NotFoundError("API key not found: 7", details={"id": 7})
        assert err.to_dict("req-1") == {
            "error": {
                "code": "not_found",
                "message": "API key not found: 7",
                "details": {"id": 7},
                "request_id": "req-1",
            }
        }


class TestAuthenticationError:
    @pytest.mark.parametrize(
        "error_class, reason",
        [
            (MalformedKeyError, "malformed_key"),
            (KeyNotFoundError, "not_found"),
            (InvalidSecretError, "invalid_secret"),
        ],
    )
    def test_reason_is_internal(self, error_class, reason):
        """Reason and details stay internal; public rendering is generic."""
        err = error_class({"public_id": "ABCDE"})

        assert isinstance(err, AuthenticationError)
        assert isinstance(err, AlpineError)
        assert err.reason == reason
        assert err.internal_details == {"public_id": "ABCDE"}
        assert str(err) == "Authentication failed"
        assert err.status_code == 401
        assert err.to_dict() == {
            "error": {
                "code": "unauthorized",
                "message": "Authentication failed",
                "details": {},
            }
        }

    def test_verify_error_alias(self):
        assert VerifyError is AuthenticationError

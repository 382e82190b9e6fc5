"""ApiKey validation."""

from __future__ import annotations

import re

from alpine_keys.errors import ValidationError
from alpine_keys.models.api_key import ApiKey
from alpine_keys.services.api_key import PUBLIC_ID_LENGTH

_MAX_COMMENT_LENGTH = 255
_SECRET_HASH_RE = re.compile(r"^[0-9a-f]{64}$")


def validate_api_key(record: ApiKey) -> ApiKey:
    """Validate an ApiKey before it is persisted.

    Rules:
    1. comment is at most 255 characters
    2. public_id is unset or exactly PUBLIC_ID_LENGTH characters
    3. secret_hash is set unless the record is legacy
    4. secret_hash, when set, is a lowercase hex SHA3-256 digest

    Raises:
        ValidationError: On the first violated rule
    """
    if record.comment is not None and len(record.comment) > _MAX_COMMENT_LENGTH:
        raise ValidationError(
            message=f"comment must be at most {_MAX_COMMENT_LENGTH} characters",
            details={"field": "comment", "reason": "too_long"},
        )

    if record.public_id is not None and len(record.public_id) != PUBLIC_ID_LENGTH:
        raise ValidationError(
            message=f"public_id must be exactly {PUBLIC_ID_LENGTH} characters",
            details={"field": "public_id", "reason": "bad_length"},
        )

    if record.secret_hash is None:
        if not record.is_legacy:
            raise ValidationError(
                message="secret_hash is required for non-legacy keys",
                details={"field": "secret_hash", "reason": "missing"},
            )
    elif not _SECRET_HASH_RE.match(record.secret_hash):
        raise ValidationError(
            message="secret_hash must be a hex-encoded SHA3-256 digest",
            details={"field": "secret_hash", "reason": "bad_format"},
        )

    return record

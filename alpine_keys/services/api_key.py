"""API Key codec and verifier.

Handles key generation, secret hashing, masking for display, and
verification of presented keys, including the two legacy key formats.

Key formats (``PREFIX`` is configured via ``api_key.prefix``):

- current:         PREFIX + public_id(5) + "_" + secret(32)
- legacy prefixed: PREFIX + secret(32)
- legacy:          secret(32)

Everything here is synchronous and free of I/O. Record lookups are passed
in by the caller (see ``alpine_keys.managers.api_key.ApiKeyManager``).
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
import string
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import NamedTuple, Optional

import structlog

from alpine_keys.config import get_settings
from alpine_keys.errors import (
    AuthenticationError,
    InvalidSecretError,
    KeyNotFoundError,
    MalformedKeyError,
)
from alpine_keys.models.api_key import ApiKey
from alpine_keys.utils.datetime import utcnow

logger = structlog.get_logger()

PUBLIC_ID_LENGTH = 5
SECRET_LENGTH = 32
API_KEY_SEPARATOR = "_"
LEGACY_FULL_KEY_LENGTH = SECRET_LENGTH

_MASK_CHAR = "*"
_ALPHABET = string.ascii_letters + string.digits

Lookup = Callable[[str], Optional[ApiKey]]
AsyncLookup = Callable[[str], Awaitable[Optional[ApiKey]]]


def get_prefix() -> str:
    """Return the configured key prefix."""
    return get_settings().api_key.prefix


def legacy_with_prefix_full_key_length(prefix: str | None = None) -> int:
    """Total length of an intermediate-format key (prefix + secret)."""
    return len(prefix if prefix is not None else get_prefix()) + SECRET_LENGTH


class KeyFormat(str, Enum):
    """Recognized layouts of a presented key."""

    LEGACY_32 = "legacy_32"  # bare 32-char secret
    LEGACY_PREFIXED = "legacy_prefixed"  # prefix + 32-char secret
    CURRENT = "current"  # prefix + public id + separator + secret

    @property
    def is_legacy(self) -> bool:
        return self is not KeyFormat.CURRENT


@dataclass(frozen=True)
class ParsedKey:
    """A presented key split into its parts."""

    format: KeyFormat
    secret: str = field(repr=False)
    public_id: str | None = None


class NewApiKey(NamedTuple):
    """A freshly generated key: the record plus the one-time plaintext.

    Unpacks as ``record, key``. Show ``key`` to the user once and drop it;
    it cannot be recovered from the record.
    """

    record: ApiKey
    key: str

    @property
    def secret(self) -> str:
        return self.key[-SECRET_LENGTH:]

    def __repr__(self) -> str:
        return f"NewApiKey(record={self.record!r}, key=<redacted>)"


class ApiKeyService:
    """Stateless API key codec."""

    @staticmethod
    def generate_public_id() -> str:
        return "".join(secrets.choice(_ALPHABET) for _ in range(PUBLIC_ID_LENGTH))

    @staticmethod
    def generate_secret() -> str:
        return "".join(secrets.choice(_ALPHABET) for _ in range(SECRET_LENGTH))

    @staticmethod
    def hash_secret(secret: str) -> str:
        """Hash the secret portion of a key.

        Returns:
            Hex-encoded SHA3-256 digest (64 chars)
        """
        return hashlib.sha3_256(secret.encode("utf-8")).hexdigest()

    @staticmethod
    def build_key(public_id: str, secret: str, *, prefix: str | None = None) -> str:
        """Assemble a current-format full key."""
        if prefix is None:
            prefix = get_prefix()
        return f"{prefix}{public_id}{API_KEY_SEPARATOR}{secret}"

    @staticmethod
    def generate(
        *,
        comment: str | None = None,
        public_id: str | None = None,
        prefix: str | None = None,
        now: datetime | None = None,
    ) -> NewApiKey:
        """Generate a new, unsaved API key record and its plaintext key.

        Persisting the record is the caller's job. ``public_id`` may be
        supplied by a caller that has already checked it for uniqueness.
        """
        if public_id is None:
            public_id = ApiKeyService.generate_public_id()
        secret = ApiKeyService.generate_secret()
        record = ApiKey(
            public_id=public_id,
            secret_hash=ApiKeyService.hash_secret(secret),
            comment=comment,
            created=now or utcnow(),
            is_legacy=False,
        )
        return NewApiKey(record, ApiKeyService.build_key(public_id, secret, prefix=prefix))

    @staticmethod
    def regenerate(
        record: ApiKey,
        *,
        public_id: str | None = None,
        prefix: str | None = None,
    ) -> NewApiKey:
        """Replace the public id and secret of an existing record in place.

        ``id``, ``comment``, ``created`` and ``teams`` are kept. A legacy
        record becomes a current-format one. The previous key stops
        verifying as soon as the updated record is persisted.
        """
        if public_id is None:
            public_id = ApiKeyService.generate_public_id()
        secret = ApiKeyService.generate_secret()
        record.public_id = public_id
        record.secret_hash = ApiKeyService.hash_secret(secret)
        record.is_legacy = False
        return NewApiKey(record, ApiKeyService.build_key(public_id, secret, prefix=prefix))

    @staticmethod
    def mask(record: ApiKey, *, prefix: str | None = None) -> str:
        """Display-safe rendering that reveals only prefix and public id.

        The secret region is always SECRET_LENGTH mask characters. Legacy
        records render as prefix plus mask: their public id is the start of
        the legacy secret.
        """
        if prefix is None:
            prefix = get_prefix()
        if record.is_legacy or not record.public_id:
            return f"{prefix}{_MASK_CHAR * SECRET_LENGTH}"
        return f"{prefix}{record.public_id}{_MASK_CHAR * SECRET_LENGTH}"

    @staticmethod
    def classify(presented_key: str, *, prefix: str | None = None) -> KeyFormat:
        """Determine the format of a presented key by length and structure.

        Raises:
            MalformedKeyError: If the key matches no known format
        """
        if prefix is None:
            prefix = get_prefix()
        length = len(presented_key)

        if length == LEGACY_FULL_KEY_LENGTH:
            if API_KEY_SEPARATOR in presented_key:
                raise MalformedKeyError({"length": length})
            return KeyFormat.LEGACY_32

        if not presented_key.startswith(prefix):
            raise MalformedKeyError({"length": length, "problem": "prefix"})

        # Lengths of the three formats never coincide
        if length == legacy_with_prefix_full_key_length(prefix):
            return KeyFormat.LEGACY_PREFIXED

        body = presented_key[len(prefix):]
        if len(body) > PUBLIC_ID_LENGTH + 1 and body[PUBLIC_ID_LENGTH] == API_KEY_SEPARATOR:
            return KeyFormat.CURRENT

        raise MalformedKeyError({"length": length, "problem": "separator"})

    @staticmethod
    def parse(presented_key: str, *, prefix: str | None = None) -> ParsedKey:
        """Split a presented key into format, public id and secret.

        Raises:
            MalformedKeyError: If the key matches no known format
        """
        if prefix is None:
            prefix = get_prefix()
        key_format = ApiKeyService.classify(presented_key, prefix=prefix)

        if key_format is KeyFormat.LEGACY_32:
            return ParsedKey(format=key_format, secret=presented_key)
        if key_format is KeyFormat.LEGACY_PREFIXED:
            return ParsedKey(format=key_format, secret=presented_key[len(prefix):])

        body = presented_key[len(prefix):]
        return ParsedKey(
            format=key_format,
            public_id=body[:PUBLIC_ID_LENGTH],
            secret=body[PUBLIC_ID_LENGTH + 1:],
        )

    @staticmethod
    def secret_matches(secret: str, record: ApiKey) -> bool:
        """Constant-time comparison of a secret against the stored hash.

        Records without a hash (unmigrated legacy keys) never match.
        """
        if not record.secret_hash:
            return False
        return hmac.compare_digest(
            ApiKeyService.hash_secret(secret).encode("utf-8"),
            record.secret_hash.encode("utf-8"),
        )

    @staticmethod
    def check(parsed: ParsedKey, record: ApiKey | None, *, now: datetime | None = None) -> ApiKey:
        """Finish verification of a parsed key against the looked-up record.

        On success the record's ``last_used`` is advanced; persisting it is
        the caller's job.

        Raises:
            KeyNotFoundError: If no record was found
            InvalidSecretError: If the secret does not match
        """
        if record is None:
            raise KeyNotFoundError({"format": parsed.format.value, "public_id": parsed.public_id})
        if not ApiKeyService.secret_matches(parsed.secret, record):
            raise InvalidSecretError({"format": parsed.format.value, "api_key_id": record.id})
        record.touch(now or utcnow())
        return record

    @staticmethod
    def verify(
        presented_key: str,
        lookup: Lookup,
        legacy_lookup: Lookup,
        *,
        prefix: str | None = None,
        now: datetime | None = None,
    ) -> ApiKey:
        """Verify a presented key using synchronous lookups.

        Args:
            presented_key: Full key as presented by the client
            lookup: Finds a record by public id
            legacy_lookup: Finds a legacy record by its 32-char secret material
            prefix: Override for the configured prefix
            now: Timestamp to record as ``last_used``

        Returns:
            The matching record, with ``last_used`` updated

        Raises:
            AuthenticationError: One of MalformedKeyError, KeyNotFoundError
                or InvalidSecretError
        """
        try:
            parsed = ApiKeyService.parse(presented_key, prefix=prefix)
            if parsed.format.is_legacy:
                record = legacy_lookup(parsed.secret)
            else:
                record = lookup(parsed.public_id)
            return ApiKeyService.check(parsed, record, now=now)
        except AuthenticationError as exc:
            _log_failure(exc)
            raise

    @staticmethod
    async def averify(
        presented_key: str,
        lookup: AsyncLookup,
        legacy_lookup: AsyncLookup,
        *,
        prefix: str | None = None,
        now: datetime | None = None,
    ) -> ApiKey:
        """Same as ``verify`` but with awaitable lookups."""
        try:
            parsed = ApiKeyService.parse(presented_key, prefix=prefix)
            if parsed.format.is_legacy:
                record = await legacy_lookup(parsed.secret)
            else:
                record = await lookup(parsed.public_id)
            return ApiKeyService.check(parsed, record, now=now)
        except AuthenticationError as exc:
            _log_failure(exc)
            raise


def _log_failure(exc: AuthenticationError) -> None:
    logger.info(
        "api_key.verify.failed",
        reason=exc.reason,
        **exc.internal_details,
    )

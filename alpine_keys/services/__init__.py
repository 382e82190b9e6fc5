"""Service layer - stateless domain logic."""

from alpine_keys.services.api_key import ApiKeyService, KeyFormat, NewApiKey, ParsedKey

__all__ = ["ApiKeyService", "KeyFormat", "NewApiKey", "ParsedKey"]

"""Unit tests for record validation."""

from __future__ import annotations

import pytest

from alpine_keys.errors import ValidationError
from alpine_keys.models.api_key import ApiKey
from alpine_keys.models.config_property import ConfigProperty, PropertyType
from alpine_keys.services.api_key import ApiKeyService
from alpine_keys.validators import (
    contains_control_characters,
    validate_api_key,
    validate_config_property,
)

VALID_HASH = ApiKeyService.hash_secret("s" * 32)


class TestValidateApiKey:
    """Test ApiKey constraints."""

    def test_generated_record_is_valid(self):
        record = ApiKeyService.generate(prefix="alpine_").record
        assert validate_api_key(record) is record

    def test_comment_too_long(self):
        record = ApiKey(public_id="ABCDE", secret_hash=VALID_HASH, comment="x" * 256)
        with pytest.raises(ValidationError) as exc_info:
            validate_api_key(record)
        assert exc_info.value.details["field"] == "comment"

    def test_comment_at_limit(self):
        record = ApiKey(public_id="ABCDE", secret_hash=VALID_HASH, comment="x" * 255)
        validate_api_key(record)

    @pytest.mark.parametrize("public_id", ["ABCD", "ABCDEF", ""])
    def test_public_id_length(self, public_id):
        record = ApiKey(public_id=public_id, secret_hash=VALID_HASH)
        with pytest.raises(ValidationError) as exc_info:
            validate_api_key(record)
        assert exc_info.value.details["field"] == "public_id"

    def test_hash_required_for_current_keys(self):
        record = ApiKey(public_id="ABCDE")
        with pytest.raises(ValidationError) as exc_info:
            validate_api_key(record)
        assert exc_info.value.details["reason"] == "missing"

    def test_legacy_without_hash_allowed(self):
        validate_api_key(ApiKey(is_legacy=True))

    def test_hash_format(self):
        record = ApiKey(public_id="ABCDE", secret_hash=VALID_HASH.upper())
        with pytest.raises(ValidationError) as exc_info:
            validate_api_key(record)
        assert exc_info.value.details["reason"] == "bad_format"


class TestValidateConfigProperty:
    """Test ConfigProperty constraints."""

    def _prop(self, **overrides) -> ConfigProperty:
        values = {
            "group_name": "general",
            "property_name": "base.url",
            "property_value": "https://example.com",
            "property_type": PropertyType.URL,
            "description": "Public base URL",
        }
        values.update(overrides)
        return ConfigProperty(**values)

    def test_valid(self):
        prop = self._prop()
        assert validate_config_property(prop) is prop

    @pytest.mark.parametrize("field_name", ["group_name", "property_name"])
    def test_blank_names(self, field_name):
        with pytest.raises(ValidationError) as exc_info:
            validate_config_property(self._prop(**{field_name: "  "}))
        assert exc_info.value.details == {"field": field_name, "reason": "blank"}

    def test_name_too_long(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_config_property(self._prop(group_name="g" * 256))
        assert exc_info.value.details["reason"] == "too_long"

    @pytest.mark.parametrize(
        "field_name",
        ["group_name", "property_name", "property_value", "description"],
    )
    def test_control_characters(self, field_name):
        with pytest.raises(ValidationError) as exc_info:
            validate_config_property(self._prop(**{field_name: "bad\nvalue"}))
        assert exc_info.value.details == {"field": field_name, "reason": "control_characters"}

    def test_empty_value(self):
        """A value is either absent or has at least one character."""
        with pytest.raises(ValidationError) as exc_info:
            validate_config_property(self._prop(property_value=""))
        assert exc_info.value.details == {"field": "property_value", "reason": "empty"}

    def test_description_too_long(self):
        with pytest.raises(ValidationError):
            validate_config_property(self._prop(description="d" * 256))

    def test_optional_fields_may_be_none(self):
        validate_config_property(self._prop(property_value=None, description=None))


class TestContainsControlCharacters:
    @pytest.mark.parametrize("value", ["tab\there", "nul\x00", "del\x7f", "c1\x85"])
    def test_detects(self, value):
        assert contains_control_characters(value) is True

    @pytest.mark.parametrize("value", ["plain", "ünïcödé", "emoji 🔑", ""])
    def test_allows(self, value):
        assert contains_control_characters(value) is False

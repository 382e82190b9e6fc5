"""ConfigProperty validation.

Names are required and bounded; values are absent or non-empty. No string
field may contain control characters (Unicode category Cc).
"""

from __future__ import annotations

import unicodedata

from alpine_keys.errors import ValidationError
from alpine_keys.models.config_property import ConfigProperty, PropertyType

_MAX_LENGTH = 255


def contains_control_characters(value: str) -> bool:
    """Check whether a string contains any Unicode control character."""
    return any(unicodedata.category(ch) == "Cc" for ch in value)


def _fail(field_name: str, reason: str, message: str) -> ValidationError:
    return ValidationError(
        message=message,
        details={"field": field_name, "reason": reason},
    )


def _validate_name(value: str | None, field_name: str) -> None:
    if value is None or not value.strip():
        raise _fail(field_name, "blank", f"The {field_name} must not be blank")
    if len(value) > _MAX_LENGTH:
        raise _fail(field_name, "too_long", f"The {field_name} must be at most {_MAX_LENGTH} characters")
    if contains_control_characters(value):
        raise _fail(field_name, "control_characters", f"The {field_name} must not contain control characters")


def validate_config_property(prop: ConfigProperty) -> ConfigProperty:
    """Validate a ConfigProperty before it is persisted.

    Raises:
        ValidationError: On the first violated constraint
    """
    _validate_name(prop.group_name, "group_name")
    _validate_name(prop.property_name, "property_name")

    if prop.property_type is None:
        raise _fail("property_type", "missing", "The property_type must be set")
    try:
        PropertyType(prop.property_type)
    except ValueError:
        raise _fail("property_type", "unknown", f"Unknown property_type: {prop.property_type}") from None

    if prop.property_value is not None:
        if not prop.property_value:
            raise _fail("property_value", "empty", "The property_value must not be empty")
        if contains_control_characters(prop.property_value):
            raise _fail("property_value", "control_characters", "The property_value must not contain control characters")

    if prop.description is not None:
        if len(prop.description) > _MAX_LENGTH:
            raise _fail("description", "too_long", f"The description must be at most {_MAX_LENGTH} characters")
        if contains_control_characters(prop.description):
            raise _fail("description", "control_characters", "The description must not contain control characters")

    return prop

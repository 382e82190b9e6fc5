"""Validation utilities for persisted records."""

from alpine_keys.validators.api_key import validate_api_key
from alpine_keys.validators.config_property import (
    contains_control_characters,
    validate_config_property,
)

__all__ = [
    "contains_control_characters",
    "validate_api_key",
    "validate_config_property",
]

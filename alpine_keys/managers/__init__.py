"""Manager layer - persistence and lifecycle."""

from alpine_keys.managers.api_key import ApiKeyManager
from alpine_keys.managers.config_property import ConfigPropertyManager

__all__ = ["ApiKeyManager", "ConfigPropertyManager"]

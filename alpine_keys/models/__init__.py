"""SQLModel data models."""

from alpine_keys.models.links import ApiKeyTeamLink
from alpine_keys.models.team import Team
from alpine_keys.models.api_key import ApiKey
from alpine_keys.models.config_property import ConfigProperty, PropertyType

__all__ = [
    "ApiKey",
    "ApiKeyTeamLink",
    "ConfigProperty",
    "PropertyType",
    "Team",
]

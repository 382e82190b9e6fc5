"""ConfigProperty data model.

A typed key/value pair, unique per (group_name, property_name).
"""

from enum import Enum
from typing import Optional

from sqlalchemy import Column, Text, UniqueConstraint
from sqlmodel import Field, SQLModel


class PropertyType(str, Enum):
    """How a property value should be interpreted."""

    BOOLEAN = "BOOLEAN"
    INTEGER = "INTEGER"
    NUMBER = "NUMBER"
    STRING = "STRING"
    ENCRYPTEDSTRING = "ENCRYPTEDSTRING"
    TIMESTAMP = "TIMESTAMP"
    URL = "URL"
    UUID = "UUID"


class ConfigProperty(SQLModel, table=True):
    """ConfigProperty - a persisted configuration value."""

    __tablename__ = "config_properties"
    __table_args__ = (
        UniqueConstraint("group_name", "property_name", name="uq_config_property_group_name"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    group_name: str = Field(max_length=255)
    property_name: str = Field(max_length=255)
    property_value: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    property_type: PropertyType = Field(default=PropertyType.STRING)
    description: Optional[str] = Field(default=None, max_length=255)

"""ConfigPropertyManager - typed key/value configuration stored in the database."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from alpine_keys.errors import NotFoundError, ValidationError
from alpine_keys.models.config_property import ConfigProperty, PropertyType
from alpine_keys.validators.config_property import validate_config_property

logger = structlog.get_logger()

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


def convert_value(raw: str | None, property_type: PropertyType) -> Any:
    """Convert a stored string to the Python value for its type.

    ENCRYPTEDSTRING values are returned as stored; decryption is up to the
    caller.

    Raises:
        ValidationError: If the stored value cannot be converted
    """
    if raw is None:
        return None
    try:
        if property_type is PropertyType.BOOLEAN:
            lowered = raw.strip().lower()
            if lowered in _TRUE_VALUES:
                return True
            if lowered in _FALSE_VALUES:
                return False
            raise ValueError(raw)
        if property_type is PropertyType.INTEGER:
            return int(raw)
        if property_type is PropertyType.NUMBER:
            return Decimal(raw)
        if property_type is PropertyType.TIMESTAMP:
            return datetime.fromisoformat(raw)
        if property_type is PropertyType.UUID:
            return uuid.UUID(raw)
    except (ValueError, ArithmeticError) as exc:
        raise ValidationError(
            message=f"Value is not a valid {property_type.value}",
            details={"field": "property_value", "reason": "bad_value"},
        ) from exc
    return raw


def _to_storage(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class ConfigPropertyManager:
    """Manages ConfigProperty records."""

    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session
        self._log = logger.bind(manager="config_property")

    async def get(self, group_name: str, property_name: str) -> ConfigProperty | None:
        result = await self._db.execute(
            select(ConfigProperty).where(
                ConfigProperty.group_name == group_name,
                ConfigProperty.property_name == property_name,
            )
        )
        return result.scalars().first()

    async def get_value(self, group_name: str, property_name: str, default: Any = None) -> Any:
        """Get a property value converted according to its type.

        Returns ``default`` when the property does not exist or has no value.
        """
        prop = await self.get(group_name, property_name)
        if prop is None or prop.property_value is None:
            return default
        return convert_value(prop.property_value, PropertyType(prop.property_type))

    async def set(
        self,
        group_name: str,
        property_name: str,
        value: Any,
        property_type: PropertyType = PropertyType.STRING,
        *,
        description: str | None = None,
    ) -> ConfigProperty:
        """Create or update a property.

        The value is checked against ``property_type`` before it is stored.

        Raises:
            ValidationError: If the property or its value is invalid
        """
        try:
            property_type = PropertyType(property_type)
        except ValueError:
            raise ValidationError(
                message=f"Unknown property_type: {property_type}",
                details={"field": "property_type", "reason": "unknown"},
            ) from None
        raw = _to_storage(value)
        convert_value(raw, property_type)

        existing = await self.get(group_name, property_name)
        if description is None and existing is not None:
            description = existing.description
        validate_config_property(
            ConfigProperty(
                group_name=group_name,
                property_name=property_name,
                property_value=raw,
                property_type=property_type,
                description=description,
            )
        )

        prop = existing or ConfigProperty(group_name=group_name, property_name=property_name)
        prop.property_value = raw
        prop.property_type = property_type
        prop.description = description
        self._db.add(prop)
        await self._db.commit()
        await self._db.refresh(prop)

        self._log.info(
            "config_property.set",
            group_name=group_name,
            property_name=property_name,
            property_type=property_type.value,
        )
        return prop

    async def list(self, *, group_name: str | None = None) -> list[ConfigProperty]:
        """List properties ordered by group, then name."""
        query = select(ConfigProperty)
        if group_name is not None:
            query = query.where(ConfigProperty.group_name == group_name)
        result = await self._db.execute(
            query.order_by(ConfigProperty.group_name, ConfigProperty.property_name)
        )
        return list(result.scalars().all())

    async def delete(self, group_name: str, property_name: str) -> None:
        """Delete a property.

        Raises:
            NotFoundError: If the property does not exist
        """
        prop = await self.get(group_name, property_name)
        if prop is None:
            raise NotFoundError(f"Config property not found: {group_name}/{property_name}")
        await self._db.delete(prop)
        await self._db.commit()
        self._log.info(
            "config_property.delete",
            group_name=group_name,
            property_name=property_name,
        )

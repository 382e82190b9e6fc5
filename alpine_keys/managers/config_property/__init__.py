from alpine_keys.managers.config_property.config_property import ConfigPropertyManager, convert_value

__all__ = ["ConfigPropertyManager", "convert_value"]

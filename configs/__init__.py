"""Configuration for the perfolio analytics engine."""

from .settings import get_settings, get_config_class, validate_settings
from .environments.base import BaseConfig

__all__ = ["get_settings", "get_config_class", "validate_settings", "BaseConfig"]

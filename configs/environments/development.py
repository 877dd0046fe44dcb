"""
Development environment configuration.
"""

from pydantic_settings import SettingsConfigDict

from .base import BaseConfig


class DevelopmentConfig(BaseConfig):
    """Development configuration."""
    
    model_config = SettingsConfigDict(env_file=".env.development")
    
    debug: bool = True
    log_level: str = "DEBUG"
    log_format: str = "text"

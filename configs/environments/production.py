"""
Production environment configuration.
"""

from typing import List

from pydantic_settings import SettingsConfigDict

from .base import BaseConfig


class ProductionConfig(BaseConfig):
    """Production configuration."""
    
    model_config = SettingsConfigDict(env_file=".env.production")
    
    debug: bool = False
    log_level: str = "INFO"
    log_format: str = "json"
    log_to_file: bool = True
    log_dir: str = "/var/log/perfolio"
    
    # Tighter solver tolerance for published figures
    irr_tolerance: float = 1e-9
    irr_max_iterations: int = 200
    
    def validate_production_requirements(self) -> List[str]:
        """Additional validation for production."""
        issues = self.validate_consistency()
        
        if self.debug:
            issues.append("debug must be disabled in production")
        
        return issues

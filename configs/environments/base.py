"""
Base configuration settings.
"""

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class BaseConfig(BaseSettings):
    """Base configuration for all environments."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )
    
    # Application
    app_name: str = "Perfolio Analytics Engine"
    app_version: str = "1.0.0"
    debug: bool = False
    
    # Ledger storage
    ledger_provider: str = "memory"  # Name registered with LedgerProviderFactory
    
    # Currency
    reporting_currency: str = "EUR"
    anchor_currency: str = "EUR"  # Triangulation pivot for cross rates
    
    # Risk
    risk_free_rate: float = 0.0
    periods_per_year: int = 252
    
    # IRR solver
    irr_initial_guess: float = 0.1
    irr_max_iterations: int = Field(100, gt=0)
    irr_tolerance: float = Field(1e-7, gt=0)
    irr_lower_bound: float = -0.99
    irr_upper_bound: float = 10.0
    
    # Logging
    log_level: str = "INFO"
    log_format: str = "json"
    log_dir: str = "logs"
    log_to_file: bool = False
    console_output: bool = True
    
    @field_validator("reporting_currency", "anchor_currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        value = value.strip().upper()
        if len(value) != 3 or not value.isalpha():
            raise ValueError(f"Invalid currency code: {value}")
        return value
    
    @field_validator("log_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        if value not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return value
    
    @model_validator(mode="after")
    def _check_irr_bounds(self) -> "BaseConfig":
        if self.irr_lower_bound <= -1.0:
            raise ValueError("irr_lower_bound must be greater than -1")
        if self.irr_lower_bound >= self.irr_upper_bound:
            raise ValueError("irr_lower_bound must be below irr_upper_bound")
        if not self.irr_lower_bound < self.irr_initial_guess < self.irr_upper_bound:
            raise ValueError("irr_initial_guess must lie inside the IRR bounds")
        return self
    
    def get_solver_config(self) -> dict:
        """Get IRR solver configuration."""
        return {
            "initial_guess": self.irr_initial_guess,
            "max_iterations": self.irr_max_iterations,
            "tolerance": self.irr_tolerance,
            "lower_bound": self.irr_lower_bound,
            "upper_bound": self.irr_upper_bound,
        }
    
    def validate_consistency(self) -> List[str]:
        """Soft checks that do not block startup."""
        issues = []
        
        if self.periods_per_year not in (12, 52, 252, 365):
            issues.append(f"Unusual periods_per_year: {self.periods_per_year}")
        
        if not 0.0 <= self.risk_free_rate < 0.5:
            issues.append(f"Implausible risk_free_rate: {self.risk_free_rate}")
        
        return issues

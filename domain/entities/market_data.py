"""
Market data entities - securities, prices and exchange rates.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from ..value_objects import Currency, normalize_currency


@dataclass(frozen=True)
class Security:
    """A tradable security and the currency its prices are quoted in."""
    
    security_id: int
    currency: str
    name: Optional[str] = None
    
    def __post_init__(self):
        object.__setattr__(self, 'currency', normalize_currency(self.currency))
    
    @property
    def quote_currency(self) -> Currency:
        return Currency(self.currency)


@dataclass(frozen=True)
class PricePoint:
    """Closing price of a security on a trading day, scaled by 10^8."""
    
    security_id: int
    date: date
    close: int
    
    def __post_init__(self):
        if self.close < 0:
            raise ValueError("Close price cannot be negative")


@dataclass(frozen=True)
class ExchangeRate:
    """Directional rate: 1 unit of ``base`` buys ``rate`` units of ``target``."""
    
    base: str
    target: str
    date: date
    rate: Decimal
    
    def __post_init__(self):
        object.__setattr__(self, 'base', normalize_currency(self.base))
        object.__setattr__(self, 'target', normalize_currency(self.target))
        if not isinstance(self.rate, Decimal):
            object.__setattr__(self, 'rate', Decimal(str(self.rate)))
        if self.rate <= 0:
            raise ValueError(f"Exchange rate must be positive: {self.base}/{self.target} {self.rate}")

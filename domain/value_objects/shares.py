"""
Shares value object.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable


SHARES_SCALE = 100_000_000


@dataclass(frozen=True)
class Shares:
    """Security quantity as an integer scaled by 10^8."""
    
    value: int
    
    def __post_init__(self):
        """Validate shares."""
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError("Shares must be an integer scaled by 10^8")
        if self.value < 0:
            raise ValueError("Shares cannot be negative")
    
    @classmethod
    def from_decimal(cls, quantity) -> 'Shares':
        """Create shares from a fractional quantity (e.g. Decimal('1.5'))."""
        return cls(int(Decimal(str(quantity)) * SHARES_SCALE))
    
    @classmethod
    def net(cls, inbound: Iterable[int], outbound: Iterable[int]) -> 'Shares':
        """Net a holding from scaled inbound and outbound quantities."""
        return cls(sum(inbound) - sum(outbound))
    
    def to_decimal(self) -> Decimal:
        """Quantity in whole shares."""
        return Decimal(self.value) / SHARES_SCALE
    
    def __str__(self) -> str:
        return f"{self.to_decimal()}"
    
    def __add__(self, other: 'Shares') -> 'Shares':
        return Shares(self.value + other.value)
    
    def __sub__(self, other: 'Shares') -> 'Shares':
        return Shares(self.value - other.value)
    
    @property
    def is_zero(self) -> bool:
        return self.value == 0

"""
Price value object.
"""

from dataclasses import dataclass
from decimal import Decimal


PRICE_SCALE = 100_000_000


@dataclass(frozen=True)
class Price:
    """Closing price as an integer scaled by 10^8, in the quote currency."""
    
    value: int
    
    def __post_init__(self):
        """Validate price."""
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError("Price must be an integer scaled by 10^8")
        if self.value < 0:
            raise ValueError("Price cannot be negative")
    
    @classmethod
    def from_decimal(cls, price) -> 'Price':
        """Create a price from a major-unit quote."""
        return cls(int(Decimal(str(price)) * PRICE_SCALE))
    
    def to_decimal(self) -> Decimal:
        return Decimal(self.value) / PRICE_SCALE
    
    def __str__(self) -> str:
        return f"{self.to_decimal():.4f}"
    
    def to_float(self) -> float:
        return self.value / PRICE_SCALE

"""
Money value object.

Amounts are stored as integers in minor units (scale 10^2) so that long
transaction histories accumulate without floating point drift.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_EVEN
from typing import Union

from .currency import normalize_currency


AMOUNT_SCALE = 100


@dataclass(frozen=True)
class Money:
    """Money value object with currency, amount in minor units."""
    
    amount: int
    currency: str = "EUR"
    
    def __post_init__(self):
        """Validate and normalize money."""
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise TypeError(
                f"Money amount must be an integer in minor units, got {type(self.amount).__name__}"
            )
        object.__setattr__(self, 'currency', normalize_currency(self.currency))
    
    @classmethod
    def zero(cls, currency: str) -> 'Money':
        """Zero amount in the given currency."""
        return cls(0, currency)
    
    @classmethod
    def from_decimal(cls, value: Union[Decimal, float, int, str], currency: str) -> 'Money':
        """Create money from a major-unit value, rounding half-even to minor units."""
        minor = (Decimal(str(value)) * AMOUNT_SCALE).quantize(Decimal("1"), rounding=ROUND_HALF_EVEN)
        return cls(int(minor), currency)
    
    def to_decimal(self) -> Decimal:
        """Amount in major units."""
        return Decimal(self.amount) / AMOUNT_SCALE
    
    def to_float(self) -> float:
        """Amount in major units as float, for ratio math only."""
        return float(self.to_decimal())
    
    def __str__(self) -> str:
        """String representation."""
        return f"{self.to_decimal():.2f} {self.currency}"
    
    def _check_currency(self, other: 'Money', verb: str) -> None:
        if not isinstance(other, Money):
            raise TypeError(f"Can only {verb} Money and Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot {verb} {self.currency} and {other.currency}")
    
    def __add__(self, other: 'Money') -> 'Money':
        """Add money (same currency only)."""
        self._check_currency(other, "add")
        return Money(self.amount + other.amount, self.currency)
    
    def __sub__(self, other: 'Money') -> 'Money':
        """Subtract money (same currency only)."""
        self._check_currency(other, "subtract")
        return Money(self.amount - other.amount, self.currency)
    
    def __neg__(self) -> 'Money':
        return Money(-self.amount, self.currency)
    
    def __lt__(self, other: 'Money') -> bool:
        self._check_currency(other, "compare")
        return self.amount < other.amount
    
    def __le__(self, other: 'Money') -> bool:
        self._check_currency(other, "compare")
        return self.amount <= other.amount
    
    def __gt__(self, other: 'Money') -> bool:
        self._check_currency(other, "compare")
        return self.amount > other.amount
    
    def __ge__(self, other: 'Money') -> bool:
        self._check_currency(other, "compare")
        return self.amount >= other.amount
    
    @property
    def is_positive(self) -> bool:
        """Check if amount is positive."""
        return self.amount > 0
    
    @property
    def is_negative(self) -> bool:
        """Check if amount is negative."""
        return self.amount < 0
    
    @property
    def is_zero(self) -> bool:
        """Check if amount is zero."""
        return self.amount == 0

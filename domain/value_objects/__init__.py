"""
Value objects - Immutable objects that represent concepts.
"""

from .currency import Currency, normalize_currency
from .money import Money, AMOUNT_SCALE
from .shares import Shares, SHARES_SCALE
from .price import Price, PRICE_SCALE

__all__ = [
    "Currency", "normalize_currency",
    "Money", "AMOUNT_SCALE",
    "Shares", "SHARES_SCALE",
    "Price", "PRICE_SCALE",
]

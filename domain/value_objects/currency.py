"""
Currency code value object.
"""

from dataclasses import dataclass
from decimal import Decimal


# Quote currencies that are a fraction of an ISO currency.
SUBUNIT_CURRENCIES = {
    "GBX": ("GBP", Decimal("100")),
    "GBp": ("GBP", Decimal("100")),
}


@dataclass(frozen=True)
class Currency:
    """ISO-4217 style currency code."""
    
    code: str
    
    def __post_init__(self):
        """Validate and normalize the code."""
        code = (self.code or "").strip()
        # GBp is case sensitive (pence), everything else is upper-cased
        if code not in SUBUNIT_CURRENCIES:
            code = code.upper()
        if len(code) != 3 or not code.isalpha():
            raise ValueError(f"Invalid currency code: {self.code!r}")
        object.__setattr__(self, 'code', code)
    
    def __str__(self) -> str:
        return self.code
    
    @property
    def is_subunit(self) -> bool:
        """True for quote currencies like GBX that count pence."""
        return self.code in SUBUNIT_CURRENCIES
    
    @property
    def settlement(self) -> 'Currency':
        """Currency used for conversion (GBX -> GBP)."""
        if self.is_subunit:
            return Currency(SUBUNIT_CURRENCIES[self.code][0])
        return self
    
    @property
    def subunit_divisor(self) -> Decimal:
        """Divisor turning a quote in this currency into the settlement currency."""
        if self.is_subunit:
            return SUBUNIT_CURRENCIES[self.code][1]
        return Decimal("1")


def normalize_currency(code: str) -> str:
    """Return the normalized string form of a currency code."""
    return Currency(code).code

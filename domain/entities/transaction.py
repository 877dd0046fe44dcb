"""
Transaction entity - A ledger record as supplied by the storage collaborator.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from ..value_objects import Money, Shares, normalize_currency


class TransactionType(Enum):
    """Ledger transaction types."""
    BUY = "BUY"
    SELL = "SELL"
    DEPOSIT = "DEPOSIT"
    REMOVAL = "REMOVAL"
    TRANSFER_IN = "TRANSFER_IN"
    TRANSFER_OUT = "TRANSFER_OUT"
    DELIVERY_INBOUND = "DELIVERY_INBOUND"
    DELIVERY_OUTBOUND = "DELIVERY_OUTBOUND"
    DIVIDEND = "DIVIDENDS"
    INTEREST = "INTEREST"
    INTEREST_CHARGE = "INTEREST_CHARGE"
    FEES = "FEES"
    FEES_REFUND = "FEES_REFUND"
    TAXES = "TAXES"
    TAX_REFUND = "TAX_REFUND"
    
    @classmethod
    def parse(cls, value: str) -> 'TransactionType':
        """Parse a ledger type string, accepting the singular aliases."""
        aliases = {"DIVIDEND": "DIVIDENDS", "FEE": "FEES", "TAX": "TAXES"}
        key = value.strip().upper()
        return cls(aliases.get(key, key))


# Share movements that increase a holding
PURCHASE_TYPES = frozenset({
    TransactionType.BUY,
    TransactionType.TRANSFER_IN,
    TransactionType.DELIVERY_INBOUND,
})

# Share movements that decrease a holding
SALE_TYPES = frozenset({
    TransactionType.SELL,
    TransactionType.TRANSFER_OUT,
    TransactionType.DELIVERY_OUTBOUND,
})

# Money crossing the portfolio boundary from outside
EXTERNAL_CAPITAL_TYPES = frozenset({
    TransactionType.DEPOSIT,
    TransactionType.REMOVAL,
})

# Trades standing in for external capital when no deposits are recorded
TRADE_FLOW_INBOUND = frozenset({TransactionType.BUY, TransactionType.DELIVERY_INBOUND})
TRADE_FLOW_OUTBOUND = frozenset({TransactionType.SELL, TransactionType.DELIVERY_OUTBOUND})

# Sign of the effect on the cash account balance
CASH_EFFECT = {
    TransactionType.DEPOSIT: 1,
    TransactionType.REMOVAL: -1,
    TransactionType.BUY: -1,
    TransactionType.SELL: 1,
    TransactionType.DIVIDEND: 1,
    TransactionType.INTEREST: 1,
    TransactionType.INTEREST_CHARGE: -1,
    TransactionType.FEES: -1,
    TransactionType.FEES_REFUND: 1,
    TransactionType.TAXES: -1,
    TransactionType.TAX_REFUND: 1,
}


@dataclass(frozen=True)
class Transaction:
    """Immutable ledger transaction.
    
    ``amount`` is in minor units (scale 10^2) of ``currency``; ``shares`` is
    scaled by 10^8. ``portfolio_id`` is the owning portfolio (for account
    transactions: the portfolio the account is the reference account of).
    """
    
    date: date
    type: TransactionType
    amount: int
    currency: str
    security_id: Optional[int] = None
    shares: Optional[int] = None
    portfolio_id: Optional[int] = None
    transaction_id: Optional[str] = None
    
    def __post_init__(self):
        if isinstance(self.type, str):
            object.__setattr__(self, 'type', TransactionType.parse(self.type))
        object.__setattr__(self, 'currency', normalize_currency(self.currency))
    
    @property
    def money(self) -> Money:
        """Amount as Money."""
        return Money(self.amount, self.currency)
    
    @property
    def moves_shares(self) -> bool:
        return self.security_id is not None and self.shares is not None and (
            self.type in PURCHASE_TYPES or self.type in SALE_TYPES
        )
    
    @property
    def share_delta(self) -> int:
        """Signed change of the holding in scaled shares."""
        if not self.moves_shares:
            return 0
        return self.shares if self.type in PURCHASE_TYPES else -self.shares
    
    @property
    def cash_delta(self) -> int:
        """Signed effect on the cash account in minor units."""
        return CASH_EFFECT.get(self.type, 0) * self.amount
    
    @property
    def quantity(self) -> Optional[Shares]:
        return Shares(self.shares) if self.shares is not None else None

"""
Calculation scope - one portfolio or all of them.
"""

from dataclasses import dataclass
from typing import Optional

from .transaction import Transaction


@dataclass(frozen=True)
class Scope:
    """Selects the transactions a calculation covers."""
    
    portfolio_id: Optional[int] = None
    
    @classmethod
    def all(cls) -> 'Scope':
        return cls()
    
    @classmethod
    def portfolio(cls, portfolio_id: int) -> 'Scope':
        return cls(portfolio_id=portfolio_id)
    
    @property
    def is_all(self) -> bool:
        return self.portfolio_id is None
    
    def matches(self, transaction: Transaction) -> bool:
        return self.is_all or transaction.portfolio_id == self.portfolio_id
    
    def __str__(self) -> str:
        return "all" if self.is_all else f"portfolio:{self.portfolio_id}"

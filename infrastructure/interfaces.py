"""
Abstract interfaces for pluggable ledger storage.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Tuple

from domain.entities import (
    Transaction, Security, PricePoint, ExchangeRate, Scope, EXTERNAL_CAPITAL_TYPES,
)


@dataclass(frozen=True)
class LedgerSnapshot:
    """Everything one calculation reads, fetched in a single batch.
    
    ``transactions`` are already filtered to the scope and dated on or before
    ``end``; ``prices`` and ``rates`` cover every date on or before ``end`` so
    that forward-filling across the start date works.
    """
    
    scope: Scope
    start: date
    end: date
    transactions: Tuple[Transaction, ...] = ()
    securities: Dict[int, Security] = field(default_factory=dict)
    prices: Tuple[PricePoint, ...] = ()
    rates: Tuple[ExchangeRate, ...] = ()
    
    @property
    def is_empty(self) -> bool:
        return not self.transactions
    
    def transactions_between(self, start: date, end: date) -> List[Transaction]:
        """Transactions with ``start <= date <= end`` in ledger order."""
        return [t for t in self.transactions if start <= t.date <= end]

    def first_capital_date(self, scope: Scope) -> Optional[date]:
        """Date of the first DEPOSIT or REMOVAL in ``scope``; the account is opened by it."""
        dates = [
            t.date for t in self.transactions
            if t.type in EXTERNAL_CAPITAL_TYPES and scope.matches(t)
        ]
        return min(dates) if dates else None

    def security(self, security_id: int) -> Optional[Security]:
        return self.securities.get(security_id)


class LedgerProvider(ABC):
    """Abstract interface for the ledger storage collaborator."""
    
    @abstractmethod
    def load_snapshot(self, scope: Scope, start: date, end: date) -> LedgerSnapshot:
        """
        Load transactions, securities, prices and exchange rates in one read.
        
        Args:
            scope: Portfolio selection
            start: First date of the calculation range
            end: Last date of the calculation range
            
        Returns:
            Immutable snapshot of the ledger up to ``end``
        """
        pass
    
    @abstractmethod
    def get_security(self, security_id: int) -> Optional[Security]:
        """
        Get a security by id.
        
        Args:
            security_id: Security identifier
            
        Returns:
            Security if known, None otherwise
        """
        pass


class LedgerProviderFactory:
    """Factory for creating ledger providers."""
    
    _providers: Dict[str, type] = {}
    
    @classmethod
    def register(cls, name: str, provider_class: type):
        """Register a ledger provider."""
        cls._providers[name] = provider_class
    
    @classmethod
    def create(cls, name: str, **kwargs) -> LedgerProvider:
        """Create a ledger provider instance."""
        if name not in cls._providers:
            raise ValueError(f"Unknown ledger provider: {name}")
        
        return cls._providers[name](**kwargs)
    
    @classmethod
    def list_providers(cls) -> List[str]:
        """List available ledger providers."""
        return list(cls._providers.keys())

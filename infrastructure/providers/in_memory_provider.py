"""
In-memory ledger provider for tests, notebooks and embedding callers.
"""

import threading
from datetime import date
from typing import Dict, Iterable, List, Optional

from domain.entities import Transaction, Security, PricePoint, ExchangeRate, Scope
from infrastructure.interfaces import LedgerProvider, LedgerSnapshot, LedgerProviderFactory
from utils.logging import get_enhanced_logger, LogCategory

logger = get_enhanced_logger(__name__, LogCategory.DATA)


class InMemoryLedgerProvider(LedgerProvider):
    """Ledger provider backed by plain Python lists."""
    
    def __init__(
        self,
        transactions: Optional[Iterable[Transaction]] = None,
        securities: Optional[Iterable[Security]] = None,
        prices: Optional[Iterable[PricePoint]] = None,
        rates: Optional[Iterable[ExchangeRate]] = None,
    ):
        self._lock = threading.Lock()
        self._transactions: List[Transaction] = list(transactions or [])
        self._securities: Dict[int, Security] = {s.security_id: s for s in securities or []}
        self._prices: List[PricePoint] = list(prices or [])
        self._rates: List[ExchangeRate] = list(rates or [])
        self.snapshot_reads = 0
    
    def add_transactions(self, transactions: Iterable[Transaction]) -> None:
        with self._lock:
            self._transactions.extend(transactions)
    
    def add_security(self, security: Security) -> None:
        with self._lock:
            self._securities[security.security_id] = security
    
    def add_prices(self, prices: Iterable[PricePoint]) -> None:
        with self._lock:
            self._prices.extend(prices)
    
    def add_rates(self, rates: Iterable[ExchangeRate]) -> None:
        with self._lock:
            self._rates.extend(rates)
    
    def get_security(self, security_id: int) -> Optional[Security]:
        with self._lock:
            return self._securities.get(security_id)
    
    def load_snapshot(self, scope: Scope, start: date, end: date) -> LedgerSnapshot:
        with self._lock:
            self.snapshot_reads += 1
            transactions = tuple(sorted(
                (t for t in self._transactions if t.date <= end and scope.matches(t)),
                key=lambda t: t.date,
            ))
            snapshot = LedgerSnapshot(
                scope=scope,
                start=start,
                end=end,
                transactions=transactions,
                securities=dict(self._securities),
                prices=tuple(p for p in self._prices if p.date <= end),
                rates=tuple(r for r in self._rates if r.date <= end),
            )
        
        logger.debug(
            f"Loaded snapshot for {scope}: {len(snapshot.transactions)} transactions, "
            f"{len(snapshot.prices)} prices, {len(snapshot.rates)} rates"
        )
        return snapshot


LedgerProviderFactory.register("memory", InMemoryLedgerProvider)

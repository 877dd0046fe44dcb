"""
External cash flow extraction.

Two strategies exist and are never combined within one calculation:

- STRICT uses explicit external capital records (DEPOSIT / REMOVAL), plus
  trades settled before the account was opened by the first of them.
- FALLBACK reconstructs flows from trades at the portfolio boundary, used
  only when no external capital record falls in the range.
"""

from collections import OrderedDict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple

from domain.entities import (
    CashFlow, Scope, Transaction, TransactionType,
    EXTERNAL_CAPITAL_TYPES, TRADE_FLOW_INBOUND, TRADE_FLOW_OUTBOUND,
)
from domain.value_objects import AMOUNT_SCALE
from infrastructure.interfaces import LedgerSnapshot
from utils.logging import get_enhanced_logger, LogCategory
from .currency_converter import CurrencyConverter

logger = get_enhanced_logger(__name__, LogCategory.CASH_FLOW)


class CashFlowStrategy(Enum):
    """How external capital is identified."""
    STRICT = "strict"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class CashFlowSelection:
    """Flows of one calculation together with the strategy that produced them."""
    strategy: CashFlowStrategy
    flows: Tuple[CashFlow, ...]
    reason: str = ""

    def __iter__(self):
        return iter(self.flows)

    def __len__(self) -> int:
        return len(self.flows)

    @property
    def total_inflow(self) -> Decimal:
        return sum((f.amount for f in self.flows if f.amount > 0), Decimal("0"))

    @property
    def total_outflow(self) -> Decimal:
        """Withdrawn capital as a positive number."""
        return -sum((f.amount for f in self.flows if f.amount < 0), Decimal("0"))

    def net_flow_by_date(self) -> Dict[date, Decimal]:
        """Net flow per calendar day, in date order."""
        by_date: Dict[date, Decimal] = OrderedDict()
        for flow in self.flows:
            by_date[flow.date] = by_date.get(flow.date, Decimal("0")) + flow.amount
        return by_date

    def flow_on(self, on: date) -> Decimal:
        return sum((f.amount for f in self.flows if f.date == on), Decimal("0"))


def choose_strategy(transactions: Iterable[Transaction], start: date, end: date) -> CashFlowStrategy:
    """STRICT when any DEPOSIT/REMOVAL is dated in ``[start, end]``, FALLBACK otherwise."""
    for txn in transactions:
        if txn.type in EXTERNAL_CAPITAL_TYPES and start <= txn.date <= end:
            return CashFlowStrategy.STRICT
    return CashFlowStrategy.FALLBACK


def flow_sign(txn: Transaction, strategy: CashFlowStrategy) -> int:
    """Portfolio-perspective sign of a transaction under a strategy, 0 if it is no flow."""
    if strategy is CashFlowStrategy.STRICT:
        if txn.type is TransactionType.DEPOSIT:
            return 1
        if txn.type is TransactionType.REMOVAL:
            return -1
        return 0

    if txn.type in TRADE_FLOW_INBOUND:
        return 1
    if txn.type in TRADE_FLOW_OUTBOUND:
        return -1
    return 0


def pre_funding_sign(txn: Transaction) -> int:
    """Sign of a trade settled before the account was funded: spending brings capital in."""
    delta = txn.cash_delta
    if delta < 0:
        return 1
    if delta > 0:
        return -1
    return 0


class CashFlowExtractor:
    """Extracts external capital flows in the reporting currency."""

    def __init__(
        self,
        snapshot: LedgerSnapshot,
        converter: CurrencyConverter,
        reporting_currency: str = "EUR"
    ):
        self.snapshot = snapshot
        self.converter = converter
        self.reporting_currency = reporting_currency

    def _to_reporting(self, txn: Transaction) -> Decimal:
        minor = self.converter.convert_minor(
            abs(txn.amount), txn.currency, self.reporting_currency, txn.date
        )
        return Decimal(minor) / AMOUNT_SCALE

    def external_flows(
        self,
        scope: Scope,
        start: date,
        end: date,
        strategy: Optional[CashFlowStrategy] = None
    ) -> CashFlowSelection:
        """
        External flows dated in ``[start, end]``.

        Each flow is converted at its own date and same-date flows are kept
        as separate records.

        Raises:
            NoRateFoundError: a flow cannot be converted to the reporting currency
        """
        in_range = [t for t in self.snapshot.transactions_between(start, end) if scope.matches(t)]

        if strategy is None:
            strategy = choose_strategy(in_range, start, end)
            reason = (
                "external capital records present"
                if strategy is CashFlowStrategy.STRICT
                else "no deposit or removal in range, using trades"
            )
        else:
            reason = "requested by caller"

        # Under STRICT, trades settled before the account opened were paid
        # from outside it and count as capital moving in or out.
        opened = self.snapshot.first_capital_date(scope) if strategy is CashFlowStrategy.STRICT else None

        flows = []
        for txn in in_range:
            sign = flow_sign(txn, strategy)
            if sign == 0 and opened is not None and txn.date < opened:
                sign = pre_funding_sign(txn)
            if sign == 0:
                continue
            flows.append(CashFlow(txn.date, sign * self._to_reporting(txn)))

        flows.sort(key=lambda f: f.date)

        logger.log_strategy_choice(
            strategy.value,
            reason,
            scope=str(scope),
            start_date=start.isoformat(),
            end_date=end.isoformat(),
            flow_count=len(flows),
        )
        return CashFlowSelection(strategy=strategy, flows=tuple(flows), reason=reason)

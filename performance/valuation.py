"""
Point-in-time portfolio valuation in the reporting currency.
"""

from bisect import bisect_right
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from domain.entities import Scope, Transaction
from domain.value_objects import Money, Price, Shares, SHARES_SCALE, PRICE_SCALE
from error_handling import ErrorCollector, DataGapError, InvalidInputError, NoRateFoundError
from infrastructure.interfaces import LedgerSnapshot
from utils.logging import get_enhanced_logger, LogCategory
from .currency_converter import CurrencyConverter

logger = get_enhanced_logger(__name__, LogCategory.VALUATION)


@dataclass(frozen=True)
class Holding:
    """One security position as valued on a date."""
    security_id: int
    shares: Shares
    currency: str
    price: Optional[Price] = None
    price_date: Optional[date] = None
    value: Optional[Money] = None  # Reporting currency; None when unpriced or unconvertible

    @property
    def is_priced(self) -> bool:
        return self.price is not None


class ValuationService:
    """Values the holdings of a scope from one ledger snapshot."""

    def __init__(
        self,
        snapshot: LedgerSnapshot,
        converter: CurrencyConverter,
        reporting_currency: str = "EUR",
        error_collector: Optional[ErrorCollector] = None
    ):
        self.snapshot = snapshot
        self.converter = converter
        self.reporting_currency = reporting_currency
        self.errors = error_collector

        price_dates: Dict[int, List[date]] = defaultdict(list)
        price_values: Dict[int, List[int]] = defaultdict(list)
        for point in sorted(snapshot.prices, key=lambda p: (p.security_id, p.date)):
            dates = price_dates[point.security_id]
            if dates and dates[-1] == point.date:
                price_values[point.security_id][-1] = point.close
                continue
            dates.append(point.date)
            price_values[point.security_id].append(point.close)
        self._price_dates = dict(price_dates)
        self._price_values = dict(price_values)

    def _transactions(self, scope: Scope, on: date) -> Iterable[Transaction]:
        return (t for t in self.snapshot.transactions if t.date <= on and scope.matches(t))

    def security_currency(self, security_id: int) -> str:
        """Quote currency of a security, falling back to its trade currency."""
        security = self.snapshot.security(security_id)
        if security is not None:
            return security.currency
        for txn in self.snapshot.transactions:
            if txn.security_id == security_id:
                return txn.currency
        return self.reporting_currency

    def price_on(self, security_id: int, on: date) -> Optional[Tuple[date, Price]]:
        """Most recent close on or before ``on``."""
        dates = self._price_dates.get(security_id)
        if not dates:
            return None
        idx = bisect_right(dates, on)
        if idx == 0:
            return None
        return dates[idx - 1], Price(self._price_values[security_id][idx - 1])

    def price_dates(self, security_ids: Iterable[int], start: date, end: date) -> List[date]:
        """Sorted distinct price dates within ``[start, end]`` for the given securities."""
        found = set()
        for security_id in security_ids:
            for d in self._price_dates.get(security_id, []):
                if start <= d <= end:
                    found.add(d)
        return sorted(found)

    def net_shares_at(self, scope: Scope, on: date) -> Dict[int, Shares]:
        """Net holdings per security from purchase-class minus sale-class transactions."""
        totals: Dict[int, int] = defaultdict(int)
        for txn in self._transactions(scope, on):
            if txn.moves_shares:
                totals[txn.security_id] += txn.share_delta

        holdings = {}
        for security_id, net in totals.items():
            if net < 0:
                raise InvalidInputError(
                    f"Net holding of security {security_id} is negative on {on.isoformat()}",
                    metadata={'security_id': security_id, 'date': on, 'net_shares': net},
                )
            if net:
                holdings[security_id] = Shares(net)
        return holdings

    def cash_balances_at(self, scope: Scope, on: date) -> Dict[str, int]:
        """
        Account balances per currency in minor units.

        The account opens with the first DEPOSIT or REMOVAL of the scope.
        Trades dated before it were funded from outside the account and
        leave no balance behind; without any capital record there is no
        account at all.
        """
        opened = self.snapshot.first_capital_date(scope)
        if opened is None:
            return {}

        balances: Dict[str, int] = defaultdict(int)
        for txn in self._transactions(scope, on):
            if txn.date < opened:
                continue
            delta = txn.cash_delta
            if delta:
                balances[txn.currency] += delta
        return {ccy: amount for ccy, amount in balances.items() if amount}

    def capture(self, error) -> None:
        """Record a recoverable problem with the calculation's collector, if any."""
        if self.errors is not None:
            self.errors.capture(error, component="valuation")

    def _holding(self, security_id: int, shares: Shares, on: date) -> Holding:
        currency = self.security_currency(security_id)
        quote = self.price_on(security_id, on)
        if quote is None:
            gap = DataGapError.missing_price(security_id, on)
            logger.log_data_gap(gap.message, on=on, security_id=security_id)
            self.capture(gap)
            return Holding(security_id, shares, currency)

        price_date, price = quote
        native = Decimal(shares.value) * Decimal(price.value) / (SHARES_SCALE * PRICE_SCALE)
        try:
            converted = self.converter.convert(native, currency, self.reporting_currency, on)
        except NoRateFoundError as e:
            logger.warning(
                f"Skipping security {security_id}: {e.message}",
                error_context=e.to_dict()
            )
            self.capture(e)
            return Holding(security_id, shares, currency, price, price_date)

        return Holding(
            security_id, shares, currency, price, price_date,
            Money.from_decimal(converted, self.reporting_currency)
        )

    def holdings_at(self, scope: Scope, on: date) -> List[Holding]:
        """Per-security holdings with their valuation on ``on``."""
        return [
            self._holding(security_id, shares, on)
            for security_id, shares in sorted(self.net_shares_at(scope, on).items())
        ]

    def cash_value_at(self, scope: Scope, on: date) -> Money:
        total = 0
        for currency, balance in sorted(self.cash_balances_at(scope, on).items()):
            try:
                total += self.converter.convert_minor(balance, currency, self.reporting_currency, on)
            except NoRateFoundError as e:
                logger.warning(
                    f"Skipping {currency} cash balance: {e.message}",
                    error_context=e.to_dict()
                )
                self.capture(e)
        return Money(total, self.reporting_currency)

    def value_at_date(self, scope: Scope, on: date, include_cash: bool = False) -> Money:
        """
        Portfolio value on ``on`` in the reporting currency.

        Unpriced holdings contribute zero and unconvertible holdings are
        skipped; both are recorded as warnings instead of failing.

        Args:
            scope: Portfolio selection
            on: Valuation date; transactions dated on it are included
            include_cash: Add account cash balances to the securities value
        """
        total = Money.zero(self.reporting_currency)
        for holding in self.holdings_at(scope, on):
            if holding.value is not None:
                total = total + holding.value

        if include_cash:
            total = total + self.cash_value_at(scope, on)

        logger.trace(f"Value of {scope} on {on}: {total}")
        return total

    def value_series(
        self,
        scope: Scope,
        dates: Iterable[date],
        include_cash: bool = False
    ) -> Dict[date, Money]:
        """Value each date from the same snapshot, in date order."""
        return {d: self.value_at_date(scope, d, include_cash) for d in sorted(set(dates))}

    def price_series(self, security_id: int, start: date, end: date) -> Dict[date, float]:
        """Stored closes of one security within ``[start, end]`` in quote units."""
        dates = self._price_dates.get(security_id, [])
        values = self._price_values.get(security_id, [])
        return {
            d: Price(v).to_float()
            for d, v in zip(dates, values)
            if start <= d <= end
        }

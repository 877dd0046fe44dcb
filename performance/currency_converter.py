"""
Historical exchange-rate resolution.

Rates are indexed once per converter into sorted per-pair date lists, so a
lookup is a binary search with forward-fill to the most recent stored rate on
or before the requested date. Resolution order for ``base -> target``:

1. identical currencies resolve to 1 without a lookup
2. direct rate ``(base, target)``
3. inverse rate ``(target, base)``, inverted
4. triangulation through the anchor currency, each leg using steps 1-3 only
"""

from bisect import bisect_right
from collections import defaultdict
from datetime import date
from decimal import Decimal, ROUND_HALF_EVEN
from typing import Dict, Iterable, List, Optional, Tuple

from domain.entities import ExchangeRate
from domain.value_objects import Currency, Money
from error_handling import NoRateFoundError
from utils.logging import get_enhanced_logger, LogCategory

logger = get_enhanced_logger(__name__, LogCategory.CURRENCY)

ONE = Decimal("1")

Pair = Tuple[str, str]


class CurrencyConverter:
    """Convert amounts between currencies at historical dates."""
    
    def __init__(self, rates: Iterable[ExchangeRate], anchor_currency: str = "EUR"):
        self.anchor_currency = Currency(anchor_currency).settlement.code
        self._dates: Dict[Pair, List[date]] = {}
        self._rates: Dict[Pair, List[Decimal]] = {}
        
        grouped: Dict[Pair, Dict[date, Decimal]] = defaultdict(dict)
        for rate in rates:
            # Later records for the same pair and date replace earlier ones
            grouped[(rate.base, rate.target)][rate.date] = rate.rate
        
        for pair, by_date in grouped.items():
            ordered = sorted(by_date.items())
            self._dates[pair] = [d for d, _ in ordered]
            self._rates[pair] = [r for _, r in ordered]
        
        logger.debug(
            f"Indexed {sum(len(v) for v in self._dates.values())} rates "
            f"across {len(self._dates)} pairs (anchor {self.anchor_currency})"
        )
    
    def _stored(self, base: str, target: str, on: date) -> Optional[Decimal]:
        dates = self._dates.get((base, target))
        if not dates:
            return None
        idx = bisect_right(dates, on)
        if idx == 0:
            return None
        return self._rates[(base, target)][idx - 1]
    
    def _resolve_pair(self, base: str, target: str, on: date) -> Optional[Decimal]:
        if base == target:
            return ONE
        
        direct = self._stored(base, target, on)
        if direct is not None:
            return direct
        
        inverse = self._stored(target, base, on)
        if inverse is not None:
            return ONE / inverse
        
        return None
    
    def _resolve(self, base: str, target: str, on: date) -> Decimal:
        rate = self._resolve_pair(base, target, on)
        if rate is not None:
            return rate
        
        anchor = self.anchor_currency
        if anchor not in (base, target):
            first = self._resolve_pair(base, anchor, on)
            second = self._resolve_pair(anchor, target, on) if first is not None else None
            if first is not None and second is not None:
                logger.trace(f"Triangulated {base}/{target} via {anchor} on {on}")
                return first * second
        
        raise NoRateFoundError(base, target, on)
    
    def get_exchange_rate(self, base: str, target: str, on: date) -> Decimal:
        """
        Rate turning one unit of ``base`` into ``target`` on ``on``.
        
        Pence quote currencies (GBX/GBp) resolve through GBP with the
        subunit divisor applied.
        
        Raises:
            NoRateFoundError: no direct, inverse or anchored path exists
        """
        base_ccy = Currency(base)
        target_ccy = Currency(target)
        
        rate = self._resolve(base_ccy.settlement.code, target_ccy.settlement.code, on)
        return rate / base_ccy.subunit_divisor * target_ccy.subunit_divisor
    
    def convert(self, amount: Decimal, from_currency: str, to_currency: str, on: date) -> Decimal:
        """Convert a major-unit amount."""
        if not isinstance(amount, Decimal):
            amount = Decimal(str(amount))
        return amount * self.get_exchange_rate(from_currency, to_currency, on)
    
    def convert_minor(self, amount: int, from_currency: str, to_currency: str, on: date) -> int:
        """Convert an amount in minor units, rounding half-even to minor units."""
        if Currency(from_currency).code == Currency(to_currency).code:
            return amount
        converted = Decimal(amount) * self.get_exchange_rate(from_currency, to_currency, on)
        return int(converted.quantize(ONE, rounding=ROUND_HALF_EVEN))
    
    def convert_money(self, money: Money, to_currency: str, on: date) -> Money:
        return Money(self.convert_minor(money.amount, money.currency, to_currency, on), to_currency)
    
    def get_latest_rate(self, base: str, target: str) -> Optional[Tuple[date, Decimal]]:
        """
        Most recent stored rate for the pair, direct first then inverted.
        
        Pence quote currencies resolve through their settlement currency with
        the subunit divisor applied, the same as ``get_exchange_rate``.
        """
        base_ccy = Currency(base)
        target_ccy = Currency(target)
        base_code = base_ccy.settlement.code
        target_code = target_ccy.settlement.code
        if base_code == target_code:
            return None
        
        scale = ONE / base_ccy.subunit_divisor * target_ccy.subunit_divisor
        
        dates = self._dates.get((base_code, target_code))
        if dates:
            return dates[-1], self._rates[(base_code, target_code)][-1] * scale
        
        dates = self._dates.get((target_code, base_code))
        if dates:
            return dates[-1], ONE / self._rates[(target_code, base_code)][-1] * scale
        
        return None
    
    def get_all_rates_for_date(self, on: date) -> Dict[Pair, Decimal]:
        """Forward-filled rate of every stored pair on ``on``; pairs starting later are left out."""
        result = {}
        for base, target in self._dates:
            rate = self._stored(base, target, on)
            if rate is not None:
                result[(base, target)] = rate
        return result

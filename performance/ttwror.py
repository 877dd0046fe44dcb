"""
True time-weighted rate of return.

Sub-periods are split at every external cash flow date and chain-linked,
which removes the effect of flow size and timing. Valuation convention:

- ``start_value`` of a sub-period is measured after the flow landing on its
  start date (valuation includes every transaction dated on that day).
- ``end_value`` is measured before the flow landing on its end date, i.e.
  ``value(d) - flow(d)``.
- A sub-period opening on a zero or negative basis contributes a neutral
  factor (return 0). Under the after-flow convention a fresh deposit lifts
  the basis of the period it opens, and trades settled before the account
  was funded carry no cash, so this applies to stretches where the
  portfolio is empty. Securities held across such a stretch mean their
  value could not be established, which is reported as a data gap.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from domain.entities import Period, Scope
from error_handling import DataGapError
from utils.logging import get_enhanced_logger, LogCategory
from .cash_flows import CashFlowExtractor, CashFlowSelection, CashFlowStrategy
from .valuation import ValuationService

logger = get_enhanced_logger(__name__, LogCategory.PERFORMANCE)

DAYS_PER_YEAR = 365


@dataclass
class TTWRORResult:
    """Chain-linked return over a date range, as decimal fractions."""
    total_return: float
    annualized_return: float
    days: int
    periods: List[Period] = field(default_factory=list)


def annualize(total_return: float, days: int) -> float:
    """Geometric annualization; 0 for a zero-length range, -1 for a total loss."""
    if days <= 0:
        return 0.0
    growth = 1.0 + total_return
    if growth <= 0:
        return -1.0
    return growth ** (DAYS_PER_YEAR / days) - 1.0


def breakpoints(start: date, end: date, flow_dates) -> List[date]:
    """``{start, end}`` plus every flow date in ``(start, end]``, sorted and unique."""
    points = {start, end}
    points.update(d for d in flow_dates if start < d <= end)
    return sorted(points)


def link_periods(
    points: Sequence[date],
    flows: Mapping[date, Decimal],
    value_at: Callable[[date], float],
) -> List[Period]:
    """Sub-period returns between consecutive dates under the after-flow convention."""
    periods: List[Period] = []
    for period_start, period_end in zip(points, points[1:]):
        start_value = float(value_at(period_start))
        end_value = float(value_at(period_end)) - float(flows.get(period_end, 0))

        if start_value > 0:
            rate = (end_value - start_value) / start_value
        else:
            rate = 0.0

        periods.append(Period(
            start_date=period_start,
            end_date=period_end,
            start_value=start_value,
            end_value=end_value,
            cash_flow=float(flows.get(period_start, 0)),
            return_rate=rate,
        ))
    return periods


def performance_index(
    points: Sequence[date],
    flows: Mapping[date, Decimal],
    value_at: Callable[[date], float],
    base: float = 100.0,
) -> Dict[date, float]:
    """Flow-adjusted index over ``points``; its returns exclude external flows."""
    points = sorted(set(points))
    if not points:
        return {}

    index = {points[0]: base}
    level = base
    for period in link_periods(points, flows, value_at):
        level *= 1.0 + period.return_rate
        index[period.end_date] = level
    return index


def compute_ttwror(
    start: date,
    end: date,
    flows: Mapping[date, Decimal],
    value_at: Callable[[date], float],
) -> TTWRORResult:
    """
    Chain-link sub-period returns.

    Args:
        start: First date of the range
        end: Last date of the range
        flows: Net external flow per date, portfolio sign
        value_at: Portfolio value on a date, including that date's flows
    """
    days = (end - start).days
    periods = link_periods(breakpoints(start, end, flows.keys()), flows, value_at)

    growth = 1.0
    for period in periods:
        growth *= 1.0 + period.return_rate

    total_return = growth - 1.0
    return TTWRORResult(
        total_return=total_return,
        annualized_return=annualize(total_return, days),
        days=days,
        periods=periods,
    )


class TTWRORCalculator:
    """TTWROR for a scope over a ledger snapshot."""

    def __init__(self, valuation: ValuationService, extractor: CashFlowExtractor):
        self.valuation = valuation
        self.extractor = extractor

    def value_function(self, scope: Scope, strategy: CashFlowStrategy) -> Callable[[date], float]:
        """Memoized valuation matching the portfolio boundary of ``strategy``."""
        # Deposits land in the cash account, so STRICT values securities + cash
        include_cash = strategy is CashFlowStrategy.STRICT
        values: Dict[date, float] = {}

        def value_at(on: date) -> float:
            if on not in values:
                values[on] = self.valuation.value_at_date(scope, on, include_cash).to_float()
            return values[on]

        return value_at

    def ttwror(
        self,
        scope: Scope,
        start: date,
        end: date,
        selection: Optional[CashFlowSelection] = None,
        value_at: Optional[Callable[[date], float]] = None
    ) -> TTWRORResult:
        if selection is None:
            selection = self.extractor.external_flows(scope, start, end)
        if value_at is None:
            value_at = self.value_function(scope, selection.strategy)

        result = compute_ttwror(start, end, selection.net_flow_by_date(), value_at)

        for period in result.periods:
            if period.start_value > 0:
                continue
            held = self.valuation.net_shares_at(scope, period.start_date)
            if held:
                gap = DataGapError(
                    f"Sub-period from {period.start_date.isoformat()} neutralized: "
                    f"zero basis while securities are held",
                    metadata={
                        'start_date': period.start_date,
                        'end_date': period.end_date,
                        'start_value': period.start_value,
                        'security_ids': sorted(held),
                    },
                )
                logger.log_data_gap(gap.message, on=period.start_date)
                self.valuation.capture(gap)

        logger.debug(
            f"TTWROR for {scope}: {result.total_return:.6f} over {len(result.periods)} periods",
            analytics_context={'strategy': selection.strategy.value, 'days': result.days},
        )
        return result

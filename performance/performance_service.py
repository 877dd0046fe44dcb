"""
Performance report assembly.

One call reads one ledger snapshot and runs the calculators over it:

    provider -> snapshot -> validation
             -> cash flows + valuation (through the currency converter)
             -> TTWROR, IRR, risk metrics, benchmark
             -> PerformanceReport
"""

import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from configs.settings import get_settings
from domain.entities import CashFlow, Period, Scope
from domain.value_objects import Money
from error_handling import (
    ErrorCollector, InvalidInputError, NumericalNonConvergence, DataGapError,
)
from infrastructure.interfaces import LedgerProvider, LedgerProviderFactory, LedgerSnapshot
from infrastructure import providers  # noqa: F401  registers the built-in providers
from utils.logging import (
    get_enhanced_logger, LogCategory, performance_logging,
    set_correlation_id, clear_correlation_id,
)
from .benchmark import BenchmarkAnalyzer, BenchmarkComparison, BenchmarkPoint
from .cash_flows import CashFlowExtractor, CashFlowSelection, CashFlowStrategy
from .currency_converter import CurrencyConverter
from .irr import IRRResult, IRRSolver
from .risk_metrics import RiskMetrics, RiskMetricsEngine
from .ttwror import TTWRORCalculator, performance_index
from .valuation import ValuationService

logger = get_enhanced_logger(__name__, LogCategory.PERFORMANCE)


@dataclass
class PerformanceResult:
    """Headline figures; rates are decimal fractions."""
    ttwror: float
    ttwror_annualized: float
    irr: float
    irr_converged: bool
    days: int
    start_date: date
    end_date: date
    current_value: Money
    total_invested: Money
    absolute_gain: Money


@dataclass
class PerformanceReport:
    """Everything one calculation produces."""
    result: PerformanceResult
    periods: List[Period]
    risk_metrics: RiskMetrics
    cash_flow_strategy: CashFlowStrategy
    benchmark: Optional[BenchmarkComparison] = None
    benchmark_series: List[BenchmarkPoint] = field(default_factory=list)
    warnings: List[Dict[str, Any]] = field(default_factory=list)
    correlation_id: Optional[str] = None

    @property
    def is_partial(self) -> bool:
        return bool(self.warnings)


@dataclass
class _Calculation:
    snapshot: LedgerSnapshot
    errors: ErrorCollector
    converter: CurrencyConverter
    valuation: ValuationService
    extractor: CashFlowExtractor
    ttwror: TTWRORCalculator


class PerformanceService:
    """Computes performance reports for a scope and date range."""

    def __init__(
        self,
        provider: LedgerProvider,
        settings=None,
        reporting_currency: Optional[str] = None
    ):
        self.provider = provider
        self.settings = settings or get_settings()
        self.reporting_currency = reporting_currency or self.settings.reporting_currency
        self.solver = IRRSolver.from_settings(self.settings)
        self.risk_engine = RiskMetricsEngine.from_settings(self.settings)
        self.benchmark_analyzer = BenchmarkAnalyzer(self.risk_engine)

    @classmethod
    def from_settings(cls, settings=None, **provider_kwargs) -> 'PerformanceService':
        """Build the service over the ledger provider named by ``settings.ledger_provider``."""
        settings = settings or get_settings()
        provider = LedgerProviderFactory.create(settings.ledger_provider, **provider_kwargs)
        logger.info(f"Using ledger provider '{settings.ledger_provider}'")
        return cls(provider, settings)

    # Validation

    @staticmethod
    def validate_request(scope: Scope, start: date, end: date) -> None:
        """Reject structurally invalid requests before any data is read."""
        if not isinstance(start, date) or not isinstance(end, date):
            raise InvalidInputError("start and end must be calendar dates")
        if end < start:
            raise InvalidInputError(
                f"End date {end.isoformat()} is before start date {start.isoformat()}",
                metadata={'start_date': start, 'end_date': end},
            )
        if not isinstance(scope, Scope):
            raise InvalidInputError(f"Unsupported scope: {scope!r}")

    @staticmethod
    def validate_snapshot(snapshot: LedgerSnapshot) -> None:
        """Reject ledgers that cannot be valued."""
        if snapshot.is_empty:
            raise InvalidInputError(
                f"No transactions for {snapshot.scope} on or before {snapshot.end.isoformat()}",
                metadata={'scope': str(snapshot.scope)},
            )

        running: Dict[int, int] = {}
        # Inbound legs first so same-day sell-and-rebuy sequences net correctly
        ordered = sorted(snapshot.transactions, key=lambda t: (t.date, t.share_delta < 0))
        for txn in ordered:
            if txn.amount < 0:
                raise InvalidInputError(
                    f"Negative amount on {txn.type.value} transaction dated {txn.date.isoformat()}",
                    metadata={'transaction_id': txn.transaction_id, 'amount': txn.amount},
                )
            if txn.shares is not None and txn.shares < 0:
                raise InvalidInputError(
                    f"Negative shares on {txn.type.value} transaction dated {txn.date.isoformat()}",
                    metadata={'transaction_id': txn.transaction_id, 'shares': txn.shares},
                )
            if txn.moves_shares:
                net = running.get(txn.security_id, 0) + txn.share_delta
                if net < 0:
                    raise InvalidInputError(
                        f"Holding of security {txn.security_id} drops below zero on {txn.date.isoformat()}",
                        metadata={'security_id': txn.security_id, 'date': txn.date},
                    )
                running[txn.security_id] = net

    # Assembly

    def _prepare(self, scope: Scope, start: date, end: date, correlation_id: str) -> _Calculation:
        self.validate_request(scope, start, end)

        snapshot = self.provider.load_snapshot(scope, start, end)
        self.validate_snapshot(snapshot)

        errors = ErrorCollector(correlation_id)
        converter = CurrencyConverter(snapshot.rates, self.settings.anchor_currency)
        valuation = ValuationService(snapshot, converter, self.reporting_currency, errors)
        extractor = CashFlowExtractor(snapshot, converter, self.reporting_currency)
        return _Calculation(
            snapshot=snapshot,
            errors=errors,
            converter=converter,
            valuation=valuation,
            extractor=extractor,
            ttwror=TTWRORCalculator(valuation, extractor),
        )

    def _money(self, value: Decimal) -> Money:
        return Money.from_decimal(value, self.reporting_currency)

    @performance_logging()
    def calculate_performance(
        self,
        scope: Scope,
        start: date,
        end: date,
        benchmark_security_id: Optional[int] = None
    ) -> PerformanceReport:
        """
        Compute TTWROR, IRR, risk metrics and an optional benchmark comparison.

        Missing prices, unresolvable rates for a holding or a cash balance,
        IRR non-convergence and thin benchmark data are returned as tagged
        warnings. Besides invalid requests, exactly one data condition
        fails the whole call: an external cash flow whose currency cannot
        be converted, raised as NoRateFoundError.

        Args:
            scope: Portfolio selection
            start: First date of the range
            end: Last date of the range, valuation date of the result
            benchmark_security_id: Security whose prices serve as benchmark

        Raises:
            InvalidInputError: bad date range, empty ledger, negative holdings
            NoRateFoundError: an external cash flow cannot be converted
        """
        correlation_id = str(uuid.uuid4())
        set_correlation_id(correlation_id)
        try:
            calc = self._prepare(scope, start, end, correlation_id)
            selection = calc.extractor.external_flows(scope, start, end)
            value_at = calc.ttwror.value_function(scope, selection.strategy)

            ttwror = calc.ttwror.ttwror(scope, start, end, selection, value_at)
            irr, opening = self._irr(calc, selection, start, end, value_at)
            current_value = self._money(Decimal(str(value_at(end))))

            total_invested = self._money(opening + selection.total_inflow)
            absolute_gain = current_value + self._money(selection.total_outflow) - total_invested

            result = PerformanceResult(
                ttwror=ttwror.total_return,
                ttwror_annualized=ttwror.annualized_return,
                irr=irr.irr,
                irr_converged=irr.converged,
                days=ttwror.days,
                start_date=start,
                end_date=end,
                current_value=current_value,
                total_invested=total_invested,
                absolute_gain=absolute_gain,
            )

            index = self._performance_index(calc, scope, selection, start, end, value_at, benchmark_security_id)
            benchmark_prices = None
            benchmark = None
            benchmark_series: List[BenchmarkPoint] = []
            if benchmark_security_id is not None:
                benchmark_prices = self._benchmark_prices(calc, benchmark_security_id, index.keys())
                benchmark, benchmark_series = self._benchmark(calc, index, benchmark_prices)

            risk = self.risk_engine.risk_metrics(
                index, benchmark_prices or None, annualized_return=ttwror.annualized_return
            )

            logger.log_calculation(
                str(scope), start, end,
                ttwror=result.ttwror,
                irr=result.irr,
                irr_converged=result.irr_converged,
                strategy=selection.strategy.value,
                warnings=len(calc.errors.errors),
            )

            return PerformanceReport(
                result=result,
                periods=ttwror.periods,
                risk_metrics=risk,
                cash_flow_strategy=selection.strategy,
                benchmark=benchmark,
                benchmark_series=benchmark_series,
                warnings=calc.errors.to_list(),
                correlation_id=correlation_id,
            )
        finally:
            clear_correlation_id()

    def period_returns(self, scope: Scope, start: date, end: date) -> List[Period]:
        """TTWROR sub-periods only, for charting."""
        calc = self._prepare(scope, start, end, str(uuid.uuid4()))
        return calc.ttwror.ttwror(scope, start, end).periods

    def _irr(
        self,
        calc: _Calculation,
        selection: CashFlowSelection,
        start: date,
        end: date,
        value_at
    ):
        """IRR over the opening value, the external flows and the closing value."""
        opening = Decimal(str(value_at(start))) - selection.flow_on(start)
        flows: List[CashFlow] = []
        if opening > 0:
            flows.append(CashFlow(start, opening))
        else:
            opening = Decimal("0")
        flows.extend(selection.flows)

        result: IRRResult = self.solver.irr(flows, value_at(end), end)
        if not result.converged:
            calc.errors.capture(
                NumericalNonConvergence(
                    "IRR did not converge",
                    metadata={
                        'estimate': result.irr,
                        'iterations': result.iterations,
                        'method': result.method,
                        'flow_count': len(flows),
                    },
                ),
                component="irr",
            )
        return result, opening

    def _performance_index(
        self,
        calc: _Calculation,
        scope: Scope,
        selection: CashFlowSelection,
        start: date,
        end: date,
        value_at,
        benchmark_security_id: Optional[int]
    ) -> Dict[date, float]:
        """Flow-adjusted index on every priced date in the range."""
        held = {
            txn.security_id for txn in calc.snapshot.transactions
            if txn.moves_shares and scope.matches(txn)
        }
        if benchmark_security_id is not None:
            held.add(benchmark_security_id)

        points = {start, end}
        points.update(calc.valuation.price_dates(held, start, end))
        points.update(f.date for f in selection.flows)
        return performance_index(sorted(points), selection.net_flow_by_date(), value_at)

    @staticmethod
    def _benchmark_prices(calc: _Calculation, security_id: int, dates) -> Dict[date, float]:
        prices = {}
        for d in sorted(dates):
            quote = calc.valuation.price_on(security_id, d)
            if quote is not None:
                prices[d] = quote[1].to_float()
        return prices

    def _benchmark(self, calc: _Calculation, index: Dict[date, float], benchmark_prices: Dict[date, float]):
        try:
            comparison = self.benchmark_analyzer.compare(index, benchmark_prices)
        except DataGapError as e:
            calc.errors.capture(e, component="benchmark")
            return None, []
        return comparison, self.benchmark_analyzer.comparison_series(index, benchmark_prices)

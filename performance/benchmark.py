"""
Portfolio versus benchmark comparison.
"""

import math
from dataclasses import dataclass, asdict
from datetime import date
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from error_handling import DataGapError
from utils.logging import get_enhanced_logger, LogCategory
from .risk_metrics import RiskMetricsEngine, SeriesLike, calculate_returns, max_drawdown, to_series

logger = get_enhanced_logger(__name__, LogCategory.BENCHMARK)


@dataclass
class BenchmarkComparison:
    """Relative performance figures as decimal fractions."""
    portfolio_return: float
    benchmark_return: float
    excess_return: float
    beta: Optional[float] = None
    alpha: Optional[float] = None
    sharpe_ratio: Optional[float] = None
    correlation: Optional[float] = None
    tracking_error: Optional[float] = None
    information_ratio: Optional[float] = None
    max_drawdown_portfolio: Optional[float] = None
    max_drawdown_benchmark: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @property
    def outperformed(self) -> bool:
        return self.excess_return > 0


@dataclass(frozen=True)
class BenchmarkPoint:
    """One chart point, returns relative to the first value of each series."""
    date: date
    portfolio_value: float
    portfolio_return: float
    benchmark_value: float
    benchmark_return: float


def _optional(value) -> Optional[float]:
    if value is None:
        return None
    value = float(value)
    return value if math.isfinite(value) else None


class BenchmarkAnalyzer:
    """Compares a portfolio performance series against a benchmark price series."""

    def __init__(self, engine: Optional[RiskMetricsEngine] = None):
        self.engine = engine or RiskMetricsEngine()

    def compare(self, portfolio_series: SeriesLike, benchmark_series: SeriesLike) -> BenchmarkComparison:
        """
        Compare two date-indexed series.

        Raises:
            DataGapError: either series has fewer than two points or they
                share no return dates
        """
        portfolio = to_series(portfolio_series)
        benchmark = to_series(benchmark_series)

        if len(benchmark) < 2:
            raise DataGapError("Not enough benchmark data", metadata={'points': len(benchmark)})
        if len(portfolio) < 2:
            raise DataGapError("Not enough portfolio data", metadata={'points': len(portfolio)})

        portfolio_return = portfolio.iloc[-1] / portfolio.iloc[0] - 1.0
        benchmark_return = benchmark.iloc[-1] / benchmark.iloc[0] - 1.0

        portfolio_returns = calculate_returns(portfolio)
        aligned = pd.DataFrame({
            'portfolio': portfolio_returns,
            'benchmark': calculate_returns(benchmark),
        }).dropna()

        if aligned.empty:
            raise DataGapError("No overlapping data between portfolio and benchmark")

        ppy = self.engine.periods_per_year
        beta, alpha = self.engine.beta_alpha(portfolio_returns, benchmark, ppy)

        correlation = None
        if len(aligned) > 1:
            correlation = _optional(aligned['portfolio'].corr(aligned['benchmark']))

        # Population deviation of the return differences, annualized
        differences = aligned['portfolio'] - aligned['benchmark']
        tracking_error = float(np.sqrt(((differences - differences.mean()) ** 2).mean()) * math.sqrt(ppy))

        excess = portfolio_return - benchmark_return
        information_ratio = excess / tracking_error if tracking_error > 0 else None

        comparison = BenchmarkComparison(
            portfolio_return=float(portfolio_return),
            benchmark_return=float(benchmark_return),
            excess_return=float(excess),
            beta=beta,
            alpha=alpha,
            sharpe_ratio=self.engine.risk_metrics(portfolio).sharpe,
            correlation=correlation,
            tracking_error=tracking_error,
            information_ratio=_optional(information_ratio),
            max_drawdown_portfolio=max_drawdown(portfolio),
            max_drawdown_benchmark=max_drawdown(benchmark),
        )

        logger.info(
            f"Benchmark comparison: portfolio {portfolio_return:.2%} vs benchmark {benchmark_return:.2%}",
            analytics_context=comparison.to_dict(),
        )
        return comparison

    def comparison_series(
        self,
        portfolio_series: SeriesLike,
        benchmark_series: SeriesLike
    ) -> List[BenchmarkPoint]:
        """Chart points over the union of dates, forward-filling the sparser series."""
        portfolio = to_series(portfolio_series)
        benchmark = to_series(benchmark_series)
        if portfolio.empty or benchmark.empty:
            return []

        portfolio_base = portfolio.iloc[0]
        benchmark_base = benchmark.iloc[0]

        frame = pd.DataFrame({'portfolio': portfolio, 'benchmark': benchmark}).sort_index().ffill()
        frame = frame.fillna({'portfolio': portfolio_base, 'benchmark': benchmark_base})

        return [
            BenchmarkPoint(
                date=idx,
                portfolio_value=float(row.portfolio),
                portfolio_return=float(row.portfolio / portfolio_base - 1.0),
                benchmark_value=float(row.benchmark),
                benchmark_return=float(row.benchmark / benchmark_base - 1.0),
            )
            for idx, row in frame.iterrows()
        ]

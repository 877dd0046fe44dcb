"""
Risk statistics over a portfolio value series.
"""

import math
from dataclasses import dataclass, asdict
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from utils.logging import get_enhanced_logger, LogCategory
from .ttwror import annualize

logger = get_enhanced_logger(__name__, LogCategory.RISK)

SeriesLike = Union[pd.Series, Mapping[Any, float], Sequence[float]]


@dataclass
class RiskMetrics:
    """Annualized risk figures; any field may be absent on degenerate input."""
    volatility: Optional[float] = None
    sharpe: Optional[float] = None
    sortino: Optional[float] = None
    max_drawdown: Optional[float] = None
    max_drawdown_start: Optional[date] = None  # Peak before the deepest decline
    max_drawdown_end: Optional[date] = None  # Trough of the deepest decline
    calmar: Optional[float] = None
    beta: Optional[float] = None
    alpha: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def to_series(values: SeriesLike) -> pd.Series:
    """Float series from a Series, a date mapping or a plain sequence."""
    if isinstance(values, pd.Series):
        series = values.astype(float)
    elif isinstance(values, Mapping):
        series = pd.Series({k: float(v) for k, v in values.items()}, dtype=float)
    else:
        series = pd.Series([float(v) for v in values], dtype=float)
    return series.sort_index()


def _finite(value) -> Optional[float]:
    if value is None:
        return None
    value = float(value)
    return value if math.isfinite(value) else None


def _as_date(label) -> Optional[date]:
    if isinstance(label, datetime):
        return label.date()
    if isinstance(label, date):
        return label
    return None


def calculate_returns(values: pd.Series) -> pd.Series:
    """Periodic simple returns between consecutive points."""
    if len(values) < 2:
        return pd.Series(dtype=float)
    return values.pct_change().replace([np.inf, -np.inf], np.nan).dropna()


@dataclass(frozen=True)
class Drawdown:
    """Deepest decline of a series with the dates that bound it."""
    depth: float
    peak: Any
    trough: Any


def drawdown_details(values: SeriesLike) -> Optional[Drawdown]:
    """Largest peak-to-trough decline with its peak and trough index labels."""
    series = to_series(values)
    if len(series) < 2:
        return None

    running_max = series.cummax()
    valid = running_max > 0
    if not valid.any():
        return None

    drawdown = (running_max[valid] - series[valid]) / running_max[valid]
    depth = _finite(drawdown.max())
    if depth is None:
        return None
    if depth == 0:
        return Drawdown(depth=0.0, peak=None, trough=None)

    trough = drawdown.idxmax()
    peak = series.iloc[:series.index.get_loc(trough) + 1].idxmax()
    return Drawdown(depth=depth, peak=peak, trough=trough)


def max_drawdown(values: SeriesLike) -> Optional[float]:
    """Largest peak-to-trough decline as a fraction of the peak."""
    details = drawdown_details(values)
    return details.depth if details is not None else None


def series_annualized_return(values: SeriesLike) -> Optional[float]:
    """Geometric annual return between the first and last point of a date-indexed series."""
    series = to_series(values)
    if len(series) < 2:
        return None
    first, last = series.index[0], series.index[-1]
    if not isinstance(first, date) or not isinstance(last, date) or series.iloc[0] <= 0:
        return None
    try:
        return annualize(float(series.iloc[-1] / series.iloc[0]) - 1.0, (last - first).days)
    except OverflowError:
        return None


class RiskMetricsEngine:
    """Volatility, Sharpe, Sortino, drawdown, Calmar, beta and alpha."""

    def __init__(self, risk_free_rate: float = 0.0, periods_per_year: int = 252):
        self.risk_free_rate = risk_free_rate
        self.periods_per_year = periods_per_year

    @classmethod
    def from_settings(cls, settings) -> 'RiskMetricsEngine':
        return cls(
            risk_free_rate=settings.risk_free_rate,
            periods_per_year=settings.periods_per_year,
        )

    def risk_metrics(
        self,
        value_series: SeriesLike,
        benchmark_series: Optional[SeriesLike] = None,
        risk_free_rate: Optional[float] = None,
        periods_per_year: Optional[int] = None,
        annualized_return: Optional[float] = None
    ) -> RiskMetrics:
        """
        Compute risk statistics for a value series.

        Args:
            value_series: Portfolio values (or a performance index) in date order
            benchmark_series: Optional benchmark values for beta and alpha
            risk_free_rate: Annual risk-free rate, defaults to the engine's
            periods_per_year: Annualization factor, defaults to the engine's
            annualized_return: Return used for the Calmar ratio; derived from a
                date-indexed series when omitted

        Returns:
            RiskMetrics with None for every figure that cannot be computed
        """
        rf = self.risk_free_rate if risk_free_rate is None else risk_free_rate
        ppy = self.periods_per_year if periods_per_year is None else periods_per_year

        values = to_series(value_series)
        if len(values) < 2:
            return RiskMetrics()

        returns = calculate_returns(values)
        drawdown = drawdown_details(values)
        metrics = RiskMetrics()
        if drawdown is not None:
            metrics.max_drawdown = drawdown.depth
            metrics.max_drawdown_start = _as_date(drawdown.peak)
            metrics.max_drawdown_end = _as_date(drawdown.trough)
            if drawdown.depth > 0:
                if annualized_return is None:
                    annualized_return = series_annualized_return(values)
                if annualized_return is not None:
                    metrics.calmar = _finite(annualized_return / drawdown.depth)
        if returns.empty:
            return metrics

        rf_periodic = rf / ppy
        annual_factor = math.sqrt(ppy)
        std = _finite(returns.std()) if len(returns) > 1 else None
        excess_mean = float(returns.mean()) - rf_periodic

        if std is not None:
            metrics.volatility = std * annual_factor
            if std > 0:
                metrics.sharpe = excess_mean / std * annual_factor

        excess = returns - rf_periodic
        if (excess < 0).any():
            downside = math.sqrt(float((np.minimum(excess, 0.0) ** 2).mean()))
            if downside > 0:
                metrics.sortino = excess_mean / downside * annual_factor

        if benchmark_series is not None:
            metrics.beta, metrics.alpha = self.beta_alpha(returns, to_series(benchmark_series), ppy)

        logger.debug(
            f"Risk metrics over {len(values)} points",
            analytics_context=metrics.to_dict(),
        )
        return metrics

    def beta_alpha(
        self,
        portfolio_returns: pd.Series,
        benchmark_values: pd.Series,
        periods_per_year: Optional[int] = None
    ):
        """Beta and annualized alpha on date-aligned returns."""
        ppy = self.periods_per_year if periods_per_year is None else periods_per_year
        aligned = pd.DataFrame({
            'portfolio': portfolio_returns,
            'benchmark': calculate_returns(benchmark_values),
        }).dropna()

        if len(aligned) < 2:
            return None, None

        benchmark_variance = aligned['benchmark'].var()
        if not benchmark_variance or not math.isfinite(benchmark_variance):
            return None, None

        beta = aligned['portfolio'].cov(aligned['benchmark']) / benchmark_variance
        alpha = (aligned['portfolio'].mean() - beta * aligned['benchmark'].mean()) * ppy
        return _finite(beta), _finite(alpha)

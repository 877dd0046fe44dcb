"""
Performance analytics for multi-currency portfolios.

- Historical currency conversion with forward-fill and triangulation
- Point-in-time valuation
- External cash flow extraction
- TTWROR, IRR, risk metrics and benchmark comparison
"""

from .currency_converter import CurrencyConverter
from .valuation import ValuationService, Holding
from .cash_flows import CashFlowExtractor, CashFlowSelection, CashFlowStrategy, choose_strategy
from .ttwror import TTWRORCalculator, TTWRORResult, compute_ttwror, annualize, performance_index
from .irr import IRRSolver, IRRResult, npv, solve_irr
from .risk_metrics import RiskMetricsEngine, RiskMetrics, Drawdown, drawdown_details, max_drawdown
from .benchmark import BenchmarkAnalyzer, BenchmarkComparison, BenchmarkPoint
from .performance_service import PerformanceService, PerformanceResult, PerformanceReport

__all__ = [
    "CurrencyConverter",
    "ValuationService", "Holding",
    "CashFlowExtractor", "CashFlowSelection", "CashFlowStrategy", "choose_strategy",
    "TTWRORCalculator", "TTWRORResult", "compute_ttwror", "annualize", "performance_index",
    "IRRSolver", "IRRResult", "npv", "solve_irr",
    "RiskMetricsEngine", "RiskMetrics", "Drawdown", "drawdown_details", "max_drawdown",
    "BenchmarkAnalyzer", "BenchmarkComparison", "BenchmarkPoint",
    "PerformanceService", "PerformanceResult", "PerformanceReport",
]

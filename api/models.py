"""
Pydantic models for report serialization at the API boundary.

Field names serialize in camelCase. Return figures (TTWROR, IRR, period
and benchmark returns) are expressed in percent; risk ratios stay raw.
Money fields are major units of ``currency``.
"""

import datetime
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from domain.entities import Period
from error_handling import AnalyticsError, ErrorKind
from performance.benchmark import BenchmarkComparison, BenchmarkPoint
from performance.performance_service import PerformanceReport, PerformanceResult
from performance.risk_metrics import RiskMetrics


def _percent(value: Optional[float]) -> Optional[float]:
    return None if value is None else value * 100.0


class CamelModel(BaseModel):
    """Base model with camelCase aliases."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class ErrorKindModel(str, Enum):
    """Error kind enumeration."""
    DATA_GAP = ErrorKind.DATA_GAP.value
    NUMERICAL_NON_CONVERGENCE = ErrorKind.NUMERICAL_NON_CONVERGENCE.value
    INVALID_INPUT = ErrorKind.INVALID_INPUT.value
    CURRENCY_RESOLUTION_FAILURE = ErrorKind.CURRENCY_RESOLUTION_FAILURE.value


class ErrorResponse(BaseModel):
    """Tagged error payload."""
    kind: ErrorKindModel = Field(..., description="Closed error kind")
    message: str = Field(..., description="Human readable description")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Structured details")

    @classmethod
    def from_error(cls, error: AnalyticsError) -> 'ErrorResponse':
        return cls.model_validate(error.to_dict())


class PerformanceResultModel(CamelModel):
    """Headline performance figures."""
    ttwror: float = Field(..., description="True time-weighted return in percent")
    ttwror_annualized: float = Field(..., description="Annualized TTWROR in percent")
    irr: float = Field(..., description="Internal rate of return in percent")
    irr_converged: bool = Field(..., description="Whether the IRR solver converged")
    days: int = Field(..., ge=0, description="Calendar days in the range")
    start_date: date
    end_date: date
    current_value: float = Field(..., description="Value at end date")
    total_invested: float = Field(..., description="Opening value plus capital added")
    absolute_gain: float = Field(..., description="Value plus withdrawals minus invested capital")
    currency: str = Field(..., description="Reporting currency")

    @field_validator("currency")
    @classmethod
    def currency_must_be_uppercase(cls, v):
        return v.upper()

    @classmethod
    def from_result(cls, result: PerformanceResult) -> 'PerformanceResultModel':
        return cls(
            ttwror=_percent(result.ttwror),
            ttwror_annualized=_percent(result.ttwror_annualized),
            irr=_percent(result.irr),
            irr_converged=result.irr_converged,
            days=result.days,
            start_date=result.start_date,
            end_date=result.end_date,
            current_value=result.current_value.to_float(),
            total_invested=result.total_invested.to_float(),
            absolute_gain=result.absolute_gain.to_float(),
            currency=result.current_value.currency,
        )


class PeriodReturnDataModel(CamelModel):
    """One TTWROR sub-period."""
    start_date: date
    end_date: date
    start_value: float
    end_value: float
    cash_flow: float = Field(..., description="External flow on the start date")
    return_rate: float = Field(..., description="Sub-period return in percent")

    @classmethod
    def from_period(cls, period: Period) -> 'PeriodReturnDataModel':
        return cls(
            start_date=period.start_date,
            end_date=period.end_date,
            start_value=period.start_value,
            end_value=period.end_value,
            cash_flow=period.cash_flow,
            return_rate=_percent(period.return_rate),
        )


class RiskMetricsModel(CamelModel):
    """Risk statistics; absent figures serialize as null."""
    volatility: Optional[float] = None
    sharpe: Optional[float] = None
    sortino: Optional[float] = None
    max_drawdown: Optional[float] = None
    max_drawdown_start: Optional[datetime.date] = None
    max_drawdown_end: Optional[datetime.date] = None
    calmar: Optional[float] = None
    beta: Optional[float] = None
    alpha: Optional[float] = None

    @classmethod
    def from_metrics(cls, metrics: RiskMetrics) -> 'RiskMetricsModel':
        return cls(**metrics.to_dict())


class BenchmarkComparisonModel(CamelModel):
    """Portfolio versus benchmark."""
    portfolio_return: float = Field(..., description="Portfolio return in percent")
    benchmark_return: float = Field(..., description="Benchmark return in percent")
    excess_return: float = Field(..., description="Difference in percentage points")
    beta: Optional[float] = None
    alpha: Optional[float] = None
    sharpe_ratio: Optional[float] = None
    correlation: Optional[float] = None
    tracking_error: Optional[float] = None
    information_ratio: Optional[float] = None
    max_drawdown_portfolio: Optional[float] = None
    max_drawdown_benchmark: Optional[float] = None

    @classmethod
    def from_comparison(cls, comparison: BenchmarkComparison) -> 'BenchmarkComparisonModel':
        data = comparison.to_dict()
        for key in ("portfolio_return", "benchmark_return", "excess_return"):
            data[key] = _percent(data[key])
        return cls(**data)


class BenchmarkDataPointModel(CamelModel):
    """Chart point for portfolio versus benchmark."""
    date: datetime.date
    portfolio_value: float
    portfolio_return: float = Field(..., description="Return since first point in percent")
    benchmark_value: float
    benchmark_return: float = Field(..., description="Return since first point in percent")

    @classmethod
    def from_point(cls, point: BenchmarkPoint) -> 'BenchmarkDataPointModel':
        return cls(
            date=point.date,
            portfolio_value=point.portfolio_value,
            portfolio_return=_percent(point.portfolio_return),
            benchmark_value=point.benchmark_value,
            benchmark_return=_percent(point.benchmark_return),
        )


class PerformanceReportModel(CamelModel):
    """Complete report as returned to callers."""
    result: PerformanceResultModel
    periods: List[PeriodReturnDataModel] = Field(default_factory=list)
    risk_metrics: RiskMetricsModel
    cash_flow_strategy: str = Field(..., description="strict or fallback")
    benchmark: Optional[BenchmarkComparisonModel] = None
    benchmark_series: List[BenchmarkDataPointModel] = Field(default_factory=list)
    warnings: List[ErrorResponse] = Field(default_factory=list)
    correlation_id: Optional[str] = None

    @classmethod
    def from_report(cls, report: PerformanceReport) -> 'PerformanceReportModel':
        return cls(
            result=PerformanceResultModel.from_result(report.result),
            periods=[PeriodReturnDataModel.from_period(p) for p in report.periods],
            risk_metrics=RiskMetricsModel.from_metrics(report.risk_metrics),
            cash_flow_strategy=report.cash_flow_strategy.value,
            benchmark=(
                BenchmarkComparisonModel.from_comparison(report.benchmark)
                if report.benchmark is not None else None
            ),
            benchmark_series=[BenchmarkDataPointModel.from_point(p) for p in report.benchmark_series],
            warnings=[ErrorResponse.model_validate(w) for w in report.warnings],
            correlation_id=report.correlation_id,
        )

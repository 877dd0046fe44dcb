"""
Unit tests for benchmark comparison.
"""

import pytest
from datetime import date, timedelta

from error_handling import DataGapError, ErrorKind
from performance.benchmark import BenchmarkAnalyzer, BenchmarkComparison
from performance.risk_metrics import RiskMetricsEngine


D0 = date(2023, 1, 2)


def dated(values, start=D0):
    return {start + timedelta(days=i): v for i, v in enumerate(values)}


@pytest.fixture
def analyzer():
    return BenchmarkAnalyzer(RiskMetricsEngine(periods_per_year=252))


class TestCompare:
    """Test portfolio versus benchmark figures."""
    
    def test_total_and_excess_return(self, analyzer):
        portfolio = dated([100.0, 108.0, 104.0, 120.0])
        benchmark = dated([50.0, 51.0, 52.0, 55.0])
        
        comparison = analyzer.compare(portfolio, benchmark)
        
        assert comparison.portfolio_return == pytest.approx(0.20)
        assert comparison.benchmark_return == pytest.approx(0.10)
        assert comparison.excess_return == pytest.approx(0.10)
        assert comparison.outperformed
        assert comparison.tracking_error > 0
        assert comparison.information_ratio == pytest.approx(0.10 / comparison.tracking_error)
        assert comparison.max_drawdown_portfolio == pytest.approx(4.0 / 108.0)
        assert comparison.max_drawdown_benchmark == 0.0
    
    def test_identical_series(self, analyzer):
        """Test a benchmark equal to the portfolio."""
        values = dated([100.0, 103.0, 99.0, 105.0])
        
        comparison = analyzer.compare(values, values)
        
        assert comparison.excess_return == 0.0
        assert comparison.beta == pytest.approx(1.0)
        assert comparison.correlation == pytest.approx(1.0)
        assert comparison.tracking_error == 0.0
        assert comparison.information_ratio is None
        assert not comparison.outperformed
    
    def test_scaled_benchmark_levels_do_not_matter(self, analyzer):
        portfolio = dated([100.0, 103.0, 99.0, 105.0])
        benchmark = dated([v * 37.0 for v in [100.0, 103.0, 99.0, 105.0]])
        
        comparison = analyzer.compare(portfolio, benchmark)
        
        assert comparison.excess_return == pytest.approx(0.0, abs=1e-12)
        assert comparison.beta == pytest.approx(1.0)
    
    def test_short_benchmark_raises_data_gap(self, analyzer):
        with pytest.raises(DataGapError) as exc_info:
            analyzer.compare(dated([100.0, 110.0]), dated([50.0]))
        
        assert exc_info.value.kind is ErrorKind.DATA_GAP
    
    def test_short_portfolio_raises_data_gap(self, analyzer):
        with pytest.raises(DataGapError):
            analyzer.compare(dated([100.0]), dated([50.0, 51.0]))
    
    def test_to_dict_has_all_fields(self, analyzer):
        comparison = analyzer.compare(dated([100.0, 110.0, 105.0]), dated([10.0, 10.5, 10.2]))
        
        data = comparison.to_dict()
        
        assert set(data) == set(BenchmarkComparison.__dataclass_fields__)


class TestComparisonSeries:
    """Test chart points."""
    
    def test_forward_fills_sparser_series(self, analyzer):
        portfolio = dated([100.0, 110.0, 120.0])
        benchmark = {D0: 50.0, D0 + timedelta(days=2): 60.0}
        
        points = analyzer.comparison_series(portfolio, benchmark)
        
        assert [p.date for p in points] == sorted(portfolio)
        assert points[1].benchmark_value == 50.0
        assert points[1].benchmark_return == 0.0
        assert points[1].portfolio_return == pytest.approx(0.10)
        assert points[2].benchmark_return == pytest.approx(0.20)
    
    def test_first_point_is_zero_return(self, analyzer):
        points = analyzer.comparison_series(dated([100.0, 90.0]), dated([20.0, 25.0]))
        
        assert points[0].portfolio_return == 0.0
        assert points[0].benchmark_return == 0.0
        assert points[-1].portfolio_return == pytest.approx(-0.10)
    
    def test_empty_benchmark(self, analyzer):
        assert analyzer.comparison_series(dated([100.0, 110.0]), {}) == []

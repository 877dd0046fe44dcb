"""
Unit tests for the true time-weighted rate of return.
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from domain.entities import Scope
from performance.cash_flows import CashFlowExtractor
from performance.currency_converter import CurrencyConverter
from performance.ttwror import (
    TTWRORCalculator, annualize, breakpoints, compute_ttwror, performance_index,
)
from performance.valuation import ValuationService


START = date(2023, 1, 1)
MID = date(2023, 7, 1)
END = date(2024, 1, 1)


def two_phase_values(deposit: float, first_leg: float = 0.10, second_leg: float = 0.05):
    """Value function: +10% until MID, deposit on MID, then +5% until END."""
    before = 1000.0 * (1 + first_leg)
    after = (before + deposit) * (1 + second_leg)
    values = {START: 1000.0, MID: before + deposit, END: after}
    return values.__getitem__


class TestComputeTTWROR:
    """Test chain-linking on synthetic value functions."""
    
    def test_no_flows_equals_simple_return(self):
        """Test a single period gives (end - start) / start."""
        values = {START: 1000.0, END: 1234.5}
        result = compute_ttwror(START, END, {}, values.__getitem__)
        
        assert len(result.periods) == 1
        assert result.total_return == pytest.approx(0.2345)
        assert result.days == 365
        assert result.annualized_return == pytest.approx(0.2345)
    
    @pytest.mark.parametrize("deposit", [1.0, 500.0, 25_000.0, 1_000_000.0])
    def test_invariant_to_deposit_size(self, deposit):
        """Test the size of an interim deposit does not change the result."""
        flows = {MID: Decimal(str(deposit))}
        result = compute_ttwror(START, END, flows, two_phase_values(deposit))
        
        assert result.total_return == pytest.approx(1.10 * 1.05 - 1)
        assert result.annualized_return == pytest.approx(1.10 * 1.05 - 1)
        assert [p.end_date for p in result.periods] == [MID, END]
    
    def test_withdrawal_is_not_a_loss(self):
        flows = {MID: Decimal("-500")}
        result = compute_ttwror(START, END, flows, two_phase_values(-500.0))
        assert result.total_return == pytest.approx(0.155)
    
    def test_after_flow_start_valuation(self):
        """Test a period opening on a deposit measures from the post-flow value."""
        flows = {MID: Decimal("500")}
        result = compute_ttwror(START, END, flows, two_phase_values(500.0))
        second = result.periods[1]
        
        assert second.start_value == pytest.approx(1600.0)
        assert second.cash_flow == pytest.approx(500.0)
        assert result.periods[0].end_value == pytest.approx(1100.0)
    
    def test_flow_on_end_date_is_removed(self):
        values = {START: 1000.0, END: 1600.0}
        result = compute_ttwror(START, END, {END: Decimal("500")}, values.__getitem__)
        assert result.total_return == pytest.approx(0.1)
    
    def test_zero_basis_period_is_neutral(self):
        """Test an empty opening period contributes a factor of one."""
        values = {START: 0.0, MID: 1000.0, END: 1100.0}
        result = compute_ttwror(START, END, {MID: Decimal("1000")}, values.__getitem__)
        
        assert result.periods[0].return_rate == 0.0
        assert result.total_return == pytest.approx(0.1)
    
    def test_zero_length_range(self):
        values = {START: 1000.0}
        result = compute_ttwror(START, START, {}, values.__getitem__)
        
        assert result.days == 0
        assert result.periods == []
        assert result.total_return == 0.0
        assert result.annualized_return == 0.0


class TestHelpers:
    """Test annualization and breakpoints."""
    
    def test_annualize(self):
        assert annualize(0.21, 730) == pytest.approx(0.1)
        assert annualize(0.5, 0) == 0.0
        assert annualize(-1.0, 100) == -1.0
    
    def test_breakpoints_exclude_flows_outside_range(self):
        flow_dates = [date(2022, 12, 31), START, MID, MID, END, date(2024, 2, 1)]
        assert breakpoints(START, END, flow_dates) == [START, MID, END]
    
    def test_performance_index_ignores_flows(self):
        values = {START: 1000.0, MID: 1600.0, END: 1680.0}
        index = performance_index([START, MID, END], {MID: Decimal("500")}, values.__getitem__)
        
        assert index[START] == 100.0
        assert index[MID] == pytest.approx(110.0)
        assert index[END] == pytest.approx(115.5)


class TestTTWRORCalculator:
    """Test TTWROR over a ledger snapshot."""
    
    def test_two_periods_split_at_deposit(self, e2e_provider, portfolio_scope):
        snapshot = e2e_provider.load_snapshot(portfolio_scope, START, END)
        converter = CurrencyConverter(snapshot.rates)
        calculator = TTWRORCalculator(
            ValuationService(snapshot, converter),
            CashFlowExtractor(snapshot, converter),
        )
        
        result = calculator.ttwror(portfolio_scope, START, END)
        
        assert [(p.start_date, p.end_date) for p in result.periods] == [(START, MID), (MID, END)]
        assert result.periods[0].return_rate == pytest.approx(0.2)
        assert result.periods[1].return_rate == pytest.approx(100 / 1700)
        assert result.total_return == pytest.approx(1.2 * 1800 / 1700 - 1)

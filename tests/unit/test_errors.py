"""
Unit tests for tagged errors and the per-calculation collector.
"""

import pytest
from datetime import date

from api.models import ErrorResponse, ErrorKindModel
from error_handling import (
    ErrorCollector, ErrorKind, DataGapError, NumericalNonConvergence,
    InvalidInputError, NoRateFoundError,
)


class TestErrorVariants:
    """Test the closed error set and its wire schema."""
    
    def test_every_kind_has_a_class(self):
        classes = [DataGapError, NumericalNonConvergence, InvalidInputError, NoRateFoundError]
        assert {cls.kind for cls in classes} == set(ErrorKind)
    
    def test_to_dict_schema(self):
        error = DataGapError.missing_price(7, date(2023, 3, 1))
        
        payload = error.to_dict()
        
        assert set(payload) == {"kind", "message", "metadata"}
        assert payload["kind"] == "data_gap"
        assert payload["metadata"] == {"security_id": 7, "date": "2023-03-01"}
    
    def test_no_rate_found_carries_pair(self):
        error = NoRateFoundError("USD", "JPY", date(2023, 5, 1))
        
        assert error.kind is ErrorKind.CURRENCY_RESOLUTION_FAILURE
        assert (error.base, error.target, error.date) == ("USD", "JPY", date(2023, 5, 1))
        assert "USD/JPY" in str(error)
    
    def test_invalid_input_is_not_recoverable(self):
        assert not InvalidInputError("bad range").recoverable
        assert NumericalNonConvergence("no root").recoverable
    
    def test_error_response_round_trip(self):
        error = NumericalNonConvergence("IRR did not converge", metadata={"iterations": 100})
        
        response = ErrorResponse.from_error(error)
        
        assert response.kind is ErrorKindModel.NUMERICAL_NON_CONVERGENCE
        assert response.model_dump(mode="json") == {
            "kind": "numerical_non_convergence",
            "message": "IRR did not converge",
            "metadata": {"iterations": 100},
        }


class TestErrorCollector:
    """Test capture, deduplication and statistics."""
    
    def test_capture_returns_context(self):
        collector = ErrorCollector("corr-1")
        
        context = collector.capture(DataGapError("gap"), component="valuation")
        
        assert context.component == "valuation"
        assert context.kind is ErrorKind.DATA_GAP
        assert collector.has_errors()
        assert collector.correlation_id == "corr-1"
    
    def test_identical_errors_are_folded(self):
        collector = ErrorCollector()
        
        collector.capture(DataGapError.missing_price(1, date(2023, 1, 1)))
        collector.capture(DataGapError.missing_price(1, date(2023, 1, 1)))
        collector.capture(DataGapError.missing_price(2, date(2023, 1, 1)))
        
        assert len(collector.errors) == 2
        assert collector.errors[0].occurrences == 2
        assert collector.to_list()[0]["metadata"]["occurrences"] == 2
        assert collector.statistics()["data_gap"] == 3
    
    def test_non_recoverable_error_is_reraised(self):
        collector = ErrorCollector()
        
        with pytest.raises(InvalidInputError):
            collector.capture(InvalidInputError("end before start"))
        
        assert not collector.has_errors()
    
    def test_by_kind(self):
        collector = ErrorCollector()
        collector.capture(DataGapError("gap"))
        collector.capture(NoRateFoundError("EUR", "CHF", date(2023, 1, 1)))
        
        failures = collector.by_kind(ErrorKind.CURRENCY_RESOLUTION_FAILURE)
        
        assert len(failures) == 1
        assert collector.statistics() == {
            "data_gap": 1,
            "numerical_non_convergence": 0,
            "invalid_input": 0,
            "currency_resolution_failure": 1,
        }
    
    def test_extra_metadata_merges_into_warning(self):
        collector = ErrorCollector()
        collector.capture(DataGapError("gap", metadata={"security_id": 3}), metadata={"holding": "X"})
        
        assert collector.to_list() == [{
            "kind": "data_gap",
            "message": "gap",
            "metadata": {"security_id": 3, "holding": "X"},
        }]

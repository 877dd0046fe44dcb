"""
Unit tests for structured logging.
"""

import json
import logging

import pytest

from utils.logging import (
    LogCategory, LogConfig, EnhancedJsonFormatter, configure_from_settings,
    get_enhanced_logger, performance_logging,
    set_correlation_id, get_correlation_id, clear_correlation_id,
)


@pytest.fixture
def file_logging(settings, tmp_path):
    """Route logs to files under a temporary directory for one test."""
    file_settings = settings.model_copy(update={
        'log_to_file': True,
        'log_dir': str(tmp_path),
        'log_level': "INFO",
        'log_format': "json",
    })
    configure_from_settings(file_settings)
    yield tmp_path
    configure_from_settings(settings)


class TestFileOutput:
    """Test category routing into log files."""
    
    def test_audit_events_reach_audit_log(self, file_logging):
        logger = get_enhanced_logger("tests.audit", LogCategory.CASH_FLOW)
        
        logger.log_strategy_choice("strict", "external capital records present", flow_count=2)
        
        lines = (file_logging / "audit.log").read_text().splitlines()
        entry = json.loads(lines[-1])
        assert entry["category"] == "audit"
        assert entry["analytics"]["strategy"] == "strict"
        assert entry["analytics"]["flow_count"] == 2
    
    def test_data_gaps_skip_audit_log(self, file_logging):
        logger = get_enhanced_logger("tests.gaps", LogCategory.VALUATION)
        
        logger.log_data_gap("No price for security 4", security_id=4)
        
        assert (file_logging / "audit.log").read_text() == ""
        assert "No price for security 4" in (file_logging / "perfolio.log").read_text()
    
    def test_no_files_unless_enabled(self, settings, tmp_path):
        configure_from_settings(settings.model_copy(update={'log_dir': str(tmp_path / "off")}))
        
        get_enhanced_logger("tests.off").warning("console only")
        
        assert not (tmp_path / "off").exists()


class TestJsonFormatter:
    
    def test_correlation_id_and_context(self):
        formatter = EnhancedJsonFormatter(LogConfig())
        record = logging.LogRecord("tests", logging.INFO, "", 0, "calculated", (), None)
        record.category = "performance"
        record.analytics_context = {'ttwror': 0.1}
        
        set_correlation_id("abc-123")
        try:
            entry = json.loads(formatter.format(record))
        finally:
            clear_correlation_id()
        
        assert entry["correlation_id"] == "abc-123"
        assert entry["category"] == "performance"
        assert entry["analytics"] == {'ttwror': 0.1}
        assert get_correlation_id() is None


class TestPerformanceDecorator:
    """Test the timing decorator."""
    
    def test_returns_result(self):
        @performance_logging(include_args=True)
        def add(a, b):
            return a + b
        
        assert add(2, 3) == 5
        assert add.__name__ == "add"
    
    def test_reraises(self):
        @performance_logging()
        def fail():
            raise ValueError("boom")
        
        with pytest.raises(ValueError, match="boom"):
            fail()

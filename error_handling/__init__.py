"""
Error handling for the performance analytics engine.

- Closed, tagged error variants with a stable wire schema
- Per-calculation collection of recoverable errors
"""

from .errors import (
    ErrorKind, ErrorSeverity, AnalyticsError,
    DataGapError, NumericalNonConvergence, InvalidInputError, NoRateFoundError,
)
from .error_manager import ErrorCollector, ErrorContext

__all__ = [
    "ErrorKind", "ErrorSeverity", "AnalyticsError",
    "DataGapError", "NumericalNonConvergence", "InvalidInputError", "NoRateFoundError",
    "ErrorCollector", "ErrorContext",
]

"""
Tagged error variants for the analytics engine.

Every error carries a closed ``kind`` plus a message and metadata, and
serializes to the same ``{kind, message, metadata}`` schema at the API
boundary. Callers branch on ``kind``, never on message text.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(Enum):
    """Closed set of error kinds."""
    DATA_GAP = "data_gap"
    NUMERICAL_NON_CONVERGENCE = "numerical_non_convergence"
    INVALID_INPUT = "invalid_input"
    CURRENCY_RESOLUTION_FAILURE = "currency_resolution_failure"


class ErrorSeverity(Enum):
    """Error severity levels."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


def _jsonable(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


class AnalyticsError(Exception):
    """Base exception for analytics engine errors."""
    
    kind: ErrorKind = ErrorKind.INVALID_INPUT
    
    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        recoverable: bool = True,
        metadata: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.severity = severity
        self.recoverable = recoverable
        self.metadata = {k: _jsonable(v) for k, v in (metadata or {}).items()}
        self.timestamp = datetime.now()
    
    def to_dict(self) -> Dict[str, Any]:
        """Stable wire schema."""
        return {
            'kind': self.kind.value,
            'message': self.message,
            'metadata': dict(self.metadata),
        }
    
    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class DataGapError(AnalyticsError):
    """No price (or other market fact) on or before a required date."""
    
    kind = ErrorKind.DATA_GAP
    
    def __init__(self, message: str, metadata: Optional[Dict[str, Any]] = None):
        super().__init__(message, severity=ErrorSeverity.LOW, recoverable=True, metadata=metadata)
    
    @classmethod
    def missing_price(cls, security_id: int, on: date) -> 'DataGapError':
        return cls(
            f"No price for security {security_id} on or before {on.isoformat()}",
            metadata={'security_id': security_id, 'date': on},
        )


class NumericalNonConvergence(AnalyticsError):
    """Iterative solver did not converge; reported, never raised by the solver."""
    
    kind = ErrorKind.NUMERICAL_NON_CONVERGENCE
    
    def __init__(self, message: str, metadata: Optional[Dict[str, Any]] = None):
        super().__init__(message, severity=ErrorSeverity.LOW, recoverable=True, metadata=metadata)


class InvalidInputError(AnalyticsError):
    """Structurally invalid request, rejected before any numerical work."""
    
    kind = ErrorKind.INVALID_INPUT
    
    def __init__(self, message: str, metadata: Optional[Dict[str, Any]] = None):
        super().__init__(message, severity=ErrorSeverity.HIGH, recoverable=False, metadata=metadata)


class NoRateFoundError(AnalyticsError):
    """No exchange-rate path resolves for a currency pair on a date."""
    
    kind = ErrorKind.CURRENCY_RESOLUTION_FAILURE
    
    def __init__(self, base: str, target: str, on: date):
        super().__init__(
            f"No exchange rate found for {base}/{target} on or before {on.isoformat()}",
            severity=ErrorSeverity.HIGH,
            recoverable=True,
            metadata={'base': base, 'target': target, 'date': on},
        )
        self.base = base
        self.target = target
        self.date = on


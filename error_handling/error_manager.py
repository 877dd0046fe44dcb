"""
Per-calculation error capture.

Recoverable errors (data gaps, FX failures, solver non-convergence) do not
abort a report. They are captured here, logged with context and handed back
to the caller as tagged warnings.
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from datetime import datetime
import threading
import uuid

from .errors import AnalyticsError, ErrorKind, ErrorSeverity
from utils.logging import get_enhanced_logger, LogCategory

logger = get_enhanced_logger(__name__, LogCategory.ERROR)


@dataclass
class ErrorContext:
    """Context information for a captured error."""
    error_id: str
    timestamp: datetime
    error: AnalyticsError
    component: Optional[str] = None
    occurrences: int = 1
    metadata: Dict[str, Any] = field(default_factory=dict)
    
    @property
    def kind(self) -> ErrorKind:
        return self.error.kind
    
    def to_dict(self) -> Dict[str, Any]:
        payload = self.error.to_dict()
        if self.metadata:
            payload['metadata'] = {**payload['metadata'], **self.metadata}
        if self.occurrences > 1:
            payload['metadata']['occurrences'] = self.occurrences
        return payload


class ErrorCollector:
    """Collects recoverable errors raised while one report is computed."""
    
    def __init__(self, correlation_id: Optional[str] = None):
        self.correlation_id = correlation_id or str(uuid.uuid4())
        self._errors: List[ErrorContext] = []
        self._index: Dict[str, ErrorContext] = {}
        self._lock = threading.Lock()
    
    def capture(
        self,
        error: AnalyticsError,
        component: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> ErrorContext:
        """Record an error; identical errors are folded into one entry."""
        if not error.recoverable:
            raise error
        
        with self._lock:
            key = f"{error.kind.value}:{error.message}"
            existing = self._index.get(key)
            if existing is not None:
                existing.occurrences += 1
                return existing
            
            context = ErrorContext(
                error_id=str(uuid.uuid4()),
                timestamp=datetime.now(),
                error=error,
                component=component,
                metadata=metadata or {},
            )
            self._errors.append(context)
            self._index[key] = context
        
        level = logger.warning if error.severity in (ErrorSeverity.HIGH, ErrorSeverity.MEDIUM) else logger.info
        level(
            f"Recovered from {error.kind.value}: {error.message}",
            error_context={
                'correlation_id': self.correlation_id,
                'component': component,
                **error.to_dict(),
            },
        )
        return context
    
    @property
    def errors(self) -> List[ErrorContext]:
        with self._lock:
            return list(self._errors)
    
    def by_kind(self, kind: ErrorKind) -> List[ErrorContext]:
        return [ctx for ctx in self.errors if ctx.kind == kind]
    
    def has_errors(self) -> bool:
        return bool(self.errors)
    
    def to_list(self) -> List[Dict[str, Any]]:
        """Tagged warnings in capture order."""
        return [ctx.to_dict() for ctx in self.errors]
    
    def statistics(self) -> Dict[str, int]:
        stats = {kind.value: 0 for kind in ErrorKind}
        for ctx in self.errors:
            stats[ctx.kind.value] += ctx.occurrences
        return stats

"""
Enhanced logging utilities for the perfolio analytics engine.
Provides structured logging with performance monitoring, analytics-specific
categories and JSON or text formatting.
"""

import logging
import logging.config
import logging.handlers
import os
import sys
import json
import time
import threading
from datetime import date, datetime
from typing import Optional, Dict, Any, List
from pathlib import Path
from dataclasses import dataclass, field
from enum import Enum
import functools
import psutil


class LogLevel(Enum):
    """Log levels used by the analytics engine."""
    TRACE = 5        # Detailed execution traces
    DEBUG = 10       # Debug information
    PERFORMANCE = 15 # Timing and resource metrics
    INFO = 20        # General information
    AUDIT = 25       # Calculation audit trail
    WARNING = 30     # Warning messages
    ERROR = 40       # Error conditions
    CRITICAL = 50    # Critical failures


class LogCategory(Enum):
    """Log categories for classification."""
    VALUATION = "valuation"
    CURRENCY = "currency"
    CASH_FLOW = "cash_flow"
    PERFORMANCE = "performance"
    RISK = "risk"
    BENCHMARK = "benchmark"
    AUDIT = "audit"
    ERROR = "error"
    DATA = "data"
    SYSTEM = "system"


@dataclass
class LogConfig:
    """Configuration for the logging system."""
    level: str = "INFO"
    format_type: str = "json"
    log_dir: Path = field(default_factory=lambda: Path("logs"))
    max_file_size: int = 50_000_000  # 50MB
    backup_count: int = 5
    file_output: bool = False
    enable_performance_logging: bool = True
    enable_audit_logging: bool = True
    console_output: bool = True
    structured_metadata: bool = True
    correlation_id_enabled: bool = True


@dataclass
class PerformanceMetrics:
    """Performance metrics for logging."""
    start_time: float
    end_time: float
    duration: float
    cpu_usage_start: float
    cpu_usage_end: float
    memory_usage_start: int
    memory_usage_end: int
    function_name: str
    args_hash: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'duration_ms': round(self.duration * 1000, 3),
            'cpu_usage_delta': round(self.cpu_usage_end - self.cpu_usage_start, 2),
            'memory_delta_mb': round((self.memory_usage_end - self.memory_usage_start) / 1024 / 1024, 2),
            'function': self.function_name,
            'args_hash': self.args_hash
        }


def _rotating_handler(config: LogConfig, filename: str, level: int,
                      formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        config.log_dir / filename,
        maxBytes=config.max_file_size,
        backupCount=config.backup_count
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    config: Optional[LogConfig] = None,
    level: str = "INFO",
    format_type: str = "json",
) -> None:
    """
    Setup logging for the application.

    Args:
        config: LogConfig object for advanced configuration
        level: Logging level, used when no config is given
        format_type: Format type ('json' or 'text')
    """
    if config is None:
        config = LogConfig(level=level, format_type=format_type)

    for log_level in LogLevel:
        logging.addLevelName(log_level.value, log_level.name)

    if config.format_type == "json":
        formatter = EnhancedJsonFormatter(config)
    else:
        formatter = EnhancedTextFormatter()

    handlers: List[logging.Handler] = []
    threshold = getattr(logging, config.level.upper(), logging.INFO)

    if config.console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(threshold)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    if config.file_output:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(_rotating_handler(config, "perfolio.log", threshold, formatter))

        if config.enable_performance_logging:
            perf_handler = _rotating_handler(
                config, "performance.log", LogLevel.PERFORMANCE.value, formatter
            )
            perf_handler.addFilter(CategoryFilter(LogCategory.PERFORMANCE))
            handlers.append(perf_handler)

        if config.enable_audit_logging:
            audit_handler = _rotating_handler(
                config, "audit.log", LogLevel.AUDIT.value, formatter
            )
            audit_handler.addFilter(CategoryFilter(LogCategory.AUDIT))
            handlers.append(audit_handler)

        handlers.append(_rotating_handler(config, "errors.log", logging.ERROR, formatter))

    logging.basicConfig(
        level=LogLevel.TRACE.value,  # Lowest level, handlers filter
        handlers=handlers,
        force=True
    )

    global _log_config
    _log_config = config


_log_config: Optional[LogConfig] = None
_correlation_context = threading.local()


class CategoryFilter(logging.Filter):
    """Filter logs by category."""

    def __init__(self, category: LogCategory):
        super().__init__()
        self.category = category.value

    def filter(self, record):
        return getattr(record, 'category', None) == self.category


class EnhancedJsonFormatter(logging.Formatter):
    """JSON formatter with structured metadata."""

    def __init__(self, config: LogConfig):
        super().__init__()
        self.config = config

    def format(self, record):
        log_entry = {
            'timestamp': datetime.utcnow().isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'thread_id': threading.get_ident(),
            'process_id': os.getpid()
        }

        if self.config.correlation_id_enabled:
            correlation_id = getattr(_correlation_context, 'correlation_id', None)
            if correlation_id:
                log_entry['correlation_id'] = correlation_id

        if self.config.structured_metadata:
            if hasattr(record, 'category'):
                log_entry['category'] = record.category

            if hasattr(record, 'performance_metrics'):
                log_entry['performance'] = record.performance_metrics

            if hasattr(record, 'analytics_context'):
                log_entry['analytics'] = record.analytics_context

            if hasattr(record, 'error_context'):
                log_entry['error'] = record.error_context

            if hasattr(record, 'extra_fields'):
                log_entry.update(record.extra_fields)

        if record.exc_info:
            log_entry['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': self.formatException(record.exc_info)
            }

        return json.dumps(log_entry, default=str)


class EnhancedTextFormatter(logging.Formatter):
    """Text formatter with category and correlation prefix."""

    def __init__(self):
        super().__init__(
            fmt='%(asctime)s [%(levelname)s] %(name)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    def format(self, record):
        formatted = super().format(record)

        if hasattr(record, 'category'):
            formatted = f"[{record.category}] {formatted}"

        correlation_id = getattr(_correlation_context, 'correlation_id', None)
        if correlation_id:
            formatted = f"[{correlation_id[:8]}] {formatted}"

        return formatted


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger
    """
    return logging.getLogger(name)


def get_enhanced_logger(name: str, category: Optional[LogCategory] = None) -> 'EnhancedLogger':
    """
    Get an enhanced logger instance with additional functionality.

    Args:
        name: Logger name (typically __name__)
        category: Default log category

    Returns:
        Enhanced logger instance
    """
    return EnhancedLogger(name, category)


def set_correlation_id(correlation_id: str) -> None:
    """Set correlation ID for current thread."""
    _correlation_context.correlation_id = correlation_id


def get_correlation_id() -> Optional[str]:
    return getattr(_correlation_context, 'correlation_id', None)


def clear_correlation_id() -> None:
    """Clear correlation ID for current thread."""
    if hasattr(_correlation_context, 'correlation_id'):
        delattr(_correlation_context, 'correlation_id')


def performance_logging(include_args: bool = False):
    """
    Decorator for automatic performance logging.

    Args:
        include_args: Whether to include a hash of the function arguments
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_enhanced_logger(func.__module__, LogCategory.PERFORMANCE)

            start_time = time.time()
            process = psutil.Process()
            cpu_start = process.cpu_percent()
            memory_start = process.memory_info().rss

            args_hash = None
            if include_args:
                try:
                    args_hash = str(hash(str(args) + str(kwargs)))[:8]
                except TypeError:
                    args_hash = "unhashable"

            def metrics() -> Dict[str, Any]:
                end_time = time.time()
                return PerformanceMetrics(
                    start_time=start_time,
                    end_time=end_time,
                    duration=end_time - start_time,
                    cpu_usage_start=cpu_start,
                    cpu_usage_end=process.cpu_percent(),
                    memory_usage_start=memory_start,
                    memory_usage_end=process.memory_info().rss,
                    function_name=func.__name__,
                    args_hash=args_hash
                ).to_dict()

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    f"Function {func.__name__} failed",
                    performance_metrics=metrics(),
                    exception=str(e)
                )
                raise

            logger.performance(
                f"Function {func.__name__} completed",
                performance_metrics=metrics()
            )
            return result

        return wrapper
    return decorator


class EnhancedLogger:
    """Logger with structured logging capabilities."""

    def __init__(self, name: str, default_category: Optional[LogCategory] = None):
        self.logger = logging.getLogger(name)
        self.default_category = default_category

    def _log(
        self,
        level: int,
        message: str,
        category: Optional[LogCategory] = None,
        performance_metrics: Optional[Dict[str, Any]] = None,
        analytics_context: Optional[Dict[str, Any]] = None,
        error_context: Optional[Dict[str, Any]] = None,
        **extra_fields
    ):
        """Internal logging method with structured data."""
        if not self.logger.isEnabledFor(level):
            return

        record = self.logger.makeRecord(
            name=self.logger.name,
            level=level,
            fn="",
            lno=0,
            msg=message,
            args=(),
            exc_info=None
        )

        if category or self.default_category:
            record.category = (category or self.default_category).value

        if performance_metrics:
            record.performance_metrics = performance_metrics

        if analytics_context:
            record.analytics_context = analytics_context

        if error_context:
            record.error_context = error_context

        if extra_fields:
            record.extra_fields = extra_fields

        self.logger.handle(record)

    def trace(self, message: str, **kwargs):
        """Log trace level message."""
        self._log(LogLevel.TRACE.value, message, **kwargs)

    def debug(self, message: str, **kwargs):
        """Log debug level message."""
        self._log(LogLevel.DEBUG.value, message, **kwargs)

    def info(self, message: str, **kwargs):
        """Log info level message."""
        self._log(LogLevel.INFO.value, message, **kwargs)

    def audit(self, message: str, **kwargs):
        """Log audit level message."""
        self._log(LogLevel.AUDIT.value, message, category=LogCategory.AUDIT, **kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning level message."""
        self._log(LogLevel.WARNING.value, message, **kwargs)

    def error(self, message: str, **kwargs):
        """Log error level message."""
        self._log(LogLevel.ERROR.value, message, category=LogCategory.ERROR, **kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical level message."""
        self._log(LogLevel.CRITICAL.value, message, category=LogCategory.ERROR, **kwargs)

    def performance(self, message: str, **kwargs):
        """Log performance metrics."""
        self._log(LogLevel.PERFORMANCE.value, message, category=LogCategory.PERFORMANCE, **kwargs)

    def log_calculation(
        self,
        scope: str,
        start_date: date,
        end_date: date,
        ttwror: float,
        irr: float,
        irr_converged: bool,
        **metadata
    ):
        """Audit a completed performance calculation."""
        analytics_context = {
            'scope': scope,
            'start_date': start_date.isoformat(),
            'end_date': end_date.isoformat(),
            'ttwror': ttwror,
            'irr': irr,
            'irr_converged': irr_converged,
            **metadata
        }

        self.audit(
            f"Performance for {scope} {start_date}..{end_date}: "
            f"TTWROR {ttwror:.4%}, IRR {irr:.4%}",
            analytics_context=analytics_context
        )

    def log_strategy_choice(self, strategy: str, reason: str, **metadata):
        """Log which cash-flow strategy a calculation used."""
        self.audit(
            f"Cash flow strategy: {strategy} ({reason})",
            analytics_context={'strategy': strategy, 'reason': reason, **metadata}
        )

    def log_data_gap(self, description: str, on: Optional[date] = None, **metadata):
        """Log a missing price or rate that was skipped."""
        analytics_context = {
            'description': description,
            'date': on.isoformat() if on else None,
            **metadata
        }

        self.warning(
            f"Data gap: {description}",
            category=LogCategory.DATA,
            analytics_context=analytics_context
        )


def configure_from_settings(settings) -> None:
    """Apply logging options from a Settings object."""
    setup_logging(LogConfig(
        level=settings.log_level,
        format_type=settings.log_format,
        log_dir=Path(settings.log_dir),
        file_output=settings.log_to_file,
        console_output=settings.console_output,
    ))


# Initialize logging on module import
try:
    config = LogConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format_type=os.getenv("LOG_FORMAT", "json"),
        log_dir=Path(os.getenv("LOG_DIR", "logs")),
        file_output=os.getenv("LOG_TO_FILE", "false").lower() == "true",
        enable_performance_logging=os.getenv("ENABLE_PERF_LOGGING", "true").lower() == "true",
        enable_audit_logging=os.getenv("ENABLE_AUDIT_LOGGING", "true").lower() == "true",
    )
    setup_logging(config)
except OSError as e:
    # Fallback to basic logging if the log directory is unusable
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logging.getLogger(__name__).warning(f"Enhanced logging setup failed, using basic logging: {e}")

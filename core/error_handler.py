"""
Centralized Error Handler
Error types, categorization, retry with backoff and a per-operation circuit breaker.

Only the data acquisition layer retries. The indicator core never retries and
never swallows errors: malformed input raises MalformedInputError straight away.
"""
import logging
import threading
import time
import traceback
from typing import Callable, Any, Optional, Dict, Tuple
from functools import wraps
from enum import Enum
from datetime import datetime, timedelta

import config

logger = logging.getLogger(__name__)


class DataFetchError(Exception):
    """A data source could not be read; the whole refresh cycle fails"""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class MalformedInputError(ValueError):
    """Input that breaks the calculators' contract (e.g. an empty close series)"""


class ErrorCategory(Enum):
    """Categories of errors for handling"""
    API_ERROR = "api_error"           # Bad HTTP status / unexpected payload
    NETWORK_ERROR = "network_error"   # Connection/timeout errors
    DATA_ERROR = "data_error"         # Invalid/missing data
    LOGIC_ERROR = "logic_error"       # Bugs
    RATE_LIMIT = "rate_limit"         # HTTP 429
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels"""
    LOW = "low"           # Log and continue
    MEDIUM = "medium"     # Retry with backoff
    HIGH = "high"         # Give up on this cycle
    CRITICAL = "critical" # Do not retry


class ErrorRecord:
    """Record of an error occurrence"""

    def __init__(
        self,
        error: Exception,
        category: ErrorCategory,
        severity: ErrorSeverity,
        context: Dict = None
    ):
        self.error = error
        self.error_type = type(error).__name__
        self.message = str(error)
        self.category = category
        self.severity = severity
        self.context = context or {}
        self.timestamp = datetime.now()
        self.traceback = traceback.format_exc()

    def to_dict(self) -> Dict:
        return {
            'error_type': self.error_type,
            'message': self.message,
            'category': self.category.value,
            'severity': self.severity.value,
            'context': self.context,
            'timestamp': self.timestamp.isoformat(),
        }


class ErrorHandler:
    """
    Centralized error handler with retry delays and circuit breaking.
    History is kept in memory only.
    """

    MAX_ERROR_HISTORY = 100
    CIRCUIT_FAILURE_THRESHOLD = 5
    CIRCUIT_OPEN_MINUTES = 5

    # Error patterns for categorization
    NETWORK_ERRORS = ['ConnectionError', 'Timeout', 'TimeoutError', 'ReadTimeout', 'ConnectTimeout']
    RATE_LIMIT_ERRORS = ['429', 'Too Many Requests', 'Too many requests']
    API_ERRORS = ['HTTPError', 'DataFetchError', 'JSONDecodeError']

    def __init__(self):
        self.error_history = []
        self.error_counts = {}  # {category: count}
        self.circuit_breaker = {}  # {operation: {failures, last_failure, is_open, open_until}}
        self._lock = threading.RLock()

    def categorize_error(self, error: Exception) -> Tuple[ErrorCategory, ErrorSeverity]:
        """Categorize an error and determine severity"""
        error_str = str(error)
        error_type = type(error).__name__

        # Rate limits first: they arrive as HTTP errors too
        if getattr(error, 'status', None) == 429 or any(e in error_str for e in self.RATE_LIMIT_ERRORS):
            return ErrorCategory.RATE_LIMIT, ErrorSeverity.MEDIUM

        if any(e in error_type for e in self.NETWORK_ERRORS):
            return ErrorCategory.NETWORK_ERROR, ErrorSeverity.MEDIUM

        # Caller bugs - retrying cannot help
        if isinstance(error, MalformedInputError):
            return ErrorCategory.DATA_ERROR, ErrorSeverity.CRITICAL

        if any(e in error_type for e in self.API_ERRORS):
            return ErrorCategory.API_ERROR, ErrorSeverity.MEDIUM

        if any(e in error_type for e in ['KeyError', 'ValueError', 'IndexError', 'TypeError']):
            return ErrorCategory.DATA_ERROR, ErrorSeverity.LOW

        if any(e in error_type for e in ['AssertionError', 'RuntimeError']):
            return ErrorCategory.LOGIC_ERROR, ErrorSeverity.HIGH

        return ErrorCategory.UNKNOWN, ErrorSeverity.LOW

    def handle_error(
        self,
        error: Exception,
        context: Dict = None,
        operation: str = "unknown"
    ) -> ErrorRecord:
        """
        Handle an error: categorize, log, and track it.

        Args:
            error: The exception
            context: Additional context information
            operation: Name of the operation that failed

        Returns:
            ErrorRecord with handling information
        """
        category, severity = self.categorize_error(error)

        record = ErrorRecord(
            error=error,
            category=category,
            severity=severity,
            context={**(context or {}), 'operation': operation}
        )

        # Log based on severity
        if severity == ErrorSeverity.CRITICAL:
            logger.critical("[%s] %s: %s", category.value, operation, record.message)
        elif severity == ErrorSeverity.HIGH:
            logger.error("[%s] %s: %s", category.value, operation, record.message)
        elif severity == ErrorSeverity.MEDIUM:
            logger.warning("[%s] %s: %s", category.value, operation, record.message)
        else:
            logger.debug("[%s] %s: %s", category.value, operation, record.message)

        with self._lock:
            self.error_history.append(record.to_dict())
            self.error_history = self.error_history[-self.MAX_ERROR_HISTORY:]
            self.error_counts[category.value] = self.error_counts.get(category.value, 0) + 1
            self._update_circuit_breaker(operation, failed=True)

        return record

    def _update_circuit_breaker(self, operation: str, failed: bool = True):
        """Update circuit breaker state for an operation"""
        with self._lock:
            cb = self.circuit_breaker.setdefault(operation, {
                'failures': 0,
                'last_failure': None,
                'is_open': False,
                'open_until': None
            })

            if failed:
                cb['failures'] += 1
                cb['last_failure'] = datetime.now()

                if cb['failures'] >= self.CIRCUIT_FAILURE_THRESHOLD:
                    cb['is_open'] = True
                    cb['open_until'] = datetime.now() + timedelta(minutes=self.CIRCUIT_OPEN_MINUTES)
                    logger.warning("Circuit breaker opened for %s", operation)
            else:
                cb['failures'] = 0
                cb['is_open'] = False
                cb['open_until'] = None

    def is_circuit_open(self, operation: str) -> bool:
        """Check if circuit breaker is open for an operation"""
        with self._lock:
            cb = self.circuit_breaker.get(operation)
            if cb is None or not cb['is_open']:
                return False

            if cb['open_until'] and datetime.now() > cb['open_until']:
                # Circuit has timed out, allow retry
                cb['is_open'] = False
                cb['failures'] = 0
                return False
            return True

    def get_retry_delay(
        self,
        category: ErrorCategory,
        attempt: int = 1,
        base_delay: float = None
    ) -> float:
        """Exponential backoff; rate limits wait longer"""
        base = config.FETCH_RETRY_BASE_DELAY if base_delay is None else base_delay
        if category == ErrorCategory.RATE_LIMIT:
            base *= 10
        return min(base * (2 ** (attempt - 1)), 60)

    def record_failure(self, operation: str):
        """Record a failure for circuit breaker (convenience method)"""
        self._update_circuit_breaker(operation, failed=True)

    def record_success(self, operation: str):
        """Record a success for circuit breaker (convenience method)"""
        self._update_circuit_breaker(operation, failed=False)

    def get_recent_errors(self, limit: int = 10) -> list:
        """Get recent errors from history"""
        with self._lock:
            return self.error_history[-limit:]

    def reset_circuit_breakers(self):
        """Reset all circuit breakers"""
        with self._lock:
            self.circuit_breaker = {}


# Singleton instance
_error_handler: Optional[ErrorHandler] = None
_error_handler_lock = threading.Lock()


def get_error_handler() -> ErrorHandler:
    """Get or create singleton error handler"""
    global _error_handler
    with _error_handler_lock:
        if _error_handler is None:
            _error_handler = ErrorHandler()
    return _error_handler


def with_retry(
    max_retries: int = None,
    operation_name: str = "operation",
    base_delay: float = None
) -> Callable:
    """
    Decorator for automatic retry with error handling.

    When every attempt fails (or the circuit is open) a DataFetchError is
    raised, so one failing source fails the whole cycle.

    Usage:
        @with_retry(max_retries=3, operation_name="fetch_price")
        def fetch_price():
            ...
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            handler = get_error_handler()
            retries = config.FETCH_MAX_RETRIES if max_retries is None else max_retries

            if handler.is_circuit_open(operation_name):
                raise DataFetchError(f"{operation_name} temporarily disabled after repeated failures")

            last_error = None
            for attempt in range(1, retries + 1):
                try:
                    result = func(*args, **kwargs)
                    handler.record_success(operation_name)
                    return result

                except Exception as e:
                    last_error = e
                    record = handler.handle_error(
                        error=e,
                        context={'attempt': attempt, 'max_retries': retries},
                        operation=operation_name
                    )

                    if record.severity == ErrorSeverity.CRITICAL:
                        raise

                    if attempt < retries:
                        delay = handler.get_retry_delay(record.category, attempt, base_delay)
                        logger.info("Retrying %s in %.1fs (attempt %d/%d)", operation_name, delay, attempt, retries)
                        time.sleep(delay)

            logger.error("All %d retries exhausted for %s", retries, operation_name)
            if isinstance(last_error, DataFetchError):
                raise last_error
            raise DataFetchError(f"{operation_name} failed: {last_error}") from last_error

        return wrapper
    return decorator

"""
Core components: error handling, caching and the signal refresh cycle.

SignalMonitor is imported from core.signal_monitor directly.
"""
from .error_handler import (
    DataFetchError, MalformedInputError,
    ErrorHandler, ErrorCategory, ErrorSeverity, get_error_handler, with_retry,
)
from .cache import SnapshotCache

__all__ = [
    # Errors
    'DataFetchError', 'MalformedInputError',
    # Error Handling
    'ErrorHandler', 'ErrorCategory', 'ErrorSeverity', 'get_error_handler', 'with_retry',
    # Caching
    'SnapshotCache',
]

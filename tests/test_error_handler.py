"""
Unit tests for Error Handler module.
Tests error categorization, retry logic, and circuit breaker.
"""
import unittest
import sys
import os
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

# Ensure project root on path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.error_handler import (
    ErrorHandler, ErrorCategory, ErrorSeverity, DataFetchError, MalformedInputError,
    get_error_handler, with_retry,
)


class TestErrorCategorization(unittest.TestCase):
    """Test error categorization"""

    def setUp(self):
        self.handler = ErrorHandler()

    def test_network_error_detection(self):
        """Test network errors are categorized correctly"""
        category, severity = self.handler.categorize_error(ConnectionError("Network unreachable"))
        self.assertEqual(category, ErrorCategory.NETWORK_ERROR)
        self.assertEqual(severity, ErrorSeverity.MEDIUM)

    def test_timeout_error_detection(self):
        """Test timeout errors are categorized"""
        category, _ = self.handler.categorize_error(TimeoutError("Request timed out"))
        self.assertEqual(category, ErrorCategory.NETWORK_ERROR)

    def test_rate_limit_detection(self):
        """HTTP 429 is a rate limit"""
        category, _ = self.handler.categorize_error(DataFetchError("Failed to fetch OHLC data: 429", status=429))
        self.assertEqual(category, ErrorCategory.RATE_LIMIT)

    def test_fetch_error_is_api_error(self):
        """Other fetch failures are API errors"""
        category, _ = self.handler.categorize_error(DataFetchError("Invalid OHLC data format", status=None))
        self.assertEqual(category, ErrorCategory.API_ERROR)

    def test_malformed_input_is_critical(self):
        """Contract violations are never retried"""
        category, severity = self.handler.categorize_error(MalformedInputError("empty series"))
        self.assertEqual(category, ErrorCategory.DATA_ERROR)
        self.assertEqual(severity, ErrorSeverity.CRITICAL)

    def test_data_error_handling(self):
        """Test data errors are handled"""
        category, _ = self.handler.categorize_error(ValueError("Some random error"))
        self.assertEqual(category.value, "data_error")


class TestRetryLogic(unittest.TestCase):
    """Test retry decorator"""

    def setUp(self):
        get_error_handler().reset_circuit_breakers()
        patcher = patch("core.error_handler.time.sleep")
        self.sleep = patcher.start()
        self.addCleanup(patcher.stop)

    def test_retry_on_failure(self):
        """Test function is retried on failure"""
        call_count = [0]

        @with_retry(max_retries=3, operation_name="test_retry_on_failure")
        def failing_func():
            call_count[0] += 1
            if call_count[0] < 3:
                raise ConnectionError("Simulated failure")
            return "success"

        self.assertEqual(failing_func(), "success")
        self.assertEqual(call_count[0], 3)
        self.assertEqual(self.sleep.call_count, 2)

    def test_retry_exhausted(self):
        """Exhausted retries raise DataFetchError"""
        @with_retry(max_retries=2, operation_name="test_retry_exhausted")
        def always_fails():
            raise ConnectionError("Always fails")

        with self.assertRaises(DataFetchError):
            always_fails()

    def test_fetch_error_reraised_as_is(self):
        """A DataFetchError keeps its message and status"""
        @with_retry(max_retries=2, operation_name="test_fetch_error_reraised")
        def bad_status():
            raise DataFetchError("Failed to fetch Bitcoin price: 503", status=503)

        with self.assertRaises(DataFetchError) as ctx:
            bad_status()
        self.assertEqual(ctx.exception.status, 503)

    def test_critical_not_retried(self):
        """Malformed input propagates on the first attempt"""
        call_count = [0]

        @with_retry(max_retries=3, operation_name="test_critical_not_retried")
        def malformed():
            call_count[0] += 1
            raise MalformedInputError("bad")

        with self.assertRaises(MalformedInputError):
            malformed()
        self.assertEqual(call_count[0], 1)

    def test_backoff_grows(self):
        """Retry delay doubles per attempt and rate limits wait longer"""
        handler = ErrorHandler()
        first = handler.get_retry_delay(ErrorCategory.NETWORK_ERROR, 1, base_delay=1.0)
        second = handler.get_retry_delay(ErrorCategory.NETWORK_ERROR, 2, base_delay=1.0)
        limited = handler.get_retry_delay(ErrorCategory.RATE_LIMIT, 1, base_delay=1.0)
        self.assertEqual(second, first * 2)
        self.assertGreater(limited, first)


class TestCircuitBreaker(unittest.TestCase):
    """Test circuit breaker pattern"""

    def setUp(self):
        self.handler = ErrorHandler()
        self.handler.reset_circuit_breakers()

    def test_circuit_opens_after_failures(self):
        """Test circuit opens after threshold failures"""
        operation = "test_operation"

        for i in range(5):
            self.handler.record_failure(operation)

        self.assertTrue(self.handler.is_circuit_open(operation))

    def test_circuit_allows_initial_calls(self):
        """Test circuit allows calls initially"""
        self.assertFalse(self.handler.is_circuit_open("new_operation"))

    def test_circuit_resets_on_success(self):
        """Test circuit resets after success"""
        operation = "reset_test"

        for i in range(5):
            self.handler.record_failure(operation)

        self.handler.record_success(operation)

        self.assertFalse(self.handler.is_circuit_open(operation))

    def test_open_circuit_fails_fast(self):
        """A decorated call with an open circuit raises without calling through"""
        shared = get_error_handler()
        shared.reset_circuit_breakers()
        for i in range(5):
            shared.record_failure("open_circuit_op")

        calls = []

        @with_retry(max_retries=1, operation_name="open_circuit_op")
        def fetch():
            calls.append(1)

        with self.assertRaises(DataFetchError):
            fetch()
        self.assertEqual(calls, [])
        shared.reset_circuit_breakers()


class TestErrorLogging(unittest.TestCase):
    """Test error logging functionality"""

    def setUp(self):
        self.handler = ErrorHandler()

    def test_error_is_recorded(self):
        """Test errors are kept with context"""
        self.handler.handle_error(ValueError("Test error"), context={"source": "test"}, operation="unit")

        recent = self.handler.get_recent_errors(limit=1)
        self.assertEqual(len(recent), 1)
        self.assertEqual(recent[0]["message"], "Test error")
        self.assertEqual(recent[0]["context"]["operation"], "unit")

    def test_history_is_bounded(self):
        """History never grows past its limit"""
        for i in range(ErrorHandler.MAX_ERROR_HISTORY + 10):
            self.handler.handle_error(ValueError(str(i)))
        self.assertEqual(len(self.handler.error_history), ErrorHandler.MAX_ERROR_HISTORY)

    def test_concurrent_errors_all_counted(self):
        """Errors reported from several worker threads are all tracked"""
        def report(worker):
            for i in range(50):
                self.handler.handle_error(ConnectionError(f"{worker}-{i}"), operation="fetch_ohlc")

        with ThreadPoolExecutor(max_workers=3) as pool:
            list(pool.map(report, range(3)))

        self.assertEqual(self.handler.error_counts["network_error"], 150)
        self.assertEqual(self.handler.circuit_breaker["fetch_ohlc"]["failures"], 150)
        self.assertEqual(len(self.handler.error_history), ErrorHandler.MAX_ERROR_HISTORY)


if __name__ == '__main__':
    unittest.main(verbosity=2)

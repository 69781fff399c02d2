"""
Snapshot Cache
Holds the last raw market snapshot for a short window to spare the free-tier APIs.

Only raw inputs are cached. Indicators and scores are recomputed every cycle.
"""
import time
import logging
import threading
from typing import Any, Optional

logger = logging.getLogger(__name__)


class SnapshotCache:
    """Thread-safe single-entry cache stamped with the time it was stored"""

    def __init__(self, ttl: float = 300):
        """
        Args:
            ttl: Seconds a stored snapshot stays fresh (5 minutes)
        """
        self.ttl = ttl
        self._value: Optional[Any] = None
        self._stored_at: Optional[float] = None
        self._lock = threading.Lock()

    def get(self) -> Optional[Any]:
        """Cached snapshot, or None if empty or older than the TTL"""
        with self._lock:
            if self._stored_at is None:
                return None
            if time.time() - self._stored_at >= self.ttl:
                logger.debug("Cached snapshot expired")
                self._value = None
                self._stored_at = None
                return None
            return self._value

    def set(self, value: Any) -> None:
        with self._lock:
            self._value = value
            self._stored_at = time.time()

    def clear(self) -> None:
        with self._lock:
            self._value = None
            self._stored_at = None
        logger.debug("Snapshot cache cleared")

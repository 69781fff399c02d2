"""
Signal Monitor - the refresh cycle around the indicator core.

Owns the two manual toggles and a short-lived cache of raw market data:
- fetch_data(): use cached raw data if fresh, otherwise fetch; always recompute
- refresh_data(): drop the cache and open circuit breakers first (manual retry)

The toggles can be flipped at any time from any thread. Each cycle copies
them into an immutable ManualFlags when it starts computing and uses that
copy throughout.
"""
import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

import config
from analysis.models import ManualFlags, ComputationResult
from analysis.signal_builder import compute_signals
from core.cache import SnapshotCache
from core.error_handler import DataFetchError, get_error_handler

logger = logging.getLogger(__name__)

MANUAL_SETTINGS = ("sentiment_positive", "macro_positive")


@dataclass(frozen=True)
class MonitorState:
    """What the presentation layer sees after each cycle"""
    is_loading: bool = False
    error: Optional[str] = None
    result: Optional[ComputationResult] = None
    last_refresh: Optional[datetime] = None


class SignalMonitor:
    """Fetch -> compute cycle with cached raw inputs and manual toggles"""

    def __init__(self, fetcher=None, cache_ttl: int = None, flags: ManualFlags = None):
        """
        Args:
            fetcher: Object with fetch_snapshot() -> RawSnapshot
                (defaults to MarketDataFetcher)
            cache_ttl: Raw data cache window in seconds
            flags: Initial manual toggles (defaults from config)
        """
        if fetcher is None:
            from market.data_fetcher import MarketDataFetcher
            fetcher = MarketDataFetcher()
        self.fetcher = fetcher
        self.cache = SnapshotCache(ttl=cache_ttl or config.CACHE_DURATION_SECONDS)

        self._flags = flags or ManualFlags(
            sentiment_positive=config.SENTIMENT_POSITIVE,
            macro_positive=config.MACRO_POSITIVE,
        )
        self._flags_lock = threading.Lock()
        self.state = MonitorState()

    # =========================================================================
    # MANUAL FLAGS
    # =========================================================================

    @property
    def manual_flags(self) -> ManualFlags:
        """Current toggles (an immutable copy)"""
        return self._flags

    def set_manual_setting(self, key: str, value: bool):
        """Flip one toggle; last write wins"""
        if key not in MANUAL_SETTINGS:
            raise KeyError(f"Unknown manual setting: {key} (expected one of {MANUAL_SETTINGS})")
        with self._flags_lock:
            self._flags = replace(self._flags, **{key: bool(value)})
        logger.info("Manual setting %s = %s", key, bool(value))

    # =========================================================================
    # REFRESH CYCLE
    # =========================================================================

    def fetch_data(self) -> MonitorState:
        """
        Run one cycle.

        When a data source fails the state carries a single error message
        and keeps the previous good result; a partially computed score is
        never stored. Malformed data still raises.

        Returns:
            The new MonitorState
        """
        self.state = replace(self.state, is_loading=True, error=None)

        try:
            snapshot = self.cache.get()
            if snapshot is None:
                logger.debug("Snapshot cache miss, fetching")
                snapshot = self.fetcher.fetch_snapshot()
                self.cache.set(snapshot)
            else:
                logger.debug("Using cached snapshot")

            result = compute_signals(snapshot, self.manual_flags)

        except DataFetchError as e:
            logger.error("Signal cycle failed: %s", e)
            self.state = replace(self.state, is_loading=False, error=str(e) or "Failed to fetch data")
            return self.state
        except Exception:
            self.state = replace(self.state, is_loading=False)
            raise

        signal = result.buy_signal
        logger.info("Decision: %s | score %d/%d | confidence %s (%d%%)",
                    "BUY" if signal.should_buy else "WAIT", signal.score, signal.max_score,
                    signal.confidence.value, signal.confidence_percentage)

        self.state = MonitorState(
            is_loading=False,
            error=None,
            result=result,
            last_refresh=datetime.now(),
        )
        return self.state

    def refresh_data(self) -> MonitorState:
        """
        Manual retry: drop cached market data, close any open circuit
        breakers and run a fresh cycle, so the sources are always asked again.
        """
        self.cache.clear()
        get_error_handler().reset_circuit_breakers()
        return self.fetch_data()

"""
Market Data Fetcher
Reads Bitcoin price, daily volumes and OHLC closes from CoinGecko, plus the
Fear & Greed Index, and bundles them into one RawSnapshot.

The three reads run in parallel. The snapshot is all-or-nothing: if any
source fails the whole fetch raises DataFetchError and no partial data is
returned.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Tuple

import requests

import config
from analysis.models import PriceQuote, RawSnapshot
from core.error_handler import DataFetchError, with_retry
from market.sentiment import SentimentAnalyzer

logger = logging.getLogger(__name__)


class MarketDataFetcher:
    """Wrapper for the public CoinGecko endpoints used by the signal engine"""

    def __init__(
        self,
        base_url: str = None,
        timeout: float = None,
        ohlc_days: int = None,
        sentiment: SentimentAnalyzer = None,
    ):
        self.base_url = (base_url or config.COINGECKO_BASE_URL).rstrip("/")
        self.timeout = timeout or config.REQUEST_TIMEOUT
        self.ohlc_days = ohlc_days or config.OHLC_DAYS
        self.sentiment = sentiment or SentimentAnalyzer(timeout=self.timeout)

    def _get(self, path: str, params: dict) -> requests.Response:
        url = f"{self.base_url}/{path}"
        logger.debug("GET %s %s", url, params)
        return requests.get(url, params=params, timeout=self.timeout)

    @with_retry(operation_name="fetch_bitcoin_price")
    def fetch_bitcoin_price(self) -> Tuple[PriceQuote, List[float]]:
        """
        Get the current price quote and the daily volume history.

        A failed volume request is not fatal: volumes come back empty and the
        volume-spike indicator falls back to "no spike".

        Returns:
            (PriceQuote, volumes oldest first)
        """
        response = self._get("simple/price", {
            "ids": "bitcoin",
            "vs_currencies": "usd",
            "include_24hr_vol": "true",
            "include_24hr_change": "true",
        })
        if not response.ok:
            raise DataFetchError(
                f"Failed to fetch Bitcoin price: {response.status_code}",
                status=response.status_code,
            )

        data = response.json()
        bitcoin = data.get("bitcoin") if isinstance(data, dict) else None
        if not bitcoin:
            raise DataFetchError("Invalid response format from CoinGecko")

        quote = PriceQuote(
            usd=float(bitcoin["usd"]),
            usd_24h_vol=float(bitcoin["usd_24h_vol"]),
            usd_24h_change=(
                float(bitcoin["usd_24h_change"])
                if bitcoin.get("usd_24h_change") is not None else None
            ),
        )

        volumes: List[float] = []
        volumes_response = self._get("coins/bitcoin/market_chart", {
            "vs_currency": "usd",
            "days": self.ohlc_days,
            "interval": "daily",
        })
        if volumes_response.ok:
            chart = volumes_response.json()
            volumes = [float(point[1]) for point in chart.get("total_volumes") or []]
        else:
            logger.warning("Volume history unavailable (%s), continuing without it",
                           volumes_response.status_code)

        return quote, volumes

    @with_retry(operation_name="fetch_ohlc")
    def fetch_ohlc_closes(self, days: int = None) -> List[float]:
        """
        Get close prices from daily OHLC candles [timestamp, open, high, low, close].

        Returns:
            Close prices, oldest first
        """
        response = self._get("coins/bitcoin/ohlc", {
            "vs_currency": "usd",
            "days": days or self.ohlc_days,
        })
        if not response.ok:
            raise DataFetchError(
                f"Failed to fetch OHLC data: {response.status_code}",
                status=response.status_code,
            )

        candles = response.json()
        if not isinstance(candles, list):
            raise DataFetchError("Invalid OHLC data format from CoinGecko")
        if not candles:
            raise DataFetchError("CoinGecko returned no OHLC candles")

        # Oldest first
        candles = sorted(candles, key=lambda candle: candle[0])
        return [float(candle[4]) for candle in candles]

    def fetch_snapshot(self) -> RawSnapshot:
        """
        Fetch price, OHLC and sentiment concurrently and wait for all three.

        Raises:
            DataFetchError: if any of the three sources fails
        """
        with ThreadPoolExecutor(max_workers=3, thread_name_prefix="fetch") as pool:
            price_future = pool.submit(self.fetch_bitcoin_price)
            ohlc_future = pool.submit(self.fetch_ohlc_closes)
            fear_greed_future = pool.submit(self.sentiment.get_fear_greed_index)

            try:
                quote, volumes = price_future.result()
                closes = ohlc_future.result()
                fear_greed = fear_greed_future.result()
            except DataFetchError:
                raise
            except Exception as e:
                raise DataFetchError(f"Failed to fetch Bitcoin data: {e}") from e

        logger.info("Fetched snapshot: price $%.2f, %d closes, %d volumes, F&G %d",
                    quote.usd, len(closes), len(volumes), fear_greed.value)

        return RawSnapshot(
            price=quote,
            volumes=tuple(volumes),
            closes=tuple(closes),
            fear_greed=fear_greed,
        )

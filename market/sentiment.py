"""
Sentiment Module

Fetches the Fear & Greed Index (Alternative.me API).

Sentiment is a contrarian indicator:
- Fear (value below 40) = potential buy opportunity
- Greed = no extra points

Unlike a dashboard widget this fetcher has no neutral fallback: if the index
cannot be read the refresh cycle fails as a whole.
"""
import logging

import requests

import config
from analysis.models import FearGreedReading
from core.error_handler import DataFetchError, with_retry

logger = logging.getLogger(__name__)


class SentimentAnalyzer:
    """
    Reads market sentiment.

    Key metric:
    - Fear & Greed Index: 0-100 scale (0 = extreme fear, 100 = extreme greed)
    """

    def __init__(self, url: str = None, timeout: float = None):
        self.fear_greed_url = url or config.FEAR_GREED_API_URL
        self.timeout = timeout or config.REQUEST_TIMEOUT

    @with_retry(operation_name="fetch_fear_greed")
    def get_fear_greed_index(self) -> FearGreedReading:
        """
        Fetch the current Fear & Greed Index.

        Returns:
            FearGreedReading with value and classification

        Raises:
            DataFetchError: on a bad status or an unexpected payload
        """
        response = requests.get(self.fear_greed_url, timeout=self.timeout)
        if not response.ok:
            raise DataFetchError(
                f"Failed to fetch Fear & Greed Index: {response.status_code}",
                status=response.status_code,
            )

        data = response.json()
        entries = data.get("data") if isinstance(data, dict) else None
        if not isinstance(entries, list) or not entries:
            raise DataFetchError("Invalid Fear & Greed data format")

        current = entries[0]
        reading = FearGreedReading(
            value=int(current["value"]),
            classification=current.get("value_classification", "Unknown"),
        )
        logger.debug("Fear & Greed: %d (%s)", reading.value, reading.classification)
        return reading

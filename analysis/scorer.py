"""
Composite Scorer - turns the indicator results into one buy/wait decision.

Fixed weight table (config.INDICATOR_POINTS):

    RSI oversold ............ 2     Volume spike ........... 1
    MACD bullish crossover .. 1     Low volatility ......... 1
    Near support ............ 1     Sentiment positive ..... 1
    Fear & Greed < 40 ....... 2     Macro positive ......... 1

Score >= 4 is a buy. Confidence: High from 6, Medium from 4, Low below.
"""
import logging
from datetime import datetime
from typing import Dict, Optional

import config
from analysis.models import (
    RSIResult, RSISignal, MACDResult, VolatilityResult,
    ManualFlags, CompositeScore, Confidence,
)

logger = logging.getLogger(__name__)


def score_contributions(
    rsi: RSIResult,
    macd: MACDResult,
    volatility: VolatilityResult,
    near_support: bool,
    fear_greed: float,
    volume_spike: bool,
    flags: ManualFlags,
) -> Dict[str, int]:
    """Points earned by each of the eight conditions, keyed like INDICATOR_POINTS"""
    points = config.INDICATOR_POINTS
    met = {
        "rsi": rsi.signal == RSISignal.OVERSOLD,
        "macd": macd.buy,
        "support": near_support,
        "fear_greed": fear_greed < config.FEAR_GREED_BUY_THRESHOLD,
        "volume": volume_spike,
        "volatility": volatility.is_low,
        "sentiment": flags.sentiment_positive,
        "macro": flags.macro_positive,
    }
    return {key: points[key] if is_met else 0 for key, is_met in met.items()}


def classify_confidence(score: int) -> Confidence:
    if score >= config.HIGH_CONFIDENCE_SCORE:
        return Confidence.HIGH
    if score >= config.BUY_SCORE_THRESHOLD:
        return Confidence.MEDIUM
    return Confidence.LOW


def calculate_score(
    rsi: RSIResult,
    macd: MACDResult,
    volatility: VolatilityResult,
    near_support: bool,
    fear_greed: float,
    volume_spike: bool,
    flags: ManualFlags,
    now: Optional[datetime] = None,
) -> CompositeScore:
    """
    Aggregate all signals into a CompositeScore.

    Stateless: the same arguments always give the same score, tier and
    decision. ``now`` only stamps ``computed_at``.

    Args:
        rsi: RSI result
        macd: MACD result
        volatility: Volatility result
        near_support: Price is near the trailing support level
        fear_greed: Fear & Greed Index value (0-100)
        volume_spike: Latest volume is a spike
        flags: Manual sentiment/macro toggles, read as given

    Returns:
        CompositeScore
    """
    contributions = score_contributions(
        rsi, macd, volatility, near_support, fear_greed, volume_spike, flags
    )
    score = sum(contributions.values())
    should_buy = score >= config.BUY_SCORE_THRESHOLD
    confidence = classify_confidence(score)

    logger.debug("Score %d/%d from %s", score, config.MAX_SCORE, contributions)

    return CompositeScore(
        score=score,
        confidence=confidence,
        should_buy=should_buy,
        confidence_percentage=int(round(score / config.MAX_SCORE * 100)),
        computed_at=now or datetime.now(),
        max_score=config.MAX_SCORE,
    )

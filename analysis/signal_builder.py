"""
Signal Builder - runs one computation cycle over a raw market snapshot.

Calculators -> indicator table -> composite score. Nothing is cached here:
every call recomputes from the snapshot and the flags it is given.
"""
import logging
from datetime import datetime
from typing import Dict, Optional

import config
from analysis.indicators import (
    calculate_rsi, calculate_macd, calculate_volatility,
    find_support_level, calculate_volume_spike,
)
from analysis.models import (
    RawSnapshot, ManualFlags, IndicatorResult, Status, RSISignal,
    BitcoinData, ComputationResult,
)
from analysis.scorer import calculate_score, score_contributions
from core.error_handler import MalformedInputError

logger = logging.getLogger(__name__)


def _status(is_met: bool) -> Status:
    return Status.POSITIVE if is_met else Status.NEUTRAL


def _manual_indicator(name: str, description: str, is_positive: bool, max_points: int) -> IndicatorResult:
    return IndicatorResult(
        name=name,
        value="Positive" if is_positive else "Neutral",
        status=_status(is_positive),
        points=max_points if is_positive else 0,
        max_points=max_points,
        description=description,
        signal="manual override",
    )


def compute_signals(
    snapshot: RawSnapshot,
    flags: ManualFlags,
    now: Optional[datetime] = None,
) -> ComputationResult:
    """
    Compute all indicators and the buy signal for one snapshot.

    Args:
        snapshot: Price quote, closes, volumes and Fear & Greed reading
        flags: Manual toggles as they are at call time
        now: Timestamp for the result (defaults to now)

    Returns:
        ComputationResult with eight indicator rows and the composite score

    Raises:
        MalformedInputError: if the snapshot has no close prices
    """
    if not snapshot.closes:
        raise MalformedInputError("snapshot has no close prices")

    now = now or datetime.now()
    closes = snapshot.closes
    points = config.INDICATOR_POINTS

    rsi = calculate_rsi(closes, config.RSI_PERIOD)
    macd = calculate_macd(closes, config.MACD_FAST, config.MACD_SLOW, config.MACD_SIGNAL)
    volatility = calculate_volatility(closes, config.VOLATILITY_PERIOD)
    support = find_support_level(closes, config.SUPPORT_LOOKBACK)
    volume_spike = calculate_volume_spike(snapshot.volumes, config.VOLUME_PERIOD)
    fear_greed = snapshot.fear_greed

    earned = score_contributions(
        rsi, macd, volatility, support.near_support,
        fear_greed.value, volume_spike.is_spike, flags,
    )

    if rsi.signal == RSISignal.OVERSOLD:
        rsi_status = Status.POSITIVE
    elif rsi.signal == RSISignal.OVERBOUGHT:
        rsi_status = Status.NEGATIVE
    else:
        rsi_status = Status.NEUTRAL

    indicators: Dict[str, IndicatorResult] = {
        "rsi": IndicatorResult(
            name=f"RSI ({config.RSI_PERIOD})",
            value=rsi.value,
            status=rsi_status,
            points=earned["rsi"],
            max_points=points["rsi"],
            description="Relative Strength Index - measures momentum",
            signal=rsi.signal.value,
        ),
        "macd": IndicatorResult(
            name="MACD",
            value=f"{macd.macd:.2f}",
            status=_status(macd.buy),
            points=earned["macd"],
            max_points=points["macd"],
            description="Moving Average Convergence Divergence - trend indicator",
            signal="bullish crossover" if macd.buy else "no signal",
        ),
        "volatility": IndicatorResult(
            name="Volatility",
            value=f"{volatility.annualized_percent}%",
            status=_status(volatility.is_low),
            points=earned["volatility"],
            max_points=points["volatility"],
            description="Price volatility - lower is better for buying",
            signal="low volatility" if volatility.is_low else "high volatility",
        ),
        "support": IndicatorResult(
            name="Support Level",
            value=f"${support.level:,.2f}",
            status=_status(support.near_support),
            points=earned["support"],
            max_points=points["support"],
            description="Price near support levels",
            signal="near support" if support.near_support else "above support",
        ),
        "fear_greed": IndicatorResult(
            name="Fear & Greed",
            value=fear_greed.value,
            status=_status(earned["fear_greed"] > 0),
            points=earned["fear_greed"],
            max_points=points["fear_greed"],
            description="Market sentiment indicator",
            signal=fear_greed.classification,
        ),
        "volume": IndicatorResult(
            name="Volume Spike",
            value="Yes" if volume_spike.is_spike else "No",
            status=_status(volume_spike.is_spike),
            points=earned["volume"],
            max_points=points["volume"],
            description="Unusual trading volume activity",
            signal="volume spike detected" if volume_spike.is_spike else "normal volume",
        ),
        "sentiment": _manual_indicator(
            "Sentiment", "General market sentiment (manual setting)",
            flags.sentiment_positive, points["sentiment"],
        ),
        "macro": _manual_indicator(
            "Macro Factors", "Macroeconomic conditions (manual setting)",
            flags.macro_positive, points["macro"],
        ),
    }

    buy_signal = calculate_score(
        rsi=rsi,
        macd=macd,
        volatility=volatility,
        near_support=support.near_support,
        fear_greed=fear_greed.value,
        volume_spike=volume_spike.is_spike,
        flags=flags,
        now=now,
    )

    price = snapshot.price
    bitcoin_data = BitcoinData(
        price=price.usd,
        volume24h=price.usd_24h_vol,
        change24h=price.usd_24h_change or 0.0,
        timestamp=now,
    )

    logger.debug(
        "RSI %.2f (%s) | MACD %.4f buy=%s | vol %.2f%% | support %.2f near=%s | spike=%s | F&G %d",
        rsi.value, rsi.signal.value, macd.macd, macd.buy, volatility.annualized_percent,
        support.level, support.near_support, volume_spike.is_spike, fear_greed.value,
    )

    return ComputationResult(
        bitcoin_data=bitcoin_data,
        indicators=indicators,
        buy_signal=buy_signal,
    )

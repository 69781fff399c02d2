"""
Technical Indicators - EMA, RSI, MACD, Volatility, Support Level, Volume Spike

Every calculator is a pure function of its arguments: a chronologically
ordered series in, one immutable result record out. Series that are too
short for a calculator's window never raise; each calculator returns its
own neutral fallback instead.

EMA seeding follows the "first value" variant (ema[0] = value[0]) rather
than an SMA seed. MACD's signal line is taken over the MACD line from index
slow-1 onward. Both choices shift every downstream value, so keep them.
"""
import logging
import math
from typing import Sequence

import numpy as np
import pandas as pd

import config
from analysis.models import (
    RSIResult, RSISignal, MACDResult, VolatilityResult,
    SupportResult, VolumeSpikeResult,
)
from core.error_handler import MalformedInputError

logger = logging.getLogger(__name__)


def _as_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=float)


# =========================================================================
# EMA
# =========================================================================

def calculate_ema(values: Sequence[float], period: int) -> pd.Series:
    """
    Exponential moving average seeded with the first value.

    ema[i] = (value[i] - ema[i-1]) * 2/(period+1) + ema[i-1]

    pandas' ``ewm(span=period, adjust=False)`` is exactly this recurrence.

    Returns:
        Series of the same length as ``values``
    """
    series = pd.Series(_as_array(values))
    return series.ewm(span=period, adjust=False).mean()


# =========================================================================
# RSI
# =========================================================================

def classify_rsi(value: float) -> RSISignal:
    """Oversold below 30, overbought above 70, neutral in between (inclusive)"""
    if value < config.RSI_OVERSOLD:
        return RSISignal.OVERSOLD
    if value > config.RSI_OVERBOUGHT:
        return RSISignal.OVERBOUGHT
    return RSISignal.NEUTRAL


def calculate_rsi(closes: Sequence[float], period: int = config.RSI_PERIOD) -> RSIResult:
    """
    Calculate Relative Strength Index with Wilder smoothing.

    RSI = 100 - (100 / (1 + RS))
    RS = Average Gain / Average Loss

    The first averages are plain means over the first ``period`` deltas;
    every later delta is folded in as avg = (avg * (period - 1) + x) / period.

    Args:
        closes: Close prices, oldest first
        period: Smoothing period

    Returns:
        RSIResult with the value rounded to 2 decimals
    """
    prices = _as_array(closes)
    if len(prices) < period + 1:
        logger.debug("RSI: %d closes < %d, using neutral default", len(prices), period + 1)
        return RSIResult(value=config.RSI_NEUTRAL, signal=RSISignal.NEUTRAL)

    delta = np.diff(prices)
    gain = np.where(delta > 0, delta, 0.0)
    loss = np.where(delta < 0, -delta, 0.0)

    # Seed with the simple mean, then Wilder smoothing (alpha = 1/period)
    gains = pd.Series(np.concatenate(([gain[:period].mean()], gain[period:])))
    losses = pd.Series(np.concatenate(([loss[:period].mean()], loss[period:])))
    avg_gain = gains.ewm(alpha=1.0 / period, adjust=False).mean().iloc[-1]
    avg_loss = losses.ewm(alpha=1.0 / period, adjust=False).mean().iloc[-1]

    if avg_loss == 0:
        # No losses at all: unbounded RS is a pure up-trend, 0/0 is a flat market
        rsi = 100.0 if avg_gain > 0 else config.RSI_NEUTRAL
    else:
        rs = avg_gain / avg_loss
        rsi = 100 - (100 / (1 + rs))

    rsi = round(float(rsi), 2)
    return RSIResult(value=rsi, signal=classify_rsi(rsi))


# =========================================================================
# MACD
# =========================================================================

def is_bullish_crossover(prev_macd: float, prev_signal: float,
                         current_macd: float, current_signal: float) -> bool:
    """MACD was at or below its signal line on the previous bar and is above it now"""
    return prev_macd <= prev_signal and current_macd > current_signal


def calculate_macd(
    closes: Sequence[float],
    fast: int = config.MACD_FAST,
    slow: int = config.MACD_SLOW,
    signal: int = config.MACD_SIGNAL,
) -> MACDResult:
    """
    Calculate MACD (Moving Average Convergence Divergence)

    MACD Line = EMA(fast) - EMA(slow)
    Signal Line = EMA(MACD Line[slow-1:])
    Histogram = MACD Line - Signal Line

    Args:
        closes: Close prices, oldest first
        fast: Fast EMA period
        slow: Slow EMA period
        signal: Signal line EMA period

    Returns:
        MACDResult with current values (4 decimals) and the crossover flag
    """
    prices = _as_array(closes)
    if len(prices) < slow:
        logger.debug("MACD: %d closes < %d, no signal", len(prices), slow)
        return MACDResult(macd=0.0, signal=0.0, histogram=0.0, buy=False)

    ema_fast = calculate_ema(prices, fast)
    ema_slow = calculate_ema(prices, slow)
    macd_line = ema_fast - ema_slow

    # Slow EMA is only settled from index slow-1 onward
    signal_line = calculate_ema(macd_line.iloc[slow - 1:].to_numpy(), signal)

    current_macd = float(macd_line.iloc[-1])
    current_signal = float(signal_line.iloc[-1])
    histogram = current_macd - current_signal

    prev_macd = float(macd_line.iloc[-2]) if len(macd_line) > 1 else 0.0
    prev_signal = float(signal_line.iloc[-2]) if len(signal_line) > 1 else 0.0

    buy = is_bullish_crossover(prev_macd, prev_signal, current_macd, current_signal)

    return MACDResult(
        macd=round(current_macd, 4),
        signal=round(current_signal, 4),
        histogram=round(histogram, 4),
        buy=buy,
    )


# =========================================================================
# VOLATILITY
# =========================================================================

def is_low_volatility(annualized_percent: float) -> bool:
    """Low means strictly below 60% annualized; exactly 60.00 is not low"""
    return annualized_percent < config.VOLATILITY_LOW_THRESHOLD


def calculate_volatility(closes: Sequence[float], period: int = config.VOLATILITY_PERIOD) -> VolatilityResult:
    """
    Trailing annualized volatility from daily log returns.

    Uses the sample standard deviation (n - 1) of the last ``period`` log
    returns, annualized with sqrt(365) since crypto trades every day.

    Raises:
        MalformedInputError: if a close price is zero or negative
    """
    prices = _as_array(closes)
    if len(prices) < period:
        logger.debug("Volatility: %d closes < %d, using default", len(prices), period)
        return VolatilityResult(value=0.0, annualized_percent=0.0, is_low=False)

    if np.any(prices <= 0):
        raise MalformedInputError("close prices must be positive to compute log returns")

    returns = np.diff(np.log(prices))
    recent = returns[-period:]

    # A single return has no sample variance
    daily_volatility = float(np.std(recent, ddof=1)) if len(recent) > 1 else 0.0

    annualized = daily_volatility * math.sqrt(config.TRADING_DAYS_PER_YEAR) * 100

    # Classified on the unrounded value
    return VolatilityResult(
        value=round(daily_volatility, 6),
        annualized_percent=round(annualized, 2),
        is_low=is_low_volatility(annualized),
    )


# =========================================================================
# SUPPORT LEVEL
# =========================================================================

def find_support_level(closes: Sequence[float], lookback: int = config.SUPPORT_LOOKBACK) -> SupportResult:
    """
    Support = lowest close of the trailing window.

    Price is near support when it sits less than 5% above that level.

    Raises:
        MalformedInputError: on an empty series or a non-positive support level
    """
    prices = _as_array(closes)
    if len(prices) == 0:
        raise MalformedInputError("cannot find a support level in an empty price series")

    if len(prices) < lookback:
        return SupportResult(level=float(prices.min()), near_support=False)

    level = float(prices[-lookback:].min())
    if level <= 0:
        raise MalformedInputError(f"support level must be positive, got {level}")

    current_price = float(prices[-1])
    near_support = (current_price - level) / level < config.SUPPORT_PROXIMITY

    return SupportResult(level=level, near_support=near_support)


# =========================================================================
# VOLUME SPIKE
# =========================================================================

def calculate_volume_spike(volumes: Sequence[float], period: int = config.VOLUME_PERIOD) -> VolumeSpikeResult:
    """
    Compare the latest volume with the mean of the ``period`` volumes before it.

    A spike is strictly more than 1.5x that average.
    """
    values = _as_array(volumes)
    if len(values) < period + 1:
        avg_volume = float(values[-1]) if len(values) else 0.0
        return VolumeSpikeResult(avg_volume=avg_volume, is_spike=False)

    avg_volume = float(values[-period - 1:-1].mean())
    current_volume = float(values[-1])
    is_spike = current_volume > avg_volume * config.VOLUME_SPIKE_MULTIPLIER

    return VolumeSpikeResult(avg_volume=avg_volume, is_spike=is_spike)

"""
Indicator core: calculators, composite scorer and the cycle that ties them together.

All functions here are pure: same inputs, same outputs, no I/O.
"""
from .models import (
    Status, RSISignal, Confidence,
    RSIResult, MACDResult, VolatilityResult, SupportResult, VolumeSpikeResult,
    ManualFlags, PriceQuote, FearGreedReading, RawSnapshot,
    IndicatorResult, CompositeScore, BitcoinData, ComputationResult,
)
from .indicators import (
    calculate_ema, calculate_rsi, calculate_macd, calculate_volatility,
    find_support_level, calculate_volume_spike,
)
from .scorer import calculate_score
from .signal_builder import compute_signals

__all__ = [
    # Records
    'Status', 'RSISignal', 'Confidence',
    'RSIResult', 'MACDResult', 'VolatilityResult', 'SupportResult', 'VolumeSpikeResult',
    'ManualFlags', 'PriceQuote', 'FearGreedReading', 'RawSnapshot',
    'IndicatorResult', 'CompositeScore', 'BitcoinData', 'ComputationResult',
    # Calculators
    'calculate_ema', 'calculate_rsi', 'calculate_macd', 'calculate_volatility',
    'find_support_level', 'calculate_volume_spike',
    # Scoring
    'calculate_score', 'compute_signals',
]

"""
Unit tests for the signal builder.
Tests the eight indicator rows, their agreement with the score,
and input validation.
"""
import unittest
import sys
import os
from datetime import datetime

# Ensure project root on path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from analysis.indicators import calculate_volatility
from analysis.models import (
    RawSnapshot, PriceQuote, FearGreedReading, ManualFlags,
    IndicatorResult, Status, Confidence,
)
from analysis.signal_builder import compute_signals
from core.error_handler import MalformedInputError

FIXED_TIME = datetime(2024, 5, 1, 9, 30, 0)
INDICATOR_KEYS = ["rsi", "macd", "volatility", "support", "fear_greed", "volume", "sentiment", "macro"]


def make_snapshot(closes, volumes=None, fear_greed=35, change=2.5):
    return RawSnapshot(
        price=PriceQuote(usd=closes[-1] if closes else 0.0, usd_24h_vol=2.5e10, usd_24h_change=change),
        volumes=tuple(volumes if volumes is not None else [100.0] * 11),
        closes=tuple(closes),
        fear_greed=FearGreedReading(value=fear_greed, classification="Fear" if fear_greed < 50 else "Greed"),
    )


class TestComputeSignals(unittest.TestCase):
    """Test a full computation cycle"""

    def test_flat_market_with_flags(self):
        """Flat prices: low volatility, at support, plus F&G, spike and both flags = 7"""
        snapshot = make_snapshot([100.0] * 40, volumes=[100.0] * 10 + [200.0], fear_greed=35)
        result = compute_signals(snapshot, ManualFlags(True, True), now=FIXED_TIME)

        ind = result.indicators
        self.assertEqual(ind["rsi"].value, 50.0)
        self.assertEqual(ind["rsi"].points, 0)
        self.assertEqual(ind["macd"].points, 0)
        self.assertEqual(ind["volatility"].points, 1)
        self.assertEqual(ind["support"].points, 1)
        self.assertEqual(ind["fear_greed"].points, 2)
        self.assertEqual(ind["volume"].value, "Yes")
        self.assertEqual(ind["sentiment"].points, 1)
        self.assertEqual(ind["macro"].points, 1)

        self.assertEqual(result.buy_signal.score, 7)
        self.assertTrue(result.buy_signal.should_buy)
        self.assertEqual(result.buy_signal.confidence, Confidence.HIGH)
        self.assertEqual(result.buy_signal.confidence_percentage, 70)

    def test_crossover_market(self):
        """A last-bar MACD crossover shows up in the table and in the score"""
        closes = [200.0 - i for i in range(60)]
        closes.append(closes[-1] + 20)
        snapshot = make_snapshot(closes, fear_greed=60)
        result = compute_signals(snapshot, ManualFlags(), now=FIXED_TIME)

        macd = result.indicators["macd"]
        self.assertEqual(macd.status, Status.POSITIVE)
        self.assertEqual(macd.points, 1)
        self.assertEqual(macd.signal, "bullish crossover")
        self.assertIsInstance(macd.value, str)

        expected_vol = 1 if calculate_volatility(closes).is_low else 0
        self.assertEqual(result.indicators["volatility"].points, expected_vol)
        self.assertEqual(result.indicators["support"].signal, "above support")

    def test_points_sum_to_score(self):
        """Indicator points always add up to the composite score"""
        closes = [100 + (i % 7) * 3 - (i % 3) for i in range(45)]
        for flags in (ManualFlags(), ManualFlags(True, False), ManualFlags(True, True)):
            result = compute_signals(make_snapshot(closes, fear_greed=20), flags)
            total = sum(ind.points for ind in result.indicators.values())
            self.assertEqual(total, result.buy_signal.score)

    def test_eight_named_indicators(self):
        """Exactly the eight indicators, each within its max points"""
        result = compute_signals(make_snapshot([100.0] * 30), ManualFlags())
        self.assertEqual(list(result.indicators), INDICATOR_KEYS)
        for indicator in result.indicators.values():
            self.assertLessEqual(0, indicator.points)
            self.assertLessEqual(indicator.points, indicator.max_points)
        self.assertEqual(sum(ind.max_points for ind in result.indicators.values()), 10)

    def test_overbought_is_negative(self):
        """A steady rise is overbought and marked negative"""
        closes = [100.0 + i for i in range(30)]
        rsi = compute_signals(make_snapshot(closes), ManualFlags()).indicators["rsi"]
        self.assertEqual(rsi.status, Status.NEGATIVE)
        self.assertEqual(rsi.signal, "overbought")

    def test_manual_flags_rows(self):
        """Manual rows show Positive/Neutral and are labelled as overrides"""
        result = compute_signals(make_snapshot([100.0] * 30), ManualFlags(sentiment_positive=True))
        self.assertEqual(result.indicators["sentiment"].value, "Positive")
        self.assertEqual(result.indicators["macro"].value, "Neutral")
        self.assertEqual(result.indicators["macro"].signal, "manual override")

    def test_bitcoin_data(self):
        """Price block comes from the quote; missing change reads as 0"""
        snapshot = make_snapshot([100.0] * 30, change=None)
        result = compute_signals(snapshot, ManualFlags(), now=FIXED_TIME)
        self.assertEqual(result.bitcoin_data.price, 100.0)
        self.assertEqual(result.bitcoin_data.change24h, 0.0)
        self.assertEqual(result.bitcoin_data.timestamp, FIXED_TIME)
        self.assertEqual(result.buy_signal.computed_at, FIXED_TIME)

    def test_short_history_still_complete(self):
        """A single close still produces a full, well-formed result"""
        result = compute_signals(make_snapshot([50000.0], volumes=[]), ManualFlags())
        self.assertEqual(len(result.indicators), 8)
        self.assertEqual(result.indicators["rsi"].value, 50.0)
        self.assertEqual(result.indicators["support"].points, 0)

    def test_empty_closes_rejected(self):
        """No closes is a contract violation"""
        with self.assertRaises(MalformedInputError):
            compute_signals(make_snapshot([]), ManualFlags())

    def test_to_dict(self):
        """Result serializes to plain values"""
        data = compute_signals(make_snapshot([100.0] * 30), ManualFlags(), now=FIXED_TIME).to_dict()
        self.assertEqual(set(data), {"bitcoin_data", "indicators", "buy_signal"})
        self.assertEqual(data["indicators"]["rsi"]["status"], "neutral")
        self.assertEqual(data["bitcoin_data"]["timestamp"], FIXED_TIME.isoformat())


class TestIndicatorResult(unittest.TestCase):
    """Test the indicator record invariant"""

    def test_points_above_max_rejected(self):
        with self.assertRaises(ValueError):
            IndicatorResult(name="x", value=1, status=Status.POSITIVE, points=3,
                            max_points=2, description="")


if __name__ == '__main__':
    unittest.main(verbosity=2)

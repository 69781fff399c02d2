"""
Tests for the command line entry point.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import unittest
from datetime import datetime

from analysis.models import RawSnapshot, PriceQuote, FearGreedReading, ManualFlags
from analysis.signal_builder import compute_signals
from main import format_report, parse_args


class TestParseArgs(unittest.TestCase):

    def test_flags(self):
        """Both manual toggles can be switched on"""
        flags, as_json = parse_args(["--sentiment-positive", "-m"])
        self.assertEqual(flags, ManualFlags(sentiment_positive=True, macro_positive=True))
        self.assertFalse(as_json)

    def test_json(self):
        _, as_json = parse_args(["--json"])
        self.assertTrue(as_json)

    def test_unknown_argument_exits(self):
        with self.assertRaises(SystemExit) as ctx:
            parse_args(["--live"])
        self.assertEqual(ctx.exception.code, 1)


class TestFormatReport(unittest.TestCase):

    def test_report_lists_decision_and_rows(self):
        """Plain report shows every indicator and the decision"""
        snapshot = RawSnapshot(
            price=PriceQuote(usd=58000.0, usd_24h_vol=2e10, usd_24h_change=-3.2),
            volumes=tuple([100.0] * 11),
            closes=tuple([58000.0] * 40),
            fear_greed=FearGreedReading(value=22, classification="Extreme Fear"),
        )
        result = compute_signals(snapshot, ManualFlags(), now=datetime(2024, 1, 1))
        report = format_report(result, use_colors=False)

        self.assertIn("BUY  score 4/10", report)
        self.assertIn("Medium (40%)", report)
        self.assertIn("Extreme Fear", report)
        self.assertIn("$58,000.00", report)
        for indicator in result.indicators.values():
            self.assertIn(indicator.name, report)


if __name__ == '__main__':
    unittest.main(verbosity=2)

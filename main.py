#!/usr/bin/env python3
"""
Bitcoin Buy Signal
Scores current market conditions out of 10 and says BUY or WAIT.

Usage:
    python main.py                        # Fetch data and print the signal
    python main.py --sentiment-positive   # Count general sentiment as positive
    python main.py --macro-positive       # Count macro conditions as positive
    python main.py --json                 # Print the raw result as JSON
"""
import json
import logging
import sys
import os

# Add current directory to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from colorama import Fore, Style, init

import config
from analysis.models import ComputationResult, ManualFlags, Status
from core.signal_monitor import SignalMonitor

logger = logging.getLogger(__name__)

STATUS_COLORS = {
    Status.POSITIVE: Fore.GREEN,
    Status.NEGATIVE: Fore.RED,
    Status.NEUTRAL: Fore.YELLOW,
}


def format_report(result: ComputationResult, use_colors: bool = True) -> str:
    """Render the indicator table and decision as plain text"""
    def color(text: str, code: str) -> str:
        return f"{code}{text}{Style.RESET_ALL}" if use_colors else text

    btc = result.bitcoin_data
    signal = result.buy_signal

    lines = []
    lines.append("=" * 60)
    lines.append(f"BTC ${btc.price:,.2f}  ({btc.change24h:+.2f}% 24h)  Vol ${btc.volume24h:,.0f}")
    lines.append("-" * 60)
    for indicator in result.indicators.values():
        row = (f"{indicator.name:<16} {str(indicator.value):>14}  "
               f"{indicator.points}/{indicator.max_points}  {indicator.signal or ''}")
        lines.append(color(row, STATUS_COLORS[indicator.status]))
    lines.append("-" * 60)

    decision = "BUY" if signal.should_buy else "WAIT"
    lines.append(color(
        f"{decision}  score {signal.score}/{signal.max_score}  "
        f"confidence {signal.confidence.value} ({signal.confidence_percentage}%)",
        Fore.GREEN if signal.should_buy else Fore.RED,
    ))
    lines.append("=" * 60)
    return "\n".join(lines)


def parse_args(argv):
    """Returns (ManualFlags, as_json)"""
    sentiment_positive = config.SENTIMENT_POSITIVE
    macro_positive = config.MACRO_POSITIVE
    as_json = False

    for arg in argv:
        arg = arg.lower()
        if arg in ["--sentiment-positive", "-s"]:
            sentiment_positive = True
        elif arg in ["--macro-positive", "-m"]:
            macro_positive = True
        elif arg == "--json":
            as_json = True
        elif arg in ["--help", "-h"]:
            print(__doc__)
            sys.exit(0)
        else:
            logger.error("Unknown argument: %s - use --help for usage", arg)
            sys.exit(1)

    return ManualFlags(sentiment_positive=sentiment_positive, macro_positive=macro_positive), as_json


def main():
    """Main entry point"""
    flags, as_json = parse_args(sys.argv[1:])
    init(autoreset=True)

    monitor = SignalMonitor(flags=flags)
    try:
        state = monitor.fetch_data()
    except KeyboardInterrupt:
        logger.info("Stopped by user")
        sys.exit(0)

    if state.error:
        logger.error("Could not compute the signal: %s - run again to retry", state.error)
        sys.exit(1)

    if as_json:
        print(json.dumps(state.result.to_dict(), indent=2))
    else:
        print(format_report(state.result))


if __name__ == "__main__":
    main()

"""
Bitcoin Buy-Signal Configuration
"""
import os
import logging
from logging.handlers import RotatingFileHandler
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# =============================================================================
# DATA SOURCES
# =============================================================================
COINGECKO_BASE_URL = os.getenv("COINGECKO_BASE_URL", "https://api.coingecko.com/api/v3")
FEAR_GREED_API_URL = os.getenv("FEAR_GREED_API_URL", "https://api.alternative.me/fng/")

# Days of daily OHLC candles / volumes to request
OHLC_DAYS = 30

# HTTP behaviour (retries and timeouts live in the acquisition layer only)
REQUEST_TIMEOUT = 10           # seconds per request
FETCH_MAX_RETRIES = 3          # attempts per endpoint before the cycle fails
FETCH_RETRY_BASE_DELAY = 1.0   # seconds, doubled per attempt

# Raw snapshot cache window (the score itself is never cached)
CACHE_DURATION_SECONDS = 5 * 60

# =============================================================================
# MANUAL FLAGS (defaults, the CLI and SignalMonitor can override them)
# =============================================================================
SENTIMENT_POSITIVE = os.getenv("SENTIMENT_POSITIVE", "False").lower() == "true"
MACRO_POSITIVE = os.getenv("MACRO_POSITIVE", "False").lower() == "true"

# =============================================================================
# TECHNICAL ANALYSIS CONFIGURATION
# =============================================================================
# RSI settings
RSI_PERIOD = 14
RSI_OVERSOLD = 30    # Buy signal
RSI_OVERBOUGHT = 70  # Sell signal
RSI_NEUTRAL = 50.0   # Returned when there is no usable momentum information

# MACD settings
MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL = 9

# Volatility settings (daily candles, crypto trades every day)
VOLATILITY_PERIOD = 30
VOLATILITY_LOW_THRESHOLD = 60.0  # annualized %, strictly below = low
TRADING_DAYS_PER_YEAR = 365

# Support level lookback
SUPPORT_LOOKBACK = 20
SUPPORT_PROXIMITY = 0.05  # within 5% above the trailing minimum

# Volume spike settings
VOLUME_PERIOD = 10
VOLUME_SPIKE_MULTIPLIER = 1.5

# Fear & Greed: below this value the market is fearful enough to buy
FEAR_GREED_BUY_THRESHOLD = 40

# =============================================================================
# SCORING CONFIGURATION
# =============================================================================
# Points awarded when each condition is met (sums to MAX_SCORE)
INDICATOR_POINTS = {
    "rsi": 2,           # RSI oversold
    "macd": 1,          # MACD bullish crossover
    "support": 1,       # Price near support
    "fear_greed": 2,    # Fear & Greed below threshold
    "volume": 1,        # Volume spike
    "volatility": 1,    # Low volatility
    "sentiment": 1,     # Manual: sentiment positive
    "macro": 1,         # Manual: macro positive
}
MAX_SCORE = 10

BUY_SCORE_THRESHOLD = 4     # score >= 4 -> buy, Medium confidence
HIGH_CONFIDENCE_SCORE = 6   # score >= 6 -> High confidence

# =============================================================================
# DATA PATHS
# =============================================================================
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
DATA_DIR = os.path.join(PROJECT_ROOT, "data")  # Runtime data (logs)
os.makedirs(DATA_DIR, exist_ok=True)

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================
LOG_FILE = os.path.join(DATA_DIR, "signal_engine.log")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
LOG_BACKUP_COUNT = 3


def setup_logging():
    """Configure logging for the signal engine. Call once at startup."""
    log_level = getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    log_format = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    root = logging.getLogger()
    if root.handlers:
        return  # Already configured
    root.setLevel(log_level)

    # File handler (rotating)
    try:
        fh = RotatingFileHandler(LOG_FILE, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT, encoding="utf-8")
        fh.setLevel(log_level)
        fh.setFormatter(logging.Formatter(log_format, datefmt=date_format))
        root.addHandler(fh)
    except OSError:
        pass  # Console only if the log file cannot be opened

    # Console handler
    ch = logging.StreamHandler()
    ch.setLevel(log_level)
    ch.setFormatter(logging.Formatter(log_format, datefmt=date_format))
    root.addHandler(ch)


# Initialize logging when config is loaded
setup_logging()

"""
Signal Records - immutable values passed between calculators, scorer and callers.

Every record is created fresh for one computation cycle and never mutated.
"""
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Tuple, Union


class Status(Enum):
    """How an indicator reads for a buyer"""
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class RSISignal(Enum):
    """RSI zone"""
    OVERSOLD = "oversold"
    OVERBOUGHT = "overbought"
    NEUTRAL = "neutral"


class Confidence(Enum):
    """Confidence tier of the composite score"""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


# =========================================================================
# CALCULATOR OUTPUTS
# =========================================================================

@dataclass(frozen=True)
class RSIResult:
    value: float
    signal: RSISignal


@dataclass(frozen=True)
class MACDResult:
    macd: float
    signal: float
    histogram: float
    buy: bool


@dataclass(frozen=True)
class VolatilityResult:
    value: float                # daily volatility (std of log returns)
    annualized_percent: float
    is_low: bool


@dataclass(frozen=True)
class SupportResult:
    level: float
    near_support: bool


@dataclass(frozen=True)
class VolumeSpikeResult:
    avg_volume: float
    is_spike: bool


# =========================================================================
# INPUTS
# =========================================================================

@dataclass(frozen=True)
class ManualFlags:
    """The two qualitative toggles supplied by the user"""
    sentiment_positive: bool = False
    macro_positive: bool = False


@dataclass(frozen=True)
class PriceQuote:
    usd: float
    usd_24h_vol: float
    usd_24h_change: Optional[float] = None


@dataclass(frozen=True)
class FearGreedReading:
    value: int
    classification: str


@dataclass(frozen=True)
class RawSnapshot:
    """Everything one cycle needs from the data sources"""
    price: PriceQuote
    volumes: Tuple[float, ...]
    closes: Tuple[float, ...]
    fear_greed: FearGreedReading


# =========================================================================
# OUTPUTS
# =========================================================================

@dataclass(frozen=True)
class IndicatorResult:
    """One row of the indicator table"""
    name: str
    value: Union[float, int, str]
    status: Status
    points: int
    max_points: int
    description: str
    signal: Optional[str] = None

    def __post_init__(self):
        if not 0 <= self.points <= self.max_points:
            raise ValueError(
                f"{self.name}: points {self.points} outside 0..{self.max_points}"
            )

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["status"] = self.status.value
        return data


@dataclass(frozen=True)
class CompositeScore:
    score: int
    confidence: Confidence
    should_buy: bool
    confidence_percentage: int
    computed_at: datetime = field(default_factory=datetime.now)
    max_score: int = 10

    def to_dict(self) -> Dict:
        return {
            "should_buy": self.should_buy,
            "score": self.score,
            "max_score": self.max_score,
            "confidence": self.confidence.value,
            "confidence_percentage": self.confidence_percentage,
            "computed_at": self.computed_at.isoformat(),
        }


@dataclass(frozen=True)
class BitcoinData:
    price: float
    volume24h: float
    change24h: float
    timestamp: datetime

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


@dataclass(frozen=True)
class ComputationResult:
    """Everything handed to the presentation layer after one cycle"""
    bitcoin_data: BitcoinData
    indicators: Dict[str, IndicatorResult]
    buy_signal: CompositeScore

    def to_dict(self) -> Dict:
        return {
            "bitcoin_data": self.bitcoin_data.to_dict(),
            "indicators": {key: ind.to_dict() for key, ind in self.indicators.items()},
            "buy_signal": self.buy_signal.to_dict(),
        }

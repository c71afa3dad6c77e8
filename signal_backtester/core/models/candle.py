"""
Candle domain model.
"""

from dataclasses import dataclass

from signal_backtester.core.enums import Timeframe
from signal_backtester.core.utils.validation import (
    validate_finite,
    validate_non_negative,
    validate_positive,
)


@dataclass(frozen=True, slots=True)
class Candle:
    """One OHLCV observation.

    Timestamps are milliseconds since the epoch and strictly increase within
    a series. The OHLC envelope (``low <= min(open, close)`` and
    ``high >= max(open, close)``) is assumed by the simulator but not
    enforced here; use ``OHLCVValidator`` to check a series.
    """

    symbol: str
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float
    timeframe: Timeframe

    def __post_init__(self) -> None:
        """Validate candle data after initialization."""
        validate_non_negative(self.timestamp, "Timestamp")
        for name in ("open", "high", "low", "close"):
            value = getattr(self, name)
            validate_finite(value, name.capitalize())
            validate_positive(value, name.capitalize())
        validate_non_negative(self.volume, "Volume")

    @property
    def range(self) -> float:
        """High-low span of the candle."""
        return self.high - self.low

    def has_valid_envelope(self) -> bool:
        """Check that high/low bracket both open and close."""
        return self.low <= min(self.open, self.close) and self.high >= max(self.open, self.close)

    def to_dict(self) -> dict:
        """Convert candle to dictionary."""
        return {
            "symbol": self.symbol,
            "timestamp": self.timestamp,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
            "timeframe": self.timeframe.value,
        }

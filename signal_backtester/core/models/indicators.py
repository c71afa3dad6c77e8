"""
Typed indicator results.

Each strategy style gets its own result type, so callers know which fields
exist without probing a loosely-typed mapping. ``InsufficientIndicators`` is
returned when the window is too short for anything but the last price.
"""

from dataclasses import asdict, dataclass
from typing import ClassVar

from signal_backtester.core.enums import StrategyStyle


@dataclass(frozen=True)
class MACDValues:
    """Latest MACD line, signal line and histogram."""

    line: float = 0.0
    signal: float = 0.0
    histogram: float = 0.0


@dataclass(frozen=True)
class BandValues:
    """Upper/middle/lower envelope (Bollinger Bands, Donchian Channels)."""

    upper: float = 0.0
    middle: float = 0.0
    lower: float = 0.0


@dataclass(frozen=True)
class StochasticValues:
    """Latest %K and %D."""

    k: float = 50.0
    d: float = 50.0


@dataclass(frozen=True)
class InsufficientIndicators:
    """Degraded result for windows shorter than the minimum."""

    price: float
    style: ClassVar[StrategyStyle | None] = None

    @property
    def is_complete(self) -> bool:
        return False

    def to_dict(self) -> dict:
        """Convert indicators to dictionary."""
        return {"price": self.price}


@dataclass(frozen=True)
class _BaseIndicators:
    """Fields computed for every style."""

    price: float
    price_change: float
    volatility: float

    @property
    def is_complete(self) -> bool:
        return True

    def to_dict(self) -> dict:
        """Convert indicators to dictionary with camelCase keys."""
        result = {}
        for key, value in asdict(self).items():
            head, *rest = key.split("_")
            result[head + "".join(part.capitalize() for part in rest)] = value
        return result


@dataclass(frozen=True)
class TrendIndicators(_BaseIndicators):
    """Trend-following set: SMA50, EMA20, ADX(14), MACD(12, 26, 9)."""

    sma50: float
    ema20: float
    adx: float
    macd: MACDValues
    style: ClassVar[StrategyStyle] = StrategyStyle.TREND


@dataclass(frozen=True)
class MeanReversionIndicators(_BaseIndicators):
    """Mean-reversion set: Bollinger(20, 2), RSI(14), Stochastic(14, 3)."""

    bollinger: BandValues
    rsi: float
    stochastic: StochasticValues
    style: ClassVar[StrategyStyle] = StrategyStyle.MEAN_REVERSION


@dataclass(frozen=True)
class BreakoutIndicators(_BaseIndicators):
    """Breakout set: ATR(14), Donchian(20), volume change."""

    atr: float
    donchian: BandValues
    volume_change: float
    style: ClassVar[StrategyStyle] = StrategyStyle.BREAKOUT


IndicatorSet = (
    InsufficientIndicators | TrendIndicators | MeanReversionIndicators | BreakoutIndicators
)

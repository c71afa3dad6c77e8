"""
Shared fixtures: candle series builders, strategies and scripted signals.
"""

from collections.abc import Callable, Sequence
from dataclasses import replace

import numpy as np
import pytest

from signal_backtester.core.enums import MarketRegime, SignalType, StrategyStyle, Timeframe
from signal_backtester.core.models.candle import Candle
from signal_backtester.core.models.strategy import StrategyConfig

BASE_TIMESTAMP = 1640995200000  # 2022-01-01 00:00 UTC
HOUR_MS = 3600000


def build_candles(
    closes: Sequence[float],
    volumes: Sequence[float] | None = None,
    wick: float = 0.001,
    symbol: str = "BTCUSDT",
    timeframe: Timeframe = Timeframe.H1,
) -> list[Candle]:
    """Hourly candles opening at the previous close, with a proportional wick."""
    candles = []
    for index, close in enumerate(closes):
        open_price = closes[index - 1] if index > 0 else close
        candles.append(
            Candle(
                symbol=symbol,
                timestamp=BASE_TIMESTAMP + index * HOUR_MS,
                open=float(open_price),
                high=max(open_price, close) * (1 + wick),
                low=min(open_price, close) * (1 - wick),
                close=float(close),
                volume=float(volumes[index]) if volumes is not None else 1000.0,
                timeframe=timeframe,
            )
        )
    return candles


def geometric_closes(count: int, rate: float, start: float = 100.0) -> list[float]:
    """Closes changing by a constant ``rate`` per candle."""
    return [start * (1 + rate) ** index for index in range(count)]


class ScriptedSignalGenerator:
    """Signal generator replaying fixed signals by candle index."""

    def __init__(self, signals: dict[int, SignalType]):
        self.signals = {BASE_TIMESTAMP + index * HOUR_MS: s for index, s in signals.items()}
        self.calls = 0

    def generate_signal(self, candle, indicators, style) -> SignalType:
        self.calls += 1
        return self.signals.get(candle.timestamp, SignalType.NEUTRAL)


@pytest.fixture
def make_candles() -> Callable[..., list[Candle]]:
    """Factory building candles from closes."""
    return build_candles


@pytest.fixture
def make_closes() -> Callable[..., list[float]]:
    """Factory building geometric close series."""
    return geometric_closes


@pytest.fixture
def scripted_signals() -> Callable[[dict[int, SignalType]], ScriptedSignalGenerator]:
    """Factory for generators emitting signals at given candle indices."""
    return ScriptedSignalGenerator


@pytest.fixture
def rising_candles() -> list[Candle]:
    """200 candles rising 1% each."""
    return build_candles(geometric_closes(200, 0.01))


@pytest.fixture
def falling_candles() -> list[Candle]:
    """60 candles falling 1% each."""
    return build_candles(geometric_closes(60, -0.01))


@pytest.fixture
def flat_candles() -> list[Candle]:
    """60 candles closing at 100."""
    return build_candles([100.0] * 60)


@pytest.fixture
def random_walk_candles() -> list[Candle]:
    """300 candles of a seeded random walk with varying volume."""
    rng = np.random.default_rng(42)
    returns = rng.normal(0.0005, 0.015, 300)
    closes = 45000.0 * np.cumprod(1 + returns)
    volumes = rng.uniform(100, 1000, 300)
    return build_candles(closes.tolist(), volumes=volumes.tolist(), wick=0.004)


@pytest.fixture
def rally_crash_candles() -> list[Candle]:
    """51 candles rising 1% each, then nine falling 5% each."""
    closes = geometric_closes(51, 0.01)
    for _ in range(9):
        closes.append(closes[-1] * 0.95)
    return build_candles(closes)


@pytest.fixture
def wide_bar_candles() -> list[Candle]:
    """52 candles at 100 whose last bar spans 95 to 105."""
    candles = build_candles([100.0] * 52)
    candles[50] = replace(candles[50], open=100.0, high=101.0, low=99.0, close=100.0)
    candles[51] = replace(candles[51], open=100.0, high=105.0, low=95.0, close=100.5)
    return candles


@pytest.fixture
def trend_strategy() -> StrategyConfig:
    return StrategyConfig(
        id="trend-following",
        name="Trend Following",
        style=StrategyStyle.TREND,
        risk_per_trade=0.01,
        take_profit_ratio=2.0,
        suitable_regimes=frozenset({MarketRegime.TRENDING}),
    )


@pytest.fixture
def mean_reversion_strategy() -> StrategyConfig:
    return StrategyConfig(
        id="mean-reversion",
        name="Mean Reversion",
        style=StrategyStyle.MEAN_REVERSION,
        risk_per_trade=0.01,
        take_profit_ratio=1.5,
        suitable_regimes=frozenset({MarketRegime.RANGING}),
    )


@pytest.fixture
def breakout_strategy() -> StrategyConfig:
    return StrategyConfig(
        id="breakout",
        name="Breakout",
        style=StrategyStyle.BREAKOUT,
        risk_per_trade=0.015,
        take_profit_ratio=2.5,
        suitable_regimes=frozenset({MarketRegime.VOLATILE, MarketRegime.TRENDING}),
    )

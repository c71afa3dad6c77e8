"""
Core protocols.

Structural interfaces for the collaborators the simulator and validator
depend on, so tests and callers can swap implementations without
inheriting from concrete classes.
"""

from collections.abc import Sequence
from typing import Protocol

from signal_backtester.core.enums import SignalType, StrategyStyle
from signal_backtester.core.models.candle import Candle
from signal_backtester.core.models.indicators import IndicatorSet
from signal_backtester.core.models.strategy import StrategyConfig


class IIndicatorCalculator(Protocol):
    """Protocol for indicator calculators."""

    def calculate_indicators(
        self, candles: Sequence[Candle], strategy: StrategyConfig
    ) -> IndicatorSet:
        """Indicators for the last candle of the window."""
        ...

    def calculate_rolling(
        self, candles: Sequence[Candle], strategy: StrategyConfig
    ) -> list[IndicatorSet]:
        """Indicators for every prefix ``candles[: i + 1]``, one per candle."""
        ...


class ISignalGenerator(Protocol):
    """Protocol for signal rule engines."""

    def generate_signal(
        self, candle: Candle, indicators: IndicatorSet, style: StrategyStyle
    ) -> SignalType:
        """Map the current candle and its indicators to a signal."""
        ...

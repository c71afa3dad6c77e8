"""
Core enumerations for the backtesting engine.

This module provides centralized enumerations for domain concepts
like timeframes, position sides, signals, strategy styles and regimes.
"""

from .exit_reasons import ExitPriority, ExitReason
from .position_types import PositionType, SignalType
from .strategy_types import MarketRegime, StopLossType, StrategyStyle
from .timeframes import Timeframe

__all__ = [
    "Timeframe",
    "PositionType",
    "SignalType",
    "StrategyStyle",
    "StopLossType",
    "MarketRegime",
    "ExitReason",
    "ExitPriority",
]

"""
Strategy classification enumerations.
"""

from enum import StrEnum


class StrategyStyle(StrEnum):
    """Rule family a strategy belongs to."""

    TREND = "TREND"
    MEAN_REVERSION = "MEAN_REVERSION"
    BREAKOUT = "BREAKOUT"


class StopLossType(StrEnum):
    """How a strategy describes its protective stop."""

    ATR = "atr"
    PERCENTAGE = "percentage"


class MarketRegime(StrEnum):
    """
    Classification of recent market behaviour.

    Derived from trend strength, volatility and volume trend heuristics.
    """

    TRENDING = "TRENDING"
    RANGING = "RANGING"
    VOLATILE = "VOLATILE"

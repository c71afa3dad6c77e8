"""
Signal rule engine.

Maps the current candle and its indicator set to LONG, SHORT or NEUTRAL
using style-specific threshold rules. Pure and deterministic.
"""

from collections.abc import Callable
from typing import Any

from signal_backtester.core.constants import (
    ADX_TREND_THRESHOLD,
    BOLLINGER_TOLERANCE,
    RSI_OVERBOUGHT,
    RSI_OVERSOLD,
    VOLUME_CONFIRMATION,
)
from signal_backtester.core.enums import SignalType, StrategyStyle
from signal_backtester.core.models.candle import Candle
from signal_backtester.core.models.indicators import (
    BreakoutIndicators,
    IndicatorSet,
    MeanReversionIndicators,
    TrendIndicators,
)


def trend_signal(candle: Candle, indicators: TrendIndicators) -> SignalType:
    """EMA20 vs SMA50 with MACD histogram direction, gated by ADX > 25."""
    if indicators.adx <= ADX_TREND_THRESHOLD:
        return SignalType.NEUTRAL
    if indicators.ema20 > indicators.sma50 and indicators.macd.histogram > 0:
        return SignalType.LONG
    if indicators.ema20 < indicators.sma50 and indicators.macd.histogram < 0:
        return SignalType.SHORT
    return SignalType.NEUTRAL


def mean_reversion_signal(candle: Candle, indicators: MeanReversionIndicators) -> SignalType:
    """RSI extremes confirmed by a close within 1% of the Bollinger band."""
    if (
        indicators.rsi < RSI_OVERSOLD
        and candle.close < indicators.bollinger.lower * (1 + BOLLINGER_TOLERANCE)
    ):
        return SignalType.LONG
    if (
        indicators.rsi > RSI_OVERBOUGHT
        and candle.close > indicators.bollinger.upper * (1 - BOLLINGER_TOLERANCE)
    ):
        return SignalType.SHORT
    return SignalType.NEUTRAL


def breakout_signal(candle: Candle, indicators: BreakoutIndicators) -> SignalType:
    """Close outside the Donchian channel on volume > 20% above its recent average."""
    if indicators.volume_change <= VOLUME_CONFIRMATION:
        return SignalType.NEUTRAL
    if candle.close > indicators.donchian.upper:
        return SignalType.LONG
    if candle.close < indicators.donchian.lower:
        return SignalType.SHORT
    return SignalType.NEUTRAL


class SignalRuleEngine:
    """Dispatches to the rule set of a strategy style."""

    _RULES: dict[StrategyStyle, tuple[type, Callable[[Candle, Any], SignalType]]] = {
        StrategyStyle.TREND: (TrendIndicators, trend_signal),
        StrategyStyle.MEAN_REVERSION: (MeanReversionIndicators, mean_reversion_signal),
        StrategyStyle.BREAKOUT: (BreakoutIndicators, breakout_signal),
    }

    def generate_signal(
        self, candle: Candle, indicators: IndicatorSet, style: StrategyStyle
    ) -> SignalType:
        """
        Generate a trading signal for ``candle``.

        Incomplete indicator sets, or sets computed for another style,
        always yield NEUTRAL.
        """
        expected_type, rule = self._RULES[style]
        if not isinstance(indicators, expected_type):
            return SignalType.NEUTRAL
        return rule(candle, indicators)


def quick_signal(indicators: IndicatorSet, style: StrategyStyle) -> SignalType:
    """
    Cheaper rules used when ranking strategies.

    Direction only: EMA20 against SMA50 for trend, RSI extremes for mean
    reversion, price outside the Donchian channel for breakout.
    """
    match indicators:
        case TrendIndicators() if style == StrategyStyle.TREND:
            if indicators.ema20 > indicators.sma50:
                return SignalType.LONG
            if indicators.ema20 < indicators.sma50:
                return SignalType.SHORT
        case MeanReversionIndicators() if style == StrategyStyle.MEAN_REVERSION:
            if indicators.rsi < RSI_OVERSOLD:
                return SignalType.LONG
            if indicators.rsi > RSI_OVERBOUGHT:
                return SignalType.SHORT
        case BreakoutIndicators() if style == StrategyStyle.BREAKOUT:
            if indicators.price > indicators.donchian.upper:
                return SignalType.LONG
            if indicators.price < indicators.donchian.lower:
                return SignalType.SHORT
    return SignalType.NEUTRAL


def generate_signal(candle: Candle, indicators: IndicatorSet, style: StrategyStyle) -> SignalType:
    """Module-level shortcut for ``SignalRuleEngine().generate_signal``."""
    return SignalRuleEngine().generate_signal(candle, indicators, style)

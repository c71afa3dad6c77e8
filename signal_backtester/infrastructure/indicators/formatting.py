"""
Human-readable rendering of indicator sets.
"""

from signal_backtester.core.constants import RSI_OVERBOUGHT, RSI_OVERSOLD
from signal_backtester.core.models.indicators import (
    IndicatorSet,
    MeanReversionIndicators,
    TrendIndicators,
)
from signal_backtester.core.types.financial import HUNDRED, safe_divide


def _format_number(value: object) -> str:
    if isinstance(value, int | float):
        return f"{value:.2f}"
    return str(value)


def format_indicators(indicators: IndicatorSet) -> str:
    """Render every indicator as a bullet line, nested values indented."""
    lines = []
    for key, value in indicators.to_dict().items():
        if isinstance(value, dict):
            lines.append(f"- {key}:")
            lines.extend(f"  - {sub_key}: {_format_number(v)}" for sub_key, v in value.items())
        else:
            lines.append(f"- {key}: {_format_number(value)}")
    return "\n".join(lines)


def summarize_indicators(indicators: IndicatorSet) -> str:
    """Short narrative summary: price action, trend, momentum, volatility."""
    lines = []

    if indicators.is_complete and indicators.price_change:
        sign = "+" if indicators.price_change > 0 else ""
        lines.append(
            f"Price: ${indicators.price:.2f} ({sign}{indicators.price_change:.2f}%)"
        )

    if isinstance(indicators, TrendIndicators) and indicators.ema20 and indicators.sma50:
        bullish = indicators.ema20 > indicators.sma50
        lines.append(
            f"Trend: {'bullish' if bullish else 'bearish'} "
            f"(EMA20 {'above' if bullish else 'below'} SMA50)"
        )

    if isinstance(indicators, MeanReversionIndicators):
        condition = "neutral"
        if indicators.rsi > RSI_OVERBOUGHT:
            condition = "overbought"
        elif indicators.rsi < RSI_OVERSOLD:
            condition = "oversold"
        lines.append(f"RSI: {indicators.rsi:.2f} ({condition})")

        band = indicators.bollinger
        width = safe_divide(band.upper - band.lower, band.middle) * HUNDRED
        lines.append(
            f"Volatility: {indicators.volatility:.2f}% (Bollinger width: {width:.2f}%)"
        )

    return "\n".join(lines)

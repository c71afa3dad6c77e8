"""
Technical Indicators Calculator.

Computes the per-style indicator sets consumed by the signal rule engine.
Implements the Strategy Pattern: each indicator family is a strategy that
adds columns to an OHLCV DataFrame. Every column is causal, so row ``i`` of
a computed frame equals the value for the prefix ``candles[: i + 1]``.

Short windows never raise. Rows an indicator cannot compute yet are filled
with a neutral default (RSI 50, Stochastic 50/50, bands derived from the
mean of whatever closes exist, zero elsewhere).
"""

from collections.abc import Sequence
from typing import Any, Protocol

import numpy as np
import pandas as pd
from loguru import logger

from signal_backtester.core.constants import (
    ADX_PERIOD,
    ATR_PERIOD,
    BOLLINGER_PERIOD,
    BOLLINGER_STD,
    DONCHIAN_PERIOD,
    EMA_PERIOD,
    MACD_FAST,
    MACD_SIGNAL,
    MACD_SLOW,
    MIN_CANDLES,
    MIN_VOLATILITY_CANDLES,
    PRICE_CHANGE_PERIODS,
    RSI_PERIOD,
    SMA_PERIOD,
    STOCHASTIC_PERIOD,
    STOCHASTIC_SIGNAL_PERIOD,
    VOLATILITY_ANNUALIZATION,
    VOLUME_PRIOR_WINDOW,
    VOLUME_RECENT_WINDOW,
)
from signal_backtester.core.enums import StrategyStyle
from signal_backtester.core.exceptions.backtest import DataError
from signal_backtester.core.models.candle import Candle
from signal_backtester.core.models.indicators import (
    BandValues,
    BreakoutIndicators,
    IndicatorSet,
    InsufficientIndicators,
    MACDValues,
    MeanReversionIndicators,
    StochasticValues,
    TrendIndicators,
)
from signal_backtester.core.models.strategy import StrategyConfig
from signal_backtester.infrastructure.data.candles import candles_to_frame


class IndicatorStrategy(Protocol):
    """Protocol for technical indicator calculation strategies."""

    def calculate(self, data: pd.DataFrame) -> pd.DataFrame:
        """Calculate specific indicator for the given data."""
        ...


def _wilder(series: pd.Series, period: int) -> pd.Series:
    """Wilder smoothing: an EMA with alpha = 1 / period."""
    return series.ewm(alpha=1 / period, adjust=False, min_periods=period).mean()


def _true_range(data: pd.DataFrame) -> pd.Series:
    """True range; the first row falls back to high - low."""
    prev_close = data["close"].shift(1)
    ranges = pd.concat(
        [
            data["high"] - data["low"],
            (data["high"] - prev_close).abs(),
            (data["low"] - prev_close).abs(),
        ],
        axis=1,
    )
    return ranges.max(axis=1)


class PriceActionStrategy:
    """Last price, price change and annualized volatility, shared by every style."""

    def __init__(
        self,
        change_periods: int = PRICE_CHANGE_PERIODS,
        annualization: float = VOLATILITY_ANNUALIZATION,
        min_candles: int = MIN_VOLATILITY_CANDLES,
    ):
        self.change_periods = change_periods
        self.annualization = annualization
        self.min_candles = min_candles

    def calculate(self, data: pd.DataFrame) -> pd.DataFrame:
        """Add price, price_change (%) and volatility columns."""
        result = data.copy()
        close = result["close"]

        result["price"] = close
        result["price_change"] = ((close / close.shift(self.change_periods) - 1) * 100).fillna(0.0)

        # Population stdev of all returns so far, scaled to a daily figure for hourly candles
        returns = close / close.shift(1) - 1
        volatility = returns.expanding(min_periods=self.min_candles - 1).std(ddof=0)
        result["volatility"] = (volatility * 100 * self.annualization).fillna(0.0)

        return result


class MovingAverageStrategy:
    """Strategy for calculating the trend SMA and EMA."""

    def __init__(self, sma_period: int = SMA_PERIOD, ema_period: int = EMA_PERIOD):
        self.sma_period = sma_period
        self.ema_period = ema_period

    def calculate(self, data: pd.DataFrame) -> pd.DataFrame:
        """Add simple and exponential moving averages."""
        result = data.copy()
        close = result["close"]

        result["sma"] = close.rolling(window=self.sma_period).mean().fillna(0.0)
        result["ema"] = (
            close.ewm(span=self.ema_period, adjust=False, min_periods=self.ema_period)
            .mean()
            .fillna(0.0)
        )

        return result


class MACDStrategy:
    """Strategy for calculating MACD (Moving Average Convergence Divergence) indicators."""

    def __init__(self, fast: int = MACD_FAST, slow: int = MACD_SLOW, signal: int = MACD_SIGNAL):
        self.fast = fast
        self.slow = slow
        self.signal = signal

    def calculate(self, data: pd.DataFrame) -> pd.DataFrame:
        """Add MACD line, signal and histogram."""
        result = data.copy()
        close = result["close"]

        ema_fast = close.ewm(span=self.fast, adjust=False, min_periods=self.fast).mean()
        ema_slow = close.ewm(span=self.slow, adjust=False, min_periods=self.slow).mean()
        macd = ema_fast - ema_slow
        macd_signal = macd.ewm(span=self.signal, adjust=False, min_periods=self.signal).mean()

        result["macd"] = macd.fillna(0.0)
        result["macd_signal"] = macd_signal.fillna(0.0)
        result["macd_histogram"] = (macd - macd_signal).fillna(0.0)

        return result


class ADXStrategy:
    """Strategy for calculating ADX (Average Directional Index)."""

    def __init__(self, period: int = ADX_PERIOD):
        self.period = period

    def calculate(self, data: pd.DataFrame) -> pd.DataFrame:
        """Add ADX indicator."""
        result = data.copy()

        up_move = result["high"].diff()
        down_move = -result["low"].diff()
        plus_dm = up_move.where((up_move > down_move) & (up_move > 0), 0.0)
        minus_dm = down_move.where((down_move > up_move) & (down_move > 0), 0.0)

        atr = _wilder(_true_range(result), self.period).replace(0, np.nan)
        plus_di = 100 * _wilder(plus_dm, self.period) / atr
        minus_di = 100 * _wilder(minus_dm, self.period) / atr

        dx = 100 * (plus_di - minus_di).abs() / (plus_di + minus_di).replace(0, np.nan)
        result["adx"] = _wilder(dx, self.period).fillna(0.0)

        return result


class RSIStrategy:
    """Strategy for calculating RSI (Relative Strength Index) with Wilder smoothing."""

    def __init__(self, period: int = RSI_PERIOD):
        self.period = period

    def calculate(self, data: pd.DataFrame) -> pd.DataFrame:
        """Add RSI indicator."""
        result = data.copy()

        delta = result["close"].diff()
        avg_gain = _wilder(delta.clip(lower=0), self.period)
        avg_loss = _wilder((-delta).clip(lower=0), self.period)

        rs = avg_gain / avg_loss.replace(0, np.nan)
        rsi = 100 - (100 / (1 + rs))
        # No losses in the window: pinned at 100, or neutral if price never moved
        rsi = rsi.mask((avg_loss == 0) & (avg_gain > 0), 100.0)
        rsi = rsi.mask((avg_loss == 0) & (avg_gain == 0), 50.0)
        result["rsi"] = rsi.fillna(50.0)

        return result


class BollingerBandsStrategy:
    """Strategy for calculating Bollinger Bands indicators."""

    def __init__(self, period: int = BOLLINGER_PERIOD, std_multiplier: float = BOLLINGER_STD):
        self.period = period
        self.std_multiplier = std_multiplier

    def calculate(self, data: pd.DataFrame) -> pd.DataFrame:
        """Add Bollinger Bands indicators."""
        result = data.copy()
        close = result["close"]

        bb_middle = close.rolling(window=self.period).mean()
        bb_std = close.rolling(window=self.period).std(ddof=0)
        fallback = close.expanding().mean()

        result["bb_upper"] = (bb_middle + self.std_multiplier * bb_std).fillna(fallback * 1.02)
        result["bb_middle"] = bb_middle.fillna(fallback)
        result["bb_lower"] = (bb_middle - self.std_multiplier * bb_std).fillna(fallback * 0.98)

        return result


class StochasticStrategy:
    """Strategy for calculating the Stochastic oscillator (%K, %D)."""

    def __init__(
        self, period: int = STOCHASTIC_PERIOD, signal_period: int = STOCHASTIC_SIGNAL_PERIOD
    ):
        self.period = period
        self.signal_period = signal_period

    def calculate(self, data: pd.DataFrame) -> pd.DataFrame:
        """Add stochastic %K and %D."""
        result = data.copy()

        lowest_low = result["low"].rolling(window=self.period).min()
        highest_high = result["high"].rolling(window=self.period).max()
        stoch_k = (
            100 * (result["close"] - lowest_low) / (highest_high - lowest_low).replace(0, np.nan)
        )
        stoch_d = stoch_k.rolling(window=self.signal_period).mean()

        result["stoch_k"] = stoch_k.fillna(50.0)
        result["stoch_d"] = stoch_d.fillna(50.0)

        return result


class ATRStrategy:
    """Strategy for calculating ATR (Average True Range)."""

    def __init__(self, period: int = ATR_PERIOD):
        self.period = period

    def calculate(self, data: pd.DataFrame) -> pd.DataFrame:
        """Add ATR indicator."""
        result = data.copy()
        result["atr"] = _wilder(_true_range(result), self.period).fillna(0.0)
        return result


class DonchianChannelStrategy:
    """Strategy for calculating Donchian Channels.

    The channel covers the ``period`` candles before the current one, so a
    close above the upper band is a breakout of the prior range.
    """

    def __init__(self, period: int = DONCHIAN_PERIOD):
        self.period = period

    def calculate(self, data: pd.DataFrame) -> pd.DataFrame:
        """Add Donchian upper, middle and lower bands."""
        result = data.copy()

        upper = result["high"].shift(1).rolling(window=self.period).max()
        lower = result["low"].shift(1).rolling(window=self.period).min()

        result["donchian_upper"] = upper.fillna(0.0)
        result["donchian_middle"] = ((upper + lower) / 2).fillna(0.0)
        result["donchian_lower"] = lower.fillna(0.0)

        return result


class VolumeChangeStrategy:
    """Strategy for the % change of recent volume against the preceding window."""

    def __init__(
        self, recent_window: int = VOLUME_RECENT_WINDOW, prior_window: int = VOLUME_PRIOR_WINDOW
    ):
        self.recent_window = recent_window
        self.prior_window = prior_window

    def calculate(self, data: pd.DataFrame) -> pd.DataFrame:
        """Add volume_change column."""
        result = data.copy()
        volume = result["volume"]

        recent_avg = volume.rolling(window=self.recent_window).mean()
        prior_avg = volume.shift(self.recent_window).rolling(window=self.prior_window).mean()
        change = (recent_avg - prior_avg) / prior_avg.replace(0, np.nan) * 100

        result["volume_change"] = change.fillna(0.0)

        return result


def _value(row: dict[str, Any], column: str, default: float = 0.0) -> float:
    """Read a numeric cell, falling back when it is missing or NaN."""
    value = row.get(column)
    if value is None or pd.isna(value):
        return default
    return float(value)


class TechnicalIndicatorsCalculator:
    """
    Technical indicators calculator using Strategy Pattern.

    Orchestrates the indicator strategies required by each strategy style
    and turns computed rows into typed indicator sets.
    """

    _STYLE_INDICATORS: dict[StrategyStyle, list[str]] = {
        StrategyStyle.TREND: ["moving_averages", "adx", "macd"],
        StrategyStyle.MEAN_REVERSION: ["bollinger_bands", "rsi", "stochastic"],
        StrategyStyle.BREAKOUT: ["atr", "donchian", "volume_change"],
    }

    def __init__(self, volatility_annualization: float = VOLATILITY_ANNUALIZATION) -> None:
        """Initialize calculator with default strategies."""
        self._strategies: dict[str, IndicatorStrategy] = {
            "price_action": PriceActionStrategy(annualization=volatility_annualization),
            "moving_averages": MovingAverageStrategy(),
            "adx": ADXStrategy(),
            "macd": MACDStrategy(),
            "bollinger_bands": BollingerBandsStrategy(),
            "rsi": RSIStrategy(),
            "stochastic": StochasticStrategy(),
            "atr": ATRStrategy(),
            "donchian": DonchianChannelStrategy(),
            "volume_change": VolumeChangeStrategy(),
        }
        self._failure_counts: dict[str, int] = {}

    def add_strategy(self, name: str, strategy: IndicatorStrategy) -> None:
        """Replace or register an indicator calculation strategy."""
        self._strategies[name] = strategy

    def calculate_frame(self, data: pd.DataFrame, style: StrategyStyle) -> pd.DataFrame:
        """
        Add the indicator columns needed by ``style`` to an OHLCV frame.

        Args:
            data: OHLCV DataFrame
            style: Strategy style selecting the indicator set

        Returns:
            DataFrame with additional indicator columns
        """
        if data.empty:
            return data.copy()

        result = data.copy()
        for name in ["price_action", *self._STYLE_INDICATORS[style]]:
            logger.debug(f"Calculating {name} indicators")
            try:
                result = self._strategies[name].calculate(result)
            except (ValueError, TypeError, KeyError) as strategy_error:
                self._failure_counts[name] = self._failure_counts.get(name, 0) + 1
                logger.warning(
                    f"Failed {name} (failure #{self._failure_counts[name]}): {strategy_error}"
                )
                # Missing columns fall back to neutral values when rows are read
                continue
            except Exception as unexpected_error:
                logger.error(f"Unexpected error calculating {name} indicator: {unexpected_error}")
                raise DataError(
                    f"Technical indicator calculation failed for {name}"
                ) from unexpected_error

        return result

    def calculate_indicators(
        self, candles: Sequence[Candle], strategy: StrategyConfig
    ) -> IndicatorSet:
        """
        Indicators for the last candle of ``candles``.

        Windows shorter than the minimum return only the last close.
        """
        if len(candles) < MIN_CANDLES:
            logger.warning(
                f"Not enough data points for reliable indicators: {len(candles)} < {MIN_CANDLES}"
            )
            return InsufficientIndicators(price=candles[-1].close if candles else 0.0)

        frame = self.calculate_frame(candles_to_frame(candles), strategy.style)
        return self._build(frame.iloc[-1].to_dict(), strategy.style)

    def calculate_rolling(
        self, candles: Sequence[Candle], strategy: StrategyConfig
    ) -> list[IndicatorSet]:
        """
        Indicators for every prefix of ``candles`` in one vectorized pass.

        Entry ``i`` equals ``calculate_indicators(candles[: i + 1], strategy)``.
        """
        if not candles:
            return []

        frame = self.calculate_frame(candles_to_frame(candles), strategy.style)
        rows = frame.to_dict("records")
        logger.debug(f"Calculated {strategy.style.value} indicators for {len(rows)} rows")
        return [
            self._build(row, strategy.style)
            if index + 1 >= MIN_CANDLES
            else InsufficientIndicators(price=float(row["close"]))
            for index, row in enumerate(rows)
        ]

    def get_available_indicators(self) -> list[str]:
        """Get list of available indicator strategies."""
        return list(self._strategies.keys())

    def get_failure_statistics(self) -> dict[str, int]:
        """Get failure counts for each indicator strategy."""
        return self._failure_counts.copy()

    def reset_failure_statistics(self) -> None:
        """Reset failure counts for monitoring purposes."""
        self._failure_counts.clear()

    @staticmethod
    def _build(row: dict[str, Any], style: StrategyStyle) -> IndicatorSet:
        """Turn one computed row into the typed set for ``style``."""
        base = {
            "price": _value(row, "price", _value(row, "close")),
            "price_change": _value(row, "price_change"),
            "volatility": _value(row, "volatility"),
        }

        match style:
            case StrategyStyle.TREND:
                return TrendIndicators(
                    **base,
                    sma50=_value(row, "sma"),
                    ema20=_value(row, "ema"),
                    adx=_value(row, "adx"),
                    macd=MACDValues(
                        line=_value(row, "macd"),
                        signal=_value(row, "macd_signal"),
                        histogram=_value(row, "macd_histogram"),
                    ),
                )
            case StrategyStyle.MEAN_REVERSION:
                return MeanReversionIndicators(
                    **base,
                    bollinger=BandValues(
                        upper=_value(row, "bb_upper"),
                        middle=_value(row, "bb_middle"),
                        lower=_value(row, "bb_lower"),
                    ),
                    rsi=_value(row, "rsi", 50.0),
                    stochastic=StochasticValues(
                        k=_value(row, "stoch_k", 50.0), d=_value(row, "stoch_d", 50.0)
                    ),
                )
            case StrategyStyle.BREAKOUT:
                return BreakoutIndicators(
                    **base,
                    atr=_value(row, "atr"),
                    donchian=BandValues(
                        upper=_value(row, "donchian_upper"),
                        middle=_value(row, "donchian_middle"),
                        lower=_value(row, "donchian_lower"),
                    ),
                    volume_change=_value(row, "volume_change"),
                )
        raise DataError(f"Unsupported strategy style: {style}")


def create_technical_indicators_calculator(
    volatility_annualization: float = VOLATILITY_ANNUALIZATION,
) -> TechnicalIndicatorsCalculator:
    """Factory function to create a calculator with default strategies."""
    return TechnicalIndicatorsCalculator(volatility_annualization=volatility_annualization)


def calculate_indicators(candles: Sequence[Candle], strategy: StrategyConfig) -> IndicatorSet:
    """Indicators for the last candle of ``candles`` with default settings."""
    return create_technical_indicators_calculator().calculate_indicators(candles, strategy)

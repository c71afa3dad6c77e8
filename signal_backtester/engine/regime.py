"""
Market regime detection.

Classifies recent behaviour as TRENDING, RANGING or VOLATILE from three
heuristics over the whole window: return volatility, an RSI-derived trend
strength, and the recent volume trend.
"""

from collections.abc import Sequence

import numpy as np
from loguru import logger

from signal_backtester.core.constants import (
    MIN_CANDLES,
    MIN_VOLATILITY_CANDLES,
    REGIME_TRENDING_MAX_VOLATILITY,
    REGIME_TREND_STRENGTH,
    REGIME_VOLATILE_VOLATILITY,
    REGIME_VOLUME_SURGE,
    REGIME_VOLUME_SURGE_VOLATILITY,
    RSI_PERIOD,
    VOLUME_PRIOR_WINDOW,
    VOLUME_RECENT_WINDOW,
)
from signal_backtester.core.enums import MarketRegime
from signal_backtester.core.models.candle import Candle
from signal_backtester.core.types.financial import HUNDRED, ZERO, percent_change


class MarketRegimeDetector:
    """Rule-based regime classifier."""

    def __init__(self, trend_period: int = RSI_PERIOD) -> None:
        self.trend_period = trend_period

    def detect(self, candles: Sequence[Candle]) -> MarketRegime:
        """Classify ``candles``; short series default to RANGING."""
        if len(candles) < MIN_CANDLES:
            logger.debug(f"Only {len(candles)} candles, defaulting regime to RANGING")
            return MarketRegime.RANGING

        closes = np.array([candle.close for candle in candles], dtype=float)
        volumes = np.array([candle.volume for candle in candles], dtype=float)

        volatility = self.volatility(closes)
        trend_strength = self.trend_strength(closes)
        volume_trend = self.volume_trend(volumes)

        if trend_strength > REGIME_TREND_STRENGTH and volatility < REGIME_TRENDING_MAX_VOLATILITY:
            regime = MarketRegime.TRENDING
        elif volatility > REGIME_VOLATILE_VOLATILITY or (
            volume_trend > REGIME_VOLUME_SURGE and volatility > REGIME_VOLUME_SURGE_VOLATILITY
        ):
            regime = MarketRegime.VOLATILE
        else:
            regime = MarketRegime.RANGING

        logger.info(
            f"Detected {regime.value} regime (volatility={volatility:.2f}, "
            f"trend_strength={trend_strength:.2f}, volume_trend={volume_trend:.2f})"
        )
        return regime

    @staticmethod
    def volatility(closes: np.ndarray) -> float:
        """Population stdev of simple returns, in percent."""
        if closes.size < MIN_VOLATILITY_CANDLES:
            return ZERO
        returns = np.diff(closes) / closes[:-1]
        return float(np.std(returns)) * HUNDRED

    def trend_strength(self, closes: np.ndarray) -> float:
        """Distance of a simple-average RSI from 50, scaled to 0..100."""
        if closes.size < self.trend_period * 2:
            return ZERO

        diffs = np.diff(closes)[-self.trend_period :]
        avg_up = float(np.clip(diffs, 0, None).sum()) / self.trend_period
        avg_down = float(np.clip(-diffs, 0, None).sum()) / self.trend_period
        if avg_down == ZERO:
            return HUNDRED

        rsi = HUNDRED - HUNDRED / (1 + avg_up / avg_down)
        return abs(rsi - 50) * 2

    @staticmethod
    def volume_trend(volumes: np.ndarray) -> float:
        """% change of the last-5 volume average against the 15 before it."""
        window = VOLUME_RECENT_WINDOW + VOLUME_PRIOR_WINDOW
        if volumes.size < window:
            return ZERO
        recent = float(volumes[-VOLUME_RECENT_WINDOW:].mean())
        previous = float(volumes[-window:-VOLUME_RECENT_WINDOW].mean())
        return percent_change(previous, recent)


def detect_market_regime(candles: Sequence[Candle]) -> MarketRegime:
    """Classify ``candles`` with the default detector."""
    return MarketRegimeDetector().detect(candles)

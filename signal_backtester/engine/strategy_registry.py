"""
Strategy catalogue and instrument analysis flow.

Holds the strategies offered to the user (seeded with four defaults) and
runs the selection flow: detect the regime, keep the strategies suited to
it, rank them with the validator.
"""

import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from loguru import logger

from signal_backtester.core.enums import MarketRegime, StopLossType, StrategyStyle
from signal_backtester.core.exceptions.backtest import StrategyNotFoundError, ValidationError
from signal_backtester.core.models.candle import Candle
from signal_backtester.core.models.strategy import IndicatorSelection, StrategyConfig
from signal_backtester.engine.regime import MarketRegimeDetector
from signal_backtester.engine.strategy_validator import StrategyValidator


def default_strategies() -> list[StrategyConfig]:
    """The built-in strategy set."""
    return [
        StrategyConfig(
            id="trend-following",
            name="Trend Following",
            style=StrategyStyle.TREND,
            risk_per_trade=0.01,
            take_profit_ratio=2.0,
            stop_loss_type=StopLossType.ATR,
            indicators=IndicatorSelection(
                primary=("ema20", "sma50", "macd"), confirmation=("adx", "volume")
            ),
            suitable_regimes=frozenset({MarketRegime.TRENDING}),
        ),
        StrategyConfig(
            id="mean-reversion",
            name="Mean Reversion",
            style=StrategyStyle.MEAN_REVERSION,
            risk_per_trade=0.01,
            take_profit_ratio=1.5,
            stop_loss_type=StopLossType.PERCENTAGE,
            indicators=IndicatorSelection(
                primary=("rsi", "bollinger"), confirmation=("stochastic", "volume")
            ),
            suitable_regimes=frozenset({MarketRegime.RANGING}),
        ),
        StrategyConfig(
            id="breakout",
            name="Breakout",
            style=StrategyStyle.BREAKOUT,
            risk_per_trade=0.015,
            take_profit_ratio=2.5,
            stop_loss_type=StopLossType.ATR,
            indicators=IndicatorSelection(
                primary=("donchian", "atr"), confirmation=("volume", "adx")
            ),
            suitable_regimes=frozenset({MarketRegime.VOLATILE, MarketRegime.TRENDING}),
        ),
        StrategyConfig(
            id="volatility-trend",
            name="Volatility Trend",
            style=StrategyStyle.TREND,
            risk_per_trade=0.02,
            take_profit_ratio=1.8,
            stop_loss_type=StopLossType.ATR,
            indicators=IndicatorSelection(
                primary=("ema20", "atr"), confirmation=("macd", "volume")
            ),
            suitable_regimes=frozenset({MarketRegime.VOLATILE}),
        ),
    ]


@dataclass(frozen=True)
class InstrumentAnalysis:
    """Regime of a series and the strategies ranked for it."""

    regime: MarketRegime
    strategies: tuple[StrategyConfig, ...]

    @property
    def best(self) -> StrategyConfig | None:
        return self.strategies[0] if self.strategies else None

    def to_dict(self) -> dict:
        """Convert analysis to dictionary."""
        return {
            "regime": self.regime.value,
            "strategies": [strategy.to_dict() for strategy in self.strategies],
        }


class StrategyRegistry:
    """In-memory strategy catalogue."""

    def __init__(
        self,
        strategies: Sequence[StrategyConfig] | None = None,
        detector: MarketRegimeDetector | None = None,
        validator: StrategyValidator | None = None,
    ) -> None:
        self._strategies: list[StrategyConfig] = list(
            strategies if strategies is not None else default_strategies()
        )
        self.detector = detector or MarketRegimeDetector()
        self.validator = validator or StrategyValidator()

    def get_strategies(self) -> list[StrategyConfig]:
        """Get a copy of the catalogue."""
        return list(self._strategies)

    def get_strategy(self, strategy_id: str) -> StrategyConfig:
        """Look up a strategy by id."""
        for strategy in self._strategies:
            if strategy.id == strategy_id:
                return strategy
        raise StrategyNotFoundError(strategy_id)

    def create_strategy(self, name: str = "New Strategy", **overrides: Any) -> StrategyConfig:
        """Add a strategy built from trend-following defaults plus ``overrides``."""
        fields = {
            "id": f"strategy-{uuid.uuid4().hex[:8]}",
            "name": name,
            "style": StrategyStyle.TREND,
            "risk_per_trade": 0.01,
            "take_profit_ratio": 2.0,
            "stop_loss_type": StopLossType.ATR,
            "indicators": IndicatorSelection(
                primary=("ema20", "sma50"), confirmation=("adx", "volume")
            ),
            "suitable_regimes": frozenset({MarketRegime.TRENDING}),
            **overrides,
        }
        if any(strategy.id == fields["id"] for strategy in self._strategies):
            raise ValidationError(f"Strategy id already exists: {fields['id']}")

        strategy = StrategyConfig(**fields)
        self._strategies.append(strategy)
        logger.info(f"Created strategy {strategy.id} ({strategy.name})")
        return strategy

    def update_strategy(self, strategy_id: str, **updates: Any) -> StrategyConfig:
        """Replace a strategy with an updated copy."""
        if "id" in updates and updates["id"] != strategy_id:
            raise ValidationError("Strategy id cannot be changed")

        for index, strategy in enumerate(self._strategies):
            if strategy.id == strategy_id:
                updated = strategy.with_updates(**updates)
                self._strategies[index] = updated
                logger.info(f"Updated strategy {strategy_id}: {sorted(updates)}")
                return updated
        raise StrategyNotFoundError(strategy_id)

    def delete_strategy(self, strategy_id: str) -> bool:
        """Remove a strategy; returns whether anything was removed."""
        remaining = [s for s in self._strategies if s.id != strategy_id]
        deleted = len(remaining) < len(self._strategies)
        self._strategies = remaining
        if deleted:
            logger.info(f"Deleted strategy {strategy_id}")
        return deleted

    def reset_to_defaults(self) -> None:
        """Drop custom strategies and edits."""
        self._strategies = default_strategies()

    def get_strategies_for_regime(self, regime: MarketRegime) -> list[StrategyConfig]:
        """Strategies whose suitable regimes include ``regime``."""
        return [strategy for strategy in self._strategies if strategy.is_suitable_for(regime)]

    def analyze_instrument(self, candles: Sequence[Candle]) -> InstrumentAnalysis:
        """Detect the regime of ``candles`` and rank the strategies suited to it."""
        regime = self.detector.detect(candles)
        candidates = self.get_strategies_for_regime(regime)
        ranked = self.validator.validate(candidates, candles, regime)
        return InstrumentAnalysis(regime=regime, strategies=tuple(ranked))

"""
Strategy validator / selector.

Ranks candidate strategies by the expectancy of a cheap one-step-ahead
replay on the most recent 30% of the series: each actionable signal is
scored against the next candle's close, with no stops, sizing or costs.
Only strategies with positive expectancy survive.
"""

from collections.abc import Callable, Sequence

from loguru import logger

from signal_backtester.core.constants import MIN_CANDLES, TRAIN_TEST_SPLIT
from signal_backtester.core.enums import MarketRegime, SignalType, StrategyStyle
from signal_backtester.core.exceptions.backtest import InsufficientDataError
from signal_backtester.core.models.candle import Candle
from signal_backtester.core.models.indicators import IndicatorSet
from signal_backtester.core.models.strategy import StrategyConfig, ValidationMetrics
from signal_backtester.core.protocols import IIndicatorCalculator
from signal_backtester.core.types.financial import ZERO, safe_divide
from signal_backtester.core.utils.decorators import log_operation
from signal_backtester.engine.signals import quick_signal
from signal_backtester.infrastructure.indicators.technical_indicators import (
    TechnicalIndicatorsCalculator,
)

SignalRule = Callable[[IndicatorSet, StrategyStyle], SignalType]


class StrategyValidator:
    """Scores and ranks strategies on held-out candles."""

    def __init__(
        self,
        indicator_calculator: IIndicatorCalculator | None = None,
        signal_rule: SignalRule = quick_signal,
        train_split: float = TRAIN_TEST_SPLIT,
    ) -> None:
        self.indicator_calculator = indicator_calculator or TechnicalIndicatorsCalculator()
        self.signal_rule = signal_rule
        self.train_split = train_split

    def split(self, candles: Sequence[Candle]) -> tuple[Sequence[Candle], Sequence[Candle]]:
        """Split into training and testing slices (70/30 by default)."""
        boundary = int(len(candles) * self.train_split)
        return candles[:boundary], candles[boundary:]

    def evaluate(self, strategy: StrategyConfig, test_candles: Sequence[Candle]) -> ValidationMetrics:
        """
        One-step-ahead replay of ``strategy`` over ``test_candles``.

        For each ``i`` in ``[50, len - 2]`` the signal is derived from the
        indicators of ``test_candles[:i]`` and scored by the move from
        candle ``i`` to candle ``i + 1``.
        """
        indicator_sets = self.indicator_calculator.calculate_rolling(test_candles, strategy)

        wins = losses = 0
        total_profit = total_loss = ZERO

        for index in range(MIN_CANDLES, len(test_candles) - 1):
            signal = self.signal_rule(indicator_sets[index - 1], strategy.style)
            side = signal.to_position_type()
            if side is None:
                continue

            current_close = test_candles[index].close
            move = (test_candles[index + 1].close - current_close) / current_close
            if move * side.direction > ZERO:
                wins += 1
                total_profit += abs(move)
            else:
                losses += 1
                total_loss += abs(move)

        win_rate = safe_divide(wins, wins + losses)
        avg_win = safe_divide(total_profit, wins)
        avg_loss = safe_divide(total_loss, losses)

        return ValidationMetrics(
            win_rate=win_rate,
            expectancy=win_rate * avg_win - (1 - win_rate) * avg_loss,
            trades=wins + losses,
            avg_win=avg_win,
            avg_loss=avg_loss,
        )

    @log_operation
    def validate(
        self,
        candidates: Sequence[StrategyConfig],
        candles: Sequence[Candle],
        regime: MarketRegime | None = None,
    ) -> list[StrategyConfig]:
        """
        Rank candidates by descending expectancy.

        Args:
            candidates: Strategies to score (returned as annotated copies)
            candles: Full series; only the testing slice is replayed
            regime: When given, strategies unsuitable for it are dropped first

        Returns:
            Strategies with positive expectancy, best first

        Raises:
            InsufficientDataError: If fewer than 50 candles are supplied
        """
        if len(candles) < MIN_CANDLES:
            raise InsufficientDataError(MIN_CANDLES, len(candles), "strategy validation")

        eligible = list(candidates)
        if regime is not None:
            eligible = [strategy for strategy in eligible if strategy.is_suitable_for(regime)]
            logger.debug(f"{len(eligible)}/{len(candidates)} strategies suit {regime.value}")

        _, test_candles = self.split(candles)
        if len(test_candles) <= MIN_CANDLES + 1:
            logger.warning(
                f"Testing slice has {len(test_candles)} candles; no signals can be scored"
            )

        validated = []
        for strategy in eligible:
            metrics = self.evaluate(strategy, test_candles)
            logger.debug(
                f"{strategy.id}: expectancy={metrics.expectancy:.6f} over {metrics.trades} signals"
            )
            if metrics.expectancy > ZERO:
                validated.append(strategy.with_updates(validation=metrics))

        return sorted(validated, key=lambda s: s.validation.expectancy, reverse=True)


def validate(
    candidates: Sequence[StrategyConfig],
    candles: Sequence[Candle],
    regime: MarketRegime | None = None,
) -> list[StrategyConfig]:
    """Rank ``candidates`` with the default validator."""
    return StrategyValidator().validate(candidates, candles, regime)

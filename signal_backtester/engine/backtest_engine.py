"""
Position simulator.

Replays a candle series against one strategy, walking forward one candle at
a time with at most one open position. The run is a fold: ``step`` is the
pure transition function taking the accumulator (capital, open position,
equity peak, drawdown) and one candle to the next accumulator, plus the
trade closed on that candle if any.

State machine per candle:

- Flat: a LONG/SHORT signal opens a position at the close, with the stop
  two volatility units away and the target ``take_profit_ratio`` times
  further on the other side. Size is chosen so the stop loses exactly
  ``capital * risk_per_trade``.
- In position: stop loss, then take profit, then an opposite signal close
  the position (one reason per candle). Closing returns to Flat; a new
  entry waits for the next candle.

A position still open after the last candle is closed at its close with
reason "End of Test".
"""

from collections.abc import Sequence
from dataclasses import dataclass, replace

from loguru import logger

from signal_backtester.core.constants import DEFAULT_INITIAL_CAPITAL, MIN_CANDLES
from signal_backtester.core.enums import ExitPriority, ExitReason, SignalType
from signal_backtester.core.exceptions.backtest import InsufficientDataError
from signal_backtester.core.models.backtest import BacktestResult, BacktestSettings
from signal_backtester.core.models.candle import Candle
from signal_backtester.core.models.indicators import BreakoutIndicators, IndicatorSet
from signal_backtester.core.models.position import SimulatedPosition
from signal_backtester.core.models.strategy import StrategyConfig
from signal_backtester.core.models.trade import Trade
from signal_backtester.core.protocols import IIndicatorCalculator, ISignalGenerator
from signal_backtester.core.types.financial import HUNDRED, ZERO
from signal_backtester.core.utils.decorators import log_operation
from signal_backtester.engine.performance import aggregate
from signal_backtester.engine.signals import SignalRuleEngine
from signal_backtester.infrastructure.indicators.technical_indicators import (
    TechnicalIndicatorsCalculator,
)


@dataclass(frozen=True)
class SimulationState:
    """Accumulator threaded through the fold."""

    capital: float
    position: SimulatedPosition | None = None
    max_equity: float = ZERO
    drawdown: float = ZERO

    @classmethod
    def initial(cls, capital: float) -> "SimulationState":
        return cls(capital=capital, max_equity=capital)

    @property
    def is_flat(self) -> bool:
        return self.position is None


def volatility_unit(candle: Candle, indicators: IndicatorSet) -> float:
    """ATR when the indicator set carries a positive one, else the candle's range."""
    if isinstance(indicators, BreakoutIndicators) and indicators.atr > ZERO:
        return indicators.atr
    return candle.range


def find_exit(
    position: SimulatedPosition,
    candle: Candle,
    signal: SignalType,
    settings: BacktestSettings,
) -> tuple[ExitReason, float] | None:
    """
    Exit reason and fill price for ``position`` on ``candle``, if any.

    Stops and targets fill at their own level; a reversal fills at the close.
    """
    if settings.intrabar_exits:
        adverse = candle.low if position.side.is_long else candle.high
        favourable = candle.high if position.side.is_long else candle.low
    else:
        adverse = favourable = candle.close

    stop_hit = position.stop_loss_hit(adverse)
    target_hit = position.take_profit_hit(favourable)

    if stop_hit and target_hit:
        if settings.exit_priority == ExitPriority.TAKE_PROFIT_FIRST:
            return ExitReason.TAKE_PROFIT, position.take_profit
        return ExitReason.STOP_LOSS, position.stop_loss
    if stop_hit:
        return ExitReason.STOP_LOSS, position.stop_loss
    if target_hit:
        return ExitReason.TAKE_PROFIT, position.take_profit
    if signal.reverses(position.side):
        return ExitReason.SIGNAL_REVERSAL, candle.close
    return None


def step(
    state: SimulationState,
    candle: Candle,
    indicators: IndicatorSet,
    signal: SignalType,
    strategy: StrategyConfig,
    settings: BacktestSettings,
) -> tuple[SimulationState, Trade | None]:
    """Advance the simulation by one candle."""
    capital = state.capital
    position = state.position
    trade = None

    if position is None:
        side = signal.to_position_type()
        if side is not None and capital * strategy.risk_per_trade <= ZERO:
            logger.warning(
                f"Skipping {signal.value} at {candle.timestamp}: no capital at risk ({capital:.2f})"
            )
        elif side is not None:
            atr_value = volatility_unit(candle, indicators)
            if atr_value > ZERO:
                position = SimulatedPosition.open(
                    side=side,
                    entry_price=candle.close,
                    entry_time=candle.timestamp,
                    capital=capital,
                    risk_per_trade=strategy.risk_per_trade,
                    atr_value=atr_value,
                    take_profit_ratio=strategy.take_profit_ratio,
                )
                logger.debug(
                    f"Opened {side.value} at {candle.close} "
                    f"(stop={position.stop_loss:.4f}, target={position.take_profit:.4f})"
                )
            else:
                logger.warning(f"Skipping {signal.value} at {candle.timestamp}: zero volatility")
    else:
        exit_decision = find_exit(position, candle, signal, settings)
        if exit_decision is not None:
            reason, exit_price = exit_decision
            trade = position.close(candle.timestamp, exit_price, reason)
            capital += trade.pnl
            position = None
            logger.debug(f"Closed {trade.type.value} via {reason.value}: pnl={trade.pnl:.2f}")

    max_equity = max(state.max_equity, capital)
    drawdown = (
        min(HUNDRED, (max_equity - capital) / max_equity * HUNDRED) if max_equity > ZERO else ZERO
    )

    return (
        SimulationState(
            capital=capital,
            position=position,
            max_equity=max_equity,
            drawdown=drawdown,
        ),
        trade,
    )


class BacktestEngine:
    """
    Walk-forward backtest runner.

    The indicator calculator and the signal generator are injectable; both
    default to the standard implementations.
    """

    def __init__(
        self,
        indicator_calculator: IIndicatorCalculator | None = None,
        signal_generator: ISignalGenerator | None = None,
        settings: BacktestSettings | None = None,
    ) -> None:
        self.settings = (settings or BacktestSettings()).validate()
        self.indicator_calculator = indicator_calculator or TechnicalIndicatorsCalculator(
            volatility_annualization=self.settings.volatility_annualization
        )
        self.signal_generator = signal_generator or SignalRuleEngine()

    @log_operation
    def run_backtest(
        self,
        candles: Sequence[Candle],
        strategy: StrategyConfig,
        initial_capital: float | None = None,
    ) -> BacktestResult:
        """
        Run a backtest for ``strategy`` over ``candles``.

        Args:
            candles: Ordered candle series (read-only)
            strategy: Strategy to evaluate (never mutated)
            initial_capital: Overrides the settings' starting capital

        Returns:
            Backtest result with trades, equity curve and metrics

        Raises:
            InsufficientDataError: If fewer than 50 candles are supplied
        """
        if len(candles) < MIN_CANDLES:
            raise InsufficientDataError(MIN_CANDLES, len(candles), "backtesting")

        settings = self.settings
        if initial_capital is not None:
            settings = replace(settings, initial_capital=initial_capital).validate()

        indicator_sets = self.indicator_calculator.calculate_rolling(candles, strategy)

        state = SimulationState.initial(settings.initial_capital)
        trades: list[Trade] = []
        equity = [state.capital]
        drawdowns = [ZERO]

        for index in range(MIN_CANDLES, len(candles)):
            candle = candles[index]
            indicators = indicator_sets[index]
            signal = self.signal_generator.generate_signal(candle, indicators, strategy.style)

            state, trade = step(state, candle, indicators, signal, strategy, settings)
            if trade is not None:
                trades.append(trade)

            equity.append(state.capital)
            drawdowns.append(state.drawdown)

        final_capital = state.capital
        if state.position is not None:
            last_candle = candles[-1]
            trade = state.position.close(
                last_candle.timestamp, last_candle.close, ExitReason.END_OF_TEST
            )
            trades.append(trade)
            final_capital += trade.pnl

        metrics = aggregate(
            trades, equity, settings.initial_capital, settings.sharpe_periods_per_year
        )
        logger.info(
            f"Backtest {strategy.id} on {candles[0].symbol}: {len(trades)} trades, "
            f"final capital {final_capital:.2f}, max drawdown {metrics.max_drawdown:.2f}%"
        )

        return BacktestResult(
            initial_capital=settings.initial_capital,
            final_capital=final_capital,
            trades=tuple(trades),
            metrics=metrics,
            equity=tuple(equity),
            drawdowns=tuple(drawdowns),
            strategy_id=strategy.id,
            strategy_name=strategy.name,
            start_time=candles[0].timestamp,
            end_time=candles[-1].timestamp,
            symbol=candles[0].symbol,
            timeframe=candles[0].timeframe,
        )


def run_backtest(
    candles: Sequence[Candle],
    strategy: StrategyConfig,
    initial_capital: float = DEFAULT_INITIAL_CAPITAL,
    settings: BacktestSettings | None = None,
) -> BacktestResult:
    """Run a backtest with the default calculator and rule engine."""
    settings = replace(settings or BacktestSettings(), initial_capital=initial_capital)
    return BacktestEngine(settings=settings).run_backtest(candles, strategy)

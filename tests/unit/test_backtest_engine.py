"""
Unit tests for the position simulator.

Tests cover the per-candle state machine, forced exit scenarios, the
bookkeeping invariants of a run and the intrabar exit option.
"""

from dataclasses import replace

import pytest

from signal_backtester.core.enums import ExitPriority, ExitReason, PositionType, SignalType
from signal_backtester.core.exceptions.backtest import ConfigurationError, InsufficientDataError
from signal_backtester.core.models.backtest import BacktestSettings
from signal_backtester.core.models.indicators import (
    BandValues,
    BreakoutIndicators,
    InsufficientIndicators,
)
from signal_backtester.core.models.position import SimulatedPosition
from signal_backtester.core.models.strategy import StrategyConfig
from signal_backtester.engine.backtest_engine import (
    BacktestEngine,
    SimulationState,
    find_exit,
    run_backtest,
    step,
    volatility_unit,
)


class TestSimulationStep:
    """Test the single-candle transition function."""

    @pytest.fixture
    def settings(self) -> BacktestSettings:
        return BacktestSettings()

    def test_should_open_position_when_flat_and_signal_actionable(
        self, make_candles, trend_strategy: StrategyConfig, settings: BacktestSettings
    ) -> None:
        """Test a LONG signal opens a long position at the close."""
        candle = make_candles([100.0])[0]
        state = SimulationState.initial(10000.0)

        new_state, trade = step(
            state, candle, InsufficientIndicators(price=100.0), SignalType.LONG, trend_strategy, settings
        )

        assert trade is None
        assert new_state.position is not None
        assert new_state.position.side == PositionType.LONG
        assert new_state.position.entry_price == 100.0
        assert new_state.capital == 10000.0

    def test_should_ignore_neutral_signal_when_flat(
        self, make_candles, trend_strategy: StrategyConfig, settings: BacktestSettings
    ) -> None:
        """Test NEUTRAL leaves the state flat."""
        candle = make_candles([100.0])[0]
        new_state, trade = step(
            SimulationState.initial(10000.0),
            candle,
            InsufficientIndicators(price=100.0),
            SignalType.NEUTRAL,
            trend_strategy,
            settings,
        )

        assert new_state.is_flat
        assert trade is None

    def test_should_skip_entry_when_volatility_is_zero(
        self, make_candles, trend_strategy: StrategyConfig, settings: BacktestSettings
    ) -> None:
        """Test a candle without range cannot size a position."""
        candle = make_candles([100.0], wick=0.0)[0]
        new_state, trade = step(
            SimulationState.initial(10000.0),
            candle,
            InsufficientIndicators(price=100.0),
            SignalType.SHORT,
            trend_strategy,
            settings,
        )

        assert new_state.is_flat
        assert trade is None

    @pytest.mark.parametrize("capital", [0.0, -1e-12])
    def test_should_skip_entry_without_capital(
        self, capital, make_candles, trend_strategy: StrategyConfig, settings: BacktestSettings
    ) -> None:
        """Test an exhausted account stays flat and its drawdown is capped."""
        candle = make_candles([100.0])[0]
        state = SimulationState(capital=capital, max_equity=10000.0)

        new_state, trade = step(
            state, candle, InsufficientIndicators(price=100.0), SignalType.LONG, trend_strategy, settings
        )

        assert new_state.is_flat
        assert trade is None
        assert new_state.drawdown == pytest.approx(100.0)
        assert new_state.drawdown <= 100.0

    def test_should_close_position_and_update_capital(
        self, make_candles, trend_strategy: StrategyConfig, settings: BacktestSettings
    ) -> None:
        """Test a stop hit closes the trade and books its pnl."""
        position = SimulatedPosition.open(
            side=PositionType.LONG,
            entry_price=100.0,
            entry_time=0,
            capital=10000.0,
            risk_per_trade=0.01,
            atr_value=1.0,
            take_profit_ratio=2.0,
        )
        state = SimulationState(capital=10000.0, position=position, max_equity=10000.0)
        candle = make_candles([100.0, 97.0])[1]

        new_state, trade = step(
            state, candle, InsufficientIndicators(price=97.0), SignalType.NEUTRAL, trend_strategy, settings
        )

        assert trade is not None
        assert trade.exit_reason == ExitReason.STOP_LOSS
        assert trade.exit_price == pytest.approx(98.0)
        assert trade.pnl == pytest.approx(-100.0)
        assert new_state.is_flat
        assert new_state.capital == pytest.approx(9900.0)
        assert new_state.drawdown == pytest.approx(1.0)

    def test_should_not_reopen_on_the_closing_candle(
        self, make_candles, trend_strategy: StrategyConfig, settings: BacktestSettings
    ) -> None:
        """Test a reversal closes the position but does not flip it."""
        position = SimulatedPosition.open(
            side=PositionType.LONG,
            entry_price=100.0,
            entry_time=0,
            capital=10000.0,
            risk_per_trade=0.01,
            atr_value=1.0,
            take_profit_ratio=2.0,
        )
        state = SimulationState(capital=10000.0, position=position, max_equity=10000.0)
        candle = make_candles([100.0, 100.5])[1]

        new_state, trade = step(
            state, candle, InsufficientIndicators(price=100.5), SignalType.SHORT, trend_strategy, settings
        )

        assert trade.exit_reason == ExitReason.SIGNAL_REVERSAL
        assert trade.exit_price == 100.5
        assert new_state.is_flat


class TestExitRules:
    """Test exit detection and volatility unit selection."""

    @pytest.fixture
    def long_position(self) -> SimulatedPosition:
        # stop 96, target 104
        return SimulatedPosition.open(
            side=PositionType.LONG,
            entry_price=100.0,
            entry_time=0,
            capital=10000.0,
            risk_per_trade=0.01,
            atr_value=2.0,
            take_profit_ratio=1.0,
        )

    @pytest.fixture
    def wide_candle(self, wide_bar_candles):
        return wide_bar_candles[51]

    def test_should_use_close_by_default(self, long_position, wide_candle) -> None:
        """Test wicks through both levels are ignored without intrabar exits."""
        assert find_exit(long_position, wide_candle, SignalType.NEUTRAL, BacktestSettings()) is None

    def test_should_prefer_stop_loss_when_both_levels_breached(
        self, long_position, wide_candle
    ) -> None:
        """Test the default tie-break books the stop."""
        settings = BacktestSettings(intrabar_exits=True)
        assert find_exit(long_position, wide_candle, SignalType.NEUTRAL, settings) == (
            ExitReason.STOP_LOSS,
            pytest.approx(96.0),
        )

    def test_should_prefer_take_profit_when_configured(self, long_position, wide_candle) -> None:
        """Test the tie-break can favour the target."""
        settings = BacktestSettings(
            intrabar_exits=True, exit_priority=ExitPriority.TAKE_PROFIT_FIRST
        )
        assert find_exit(long_position, wide_candle, SignalType.NEUTRAL, settings) == (
            ExitReason.TAKE_PROFIT,
            pytest.approx(104.0),
        )

    def test_should_check_stop_before_reversal(self, long_position, make_candles) -> None:
        """Test a stop hit wins over an opposite signal on the same candle."""
        candle = make_candles([100.0, 95.0])[1]
        reason, price = find_exit(long_position, candle, SignalType.SHORT, BacktestSettings())

        assert reason == ExitReason.STOP_LOSS
        assert price == pytest.approx(96.0)

    def test_should_use_atr_when_available(self, make_candles) -> None:
        """Test breakout indicators supply the ATR as volatility unit."""
        candle = make_candles([100.0])[0]
        indicators = BreakoutIndicators(
            price=100.0,
            price_change=0.0,
            volatility=0.0,
            atr=3.0,
            donchian=BandValues(),
            volume_change=0.0,
        )

        assert volatility_unit(candle, indicators) == 3.0
        assert volatility_unit(candle, replace(indicators, atr=0.0)) == pytest.approx(candle.range)
        assert volatility_unit(candle, InsufficientIndicators(price=100.0)) == pytest.approx(
            candle.range
        )


class TestForcedScenarios:
    """Test stop loss, take profit and end-of-test exits on crafted series."""

    @pytest.fixture
    def engine_factory(self, scripted_signals):
        def factory(signals: dict[int, SignalType], **settings) -> BacktestEngine:
            return BacktestEngine(
                signal_generator=scripted_signals(signals), settings=BacktestSettings(**settings)
            )

        return factory

    def test_should_stop_out_long_on_falling_series(
        self, engine_factory, falling_candles, trend_strategy: StrategyConfig
    ) -> None:
        """Test a forced LONG in a falling market exits at the stop."""
        result = engine_factory({50: SignalType.LONG}).run_backtest(falling_candles, trend_strategy)

        assert len(result.trades) == 1
        trade = result.trades[0]
        assert trade.type == PositionType.LONG
        assert trade.exit_reason == ExitReason.STOP_LOSS
        assert trade.exit_time == falling_candles[53].timestamp
        assert trade.pnl < 0
        assert trade.pnl == pytest.approx(-100.0)

    def test_should_take_profit_long_on_rising_series(
        self, engine_factory, make_candles, make_closes, trend_strategy: StrategyConfig
    ) -> None:
        """Test a forced LONG in a rising market exits at the target."""
        candles = make_candles(make_closes(60, 0.01))
        strategy = trend_strategy.with_updates(take_profit_ratio=1.0)

        result = engine_factory({50: SignalType.LONG}).run_backtest(candles, strategy)

        assert len(result.trades) == 1
        trade = result.trades[0]
        assert trade.exit_reason == ExitReason.TAKE_PROFIT
        assert trade.exit_time == candles[53].timestamp
        assert trade.pnl > 0
        assert trade.pnl == pytest.approx(100.0)

    def test_should_close_open_position_at_end_of_test(
        self, engine_factory, flat_candles, trend_strategy: StrategyConfig
    ) -> None:
        """Test a position still open after the last candle is closed there."""
        result = engine_factory({57: SignalType.LONG}).run_backtest(flat_candles, trend_strategy)

        assert len(result.trades) == 1
        trade = result.trades[0]
        assert trade.exit_reason == ExitReason.END_OF_TEST
        assert trade.exit_time == flat_candles[-1].timestamp
        assert trade.exit_price == flat_candles[-1].close
        assert trade.pnl == pytest.approx(0.0)

    def test_should_stop_out_trend_entry_when_rally_collapses(
        self, rally_crash_candles, trend_strategy: StrategyConfig
    ) -> None:
        """Test the trend rules enter a rally and the stop catches the crash."""
        candles = rally_crash_candles

        result = BacktestEngine().run_backtest(candles, trend_strategy)

        first = result.trades[0]
        assert first.type == PositionType.LONG
        assert first.entry_time == candles[50].timestamp
        assert first.exit_reason == ExitReason.STOP_LOSS
        assert first.exit_time == candles[51].timestamp
        assert first.pnl == pytest.approx(-100.0)

    def test_should_take_profit_trend_entry_in_steady_rally(
        self, make_candles, make_closes, trend_strategy: StrategyConfig
    ) -> None:
        """Test the trend rules ride a steady rally to the target."""
        candles = make_candles(make_closes(60, 0.01))

        result = BacktestEngine().run_backtest(candles, trend_strategy)

        first = result.trades[0]
        assert first.type == PositionType.LONG
        assert first.exit_reason == ExitReason.TAKE_PROFIT
        assert first.exit_time == candles[55].timestamp
        assert first.pnl == pytest.approx(200.0)

    def test_should_apply_intrabar_exit_priority(
        self, engine_factory, wide_bar_candles, trend_strategy: StrategyConfig
    ) -> None:
        """Test the exit booked on a candle breaching both levels."""
        candles = wide_bar_candles
        strategy = trend_strategy.with_updates(take_profit_ratio=1.0)
        signals = {50: SignalType.LONG}

        by_close = engine_factory(signals).run_backtest(candles, strategy)
        stop_first = engine_factory(signals, intrabar_exits=True).run_backtest(candles, strategy)
        target_first = engine_factory(
            signals, intrabar_exits=True, exit_priority=ExitPriority.TAKE_PROFIT_FIRST
        ).run_backtest(candles, strategy)

        assert by_close.trades[0].exit_reason == ExitReason.END_OF_TEST
        assert by_close.trades[0].pnl == pytest.approx(12.5)
        assert stop_first.trades[0].exit_reason == ExitReason.STOP_LOSS
        assert stop_first.trades[0].pnl == pytest.approx(-100.0)
        assert target_first.trades[0].exit_reason == ExitReason.TAKE_PROFIT
        assert target_first.trades[0].pnl == pytest.approx(100.0)

    def test_should_skip_signals_without_volatility(
        self, engine_factory, make_candles, trend_strategy: StrategyConfig
    ) -> None:
        """Test entries on zero-range candles are skipped."""
        candles = make_candles([100.0] * 60, wick=0.0)

        result = engine_factory({50: SignalType.LONG}).run_backtest(candles, trend_strategy)

        assert result.trades == ()
        assert result.final_capital == result.initial_capital

    def test_should_skip_entries_once_full_risk_stop_wipes_capital(
        self, engine_factory, falling_candles, trend_strategy: StrategyConfig
    ) -> None:
        """Test a full-risk stop leaves nothing to size the next entry with."""
        strategy = trend_strategy.with_updates(risk_per_trade=1.0)
        signals = {50: SignalType.LONG, 55: SignalType.LONG}

        result = engine_factory(signals).run_backtest(falling_candles, strategy)

        first = result.trades[0]
        assert first.exit_reason == ExitReason.STOP_LOSS
        assert first.pnl == pytest.approx(-10000.0)
        assert all(abs(trade.pnl) <= 1e-6 for trade in result.trades[1:])
        assert result.final_capital == pytest.approx(0.0, abs=1e-6)
        assert all(0.0 <= value <= 100.0 for value in result.drawdowns)
        assert result.max_drawdown <= 100.0


class TestBacktestEngine:
    """Test whole-run behaviour and bookkeeping invariants."""

    def test_should_reject_fewer_than_minimum_candles(
        self, random_walk_candles, trend_strategy: StrategyConfig
    ) -> None:
        """Test series shorter than 50 candles raise."""
        with pytest.raises(InsufficientDataError) as exc_info:
            BacktestEngine().run_backtest(random_walk_candles[:49], trend_strategy)

        assert exc_info.value.required == 50
        assert exc_info.value.available == 49

    def test_should_reject_invalid_capital(self) -> None:
        """Test out-of-range settings fail at construction."""
        with pytest.raises(ConfigurationError):
            BacktestEngine(settings=BacktestSettings(initial_capital=0.0))

    def test_should_produce_identical_results_for_identical_inputs(
        self, random_walk_candles, breakout_strategy: StrategyConfig
    ) -> None:
        """Test runs are deterministic."""
        first = BacktestEngine().run_backtest(random_walk_candles, breakout_strategy)
        second = BacktestEngine().run_backtest(random_walk_candles, breakout_strategy)

        assert first.to_dict() == second.to_dict()

    @pytest.mark.parametrize(
        "strategy_fixture", ["trend_strategy", "mean_reversion_strategy", "breakout_strategy"]
    )
    def test_should_keep_bookkeeping_invariants(
        self, request, random_walk_candles, strategy_fixture: str
    ) -> None:
        """Test equity, drawdown and trade log stay mutually consistent."""
        strategy = request.getfixturevalue(strategy_fixture)
        result = BacktestEngine().run_backtest(random_walk_candles, strategy)

        assert len(result.equity) == len(random_walk_candles) - 49
        assert len(result.drawdowns) == len(result.equity)
        assert result.equity[0] == result.initial_capital
        assert result.final_capital == pytest.approx(
            result.initial_capital + sum(trade.pnl for trade in result.trades)
        )
        assert all(0.0 <= drawdown <= 100.0 for drawdown in result.drawdowns)
        assert 0.0 <= result.win_rate <= 1.0

        peak = result.equity[0]
        for value, drawdown in zip(result.equity, result.drawdowns):
            peak = max(peak, value)
            if value == peak:
                assert drawdown == 0.0

        for previous, current in zip(result.trades, result.trades[1:]):
            assert current.entry_time > previous.exit_time
        for trade in result.trades:
            assert trade.exit_time >= trade.entry_time

    def test_should_report_zero_metrics_without_trades(
        self, flat_candles, trend_strategy: StrategyConfig
    ) -> None:
        """Test a run without trades yields zeros instead of errors."""
        result = BacktestEngine().run_backtest(flat_candles, trend_strategy)

        assert result.trades == ()
        assert result.win_rate == 0.0
        assert result.profit_factor == 0.0
        assert result.sharpe_ratio == 0.0
        assert result.max_drawdown == 0.0
        assert result.final_capital == result.initial_capital

    def test_should_not_mutate_inputs(
        self, random_walk_candles, trend_strategy: StrategyConfig
    ) -> None:
        """Test the strategy and candle list are left untouched."""
        candles_before = list(random_walk_candles)
        strategy_before = trend_strategy.to_dict()

        BacktestEngine().run_backtest(random_walk_candles, trend_strategy)

        assert random_walk_candles == candles_before
        assert trend_strategy.to_dict() == strategy_before

    def test_should_fill_result_metadata(
        self, random_walk_candles, trend_strategy: StrategyConfig
    ) -> None:
        """Test the result carries strategy and series identification."""
        result = run_backtest(random_walk_candles, trend_strategy, initial_capital=5000.0)

        assert result.initial_capital == 5000.0
        assert result.strategy_id == "trend-following"
        assert result.strategy_name == "Trend Following"
        assert result.start_time == random_walk_candles[0].timestamp
        assert result.end_time == random_walk_candles[-1].timestamp
        assert result.symbol == "BTCUSDT"

    def test_should_evaluate_signals_from_candle_fifty(
        self, scripted_signals, random_walk_candles, trend_strategy: StrategyConfig
    ) -> None:
        """Test the signal generator is consulted once per candle after warm-up."""
        generator = scripted_signals({})

        BacktestEngine(signal_generator=generator).run_backtest(random_walk_candles, trend_strategy)

        assert generator.calls == len(random_walk_candles) - 50

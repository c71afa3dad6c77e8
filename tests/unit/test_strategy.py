"""
Unit tests for strategy configuration models.
"""

import pytest

from signal_backtester.core.enums import MarketRegime, StopLossType, StrategyStyle
from signal_backtester.core.exceptions.backtest import ValidationError
from signal_backtester.core.models.strategy import (
    IndicatorSelection,
    StrategyConfig,
    ValidationMetrics,
)


class TestStrategyConfig:
    """Test suite for StrategyConfig."""

    @pytest.mark.parametrize("risk", [0.0, -0.01, 1.5])
    def test_should_reject_risk_outside_unit_interval(self, risk: float) -> None:
        """Test risk_per_trade must be in (0, 1]."""
        with pytest.raises(ValidationError, match="risk_per_trade"):
            StrategyConfig(
                id="s", name="S", style=StrategyStyle.TREND, risk_per_trade=risk, take_profit_ratio=2.0
            )

    def test_should_reject_non_positive_take_profit_ratio(self) -> None:
        """Test take_profit_ratio must be positive."""
        with pytest.raises(ValidationError, match="take_profit_ratio"):
            StrategyConfig(
                id="s", name="S", style=StrategyStyle.TREND, risk_per_trade=0.01, take_profit_ratio=0.0
            )

    def test_should_reject_empty_id(self) -> None:
        """Test ids are required."""
        with pytest.raises(ValidationError, match="id"):
            StrategyConfig(
                id="", name="S", style=StrategyStyle.TREND, risk_per_trade=0.01, take_profit_ratio=1.0
            )

    def test_should_coerce_regime_values(self) -> None:
        """Test plain regime strings become a frozenset of enums."""
        strategy = StrategyConfig(
            id="s",
            name="S",
            style=StrategyStyle.BREAKOUT,
            risk_per_trade=0.01,
            take_profit_ratio=1.0,
            suitable_regimes=["VOLATILE", "TRENDING"],  # type: ignore[arg-type]
        )

        assert strategy.suitable_regimes == frozenset(
            {MarketRegime.VOLATILE, MarketRegime.TRENDING}
        )
        assert strategy.is_suitable_for(MarketRegime.VOLATILE)
        assert not strategy.is_suitable_for(MarketRegime.RANGING)

    def test_should_return_updated_copy(self, trend_strategy: StrategyConfig) -> None:
        """Test with_updates leaves the original untouched."""
        updated = trend_strategy.with_updates(risk_per_trade=0.02)

        assert updated.risk_per_trade == 0.02
        assert trend_strategy.risk_per_trade == 0.01
        assert updated.id == trend_strategy.id

    def test_should_validate_updates(self, trend_strategy: StrategyConfig) -> None:
        """Test invalid updates raise like construction does."""
        with pytest.raises(ValidationError):
            trend_strategy.with_updates(take_profit_ratio=-1.0)

    def test_should_serialize_with_camel_case_keys(self, trend_strategy: StrategyConfig) -> None:
        """Test to_dict shape with and without validation results."""
        data = trend_strategy.to_dict()

        assert data["riskPerTrade"] == 0.01
        assert data["stopLossType"] == StopLossType.ATR.value
        assert data["suitableRegimes"] == ["TRENDING"]
        assert "backTestResult" not in data

        metrics = ValidationMetrics(win_rate=0.6, expectancy=0.002, trades=10, avg_win=0.01, avg_loss=0.01)
        validated = trend_strategy.with_updates(validation=metrics)
        assert validated.to_dict()["backTestResult"]["winRate"] == 0.6


class TestIndicatorSelection:
    """Test suite for IndicatorSelection."""

    def test_should_serialize_roles_as_lists(self) -> None:
        """Test primary and confirmation lists."""
        selection = IndicatorSelection(primary=("rsi",), confirmation=("volume",))
        assert selection.to_dict() == {"primary": ["rsi"], "confirmation": ["volume"]}

"""
Pydantic schemas for API request models.

Requests accept snake_case or the camelCase keys the dashboard sends.
Responses are the domain objects' ``to_dict`` output.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from signal_backtester.core.constants import DEFAULT_INITIAL_CAPITAL
from signal_backtester.core.enums import (
    ExitPriority,
    MarketRegime,
    StopLossType,
    StrategyStyle,
    Timeframe,
)
from signal_backtester.core.models.candle import Candle
from signal_backtester.core.models.strategy import IndicatorSelection, StrategyConfig


class _RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CandleModel(_RequestModel):
    """One OHLCV candle."""

    symbol: str
    timestamp: int = Field(..., ge=0, description="Milliseconds since epoch")
    open: float = Field(..., gt=0)
    high: float = Field(..., gt=0)
    low: float = Field(..., gt=0)
    close: float = Field(..., gt=0)
    volume: float = Field(..., ge=0)
    timeframe: Timeframe

    def to_domain(self) -> Candle:
        """Convert to a domain candle."""
        return Candle(**self.model_dump())


class IndicatorSelectionModel(_RequestModel):
    """Indicator names by role."""

    primary: list[str] = Field(default_factory=list)
    confirmation: list[str] = Field(default_factory=list)

    def to_domain(self) -> IndicatorSelection:
        return IndicatorSelection(
            primary=tuple(self.primary), confirmation=tuple(self.confirmation)
        )


class StrategyFields(_RequestModel):
    """Editable strategy fields, all optional."""

    name: str | None = None
    style: StrategyStyle | None = None
    risk_per_trade: float | None = Field(default=None, gt=0, le=1)
    take_profit_ratio: float | None = Field(default=None, gt=0)
    stop_loss_type: StopLossType | None = None
    indicators: IndicatorSelectionModel | None = None
    suitable_regimes: list[MarketRegime] | None = None

    def to_updates(self) -> dict[str, Any]:
        """Fields the caller actually set, converted to domain values."""
        updates: dict[str, Any] = {}
        for field_name in self.model_fields_set:
            value = getattr(self, field_name)
            if value is None:
                continue
            if field_name == "indicators":
                value = value.to_domain()
            elif field_name == "suitable_regimes":
                value = frozenset(value)
            updates[field_name] = value
        return updates


class StrategyModel(_RequestModel):
    """A complete strategy definition."""

    id: str = Field(..., min_length=1)
    name: str
    style: StrategyStyle
    risk_per_trade: float = Field(..., gt=0, le=1, description="Fraction of capital at risk")
    take_profit_ratio: float = Field(..., gt=0, description="Reward to risk multiple")
    stop_loss_type: StopLossType = StopLossType.ATR
    indicators: IndicatorSelectionModel = Field(default_factory=IndicatorSelectionModel)
    suitable_regimes: list[MarketRegime] = Field(default_factory=list)

    def to_domain(self) -> StrategyConfig:
        """Convert to a domain strategy."""
        return StrategyConfig(
            id=self.id,
            name=self.name,
            style=self.style,
            risk_per_trade=self.risk_per_trade,
            take_profit_ratio=self.take_profit_ratio,
            stop_loss_type=self.stop_loss_type,
            indicators=self.indicators.to_domain(),
            suitable_regimes=frozenset(self.suitable_regimes),
        )


class CandleSeriesRequest(_RequestModel):
    """Base for requests carrying a candle series."""

    candles: list[CandleModel] = Field(..., min_length=1)

    def domain_candles(self) -> list[Candle]:
        return [candle.to_domain() for candle in self.candles]


class BacktestRequest(CandleSeriesRequest):
    """Request model for a backtest run: a catalogue id or an inline strategy."""

    strategy_id: str | None = None
    strategy: StrategyModel | None = None
    initial_capital: float = Field(default=DEFAULT_INITIAL_CAPITAL, gt=0)
    intrabar_exits: bool = False
    exit_priority: ExitPriority = ExitPriority.STOP_LOSS_FIRST

    @model_validator(mode="after")
    def validate_strategy_source(self) -> "BacktestRequest":
        """Exactly one of strategy_id / strategy must be given."""
        if (self.strategy_id is None) == (self.strategy is None):
            raise ValueError("Provide exactly one of strategy_id or strategy")
        return self


class IndicatorRequest(CandleSeriesRequest):
    """Request model for indicator calculation."""

    strategy_id: str


class AnalyzeRequest(CandleSeriesRequest):
    """Request model for regime detection and strategy ranking."""


class StrategyCreateRequest(StrategyFields):
    """Request model for a new catalogue strategy."""

    name: str = "New Strategy"

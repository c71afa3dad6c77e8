"""
Strategy configuration models.
"""

from dataclasses import dataclass, field, replace
from typing import Any

from signal_backtester.core.enums import MarketRegime, StopLossType, StrategyStyle
from signal_backtester.core.exceptions.backtest import ValidationError
from signal_backtester.core.utils.validation import validate_fraction, validate_positive


@dataclass(frozen=True)
class IndicatorSelection:
    """Indicators a strategy watches, split by role."""

    primary: tuple[str, ...] = ()
    confirmation: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        """Convert selection to dictionary."""
        return {"primary": list(self.primary), "confirmation": list(self.confirmation)}


@dataclass(frozen=True)
class ValidationMetrics:
    """Outcome of the one-step-ahead validation run for a strategy."""

    win_rate: float
    expectancy: float
    trades: int
    avg_win: float
    avg_loss: float

    def to_dict(self) -> dict:
        """Convert metrics to dictionary."""
        return {
            "winRate": self.win_rate,
            "expectancy": self.expectancy,
            "trades": self.trades,
            "avgWin": self.avg_win,
            "avgLoss": self.avg_loss,
        }


@dataclass(frozen=True)
class StrategyConfig:
    """A named rule-set evaluated by the simulator and the validator.

    Instances are immutable; use ``with_updates`` to derive a changed copy.
    """

    id: str
    name: str
    style: StrategyStyle
    risk_per_trade: float
    take_profit_ratio: float
    stop_loss_type: StopLossType = StopLossType.ATR
    indicators: IndicatorSelection = field(default_factory=IndicatorSelection)
    suitable_regimes: frozenset[MarketRegime] = frozenset()
    validation: ValidationMetrics | None = None

    def __post_init__(self) -> None:
        """Validate strategy parameters after initialization."""
        if not self.id:
            raise ValidationError("Strategy id must not be empty")
        validate_fraction(self.risk_per_trade, "risk_per_trade")
        validate_positive(self.take_profit_ratio, "take_profit_ratio")
        # Accept plain iterables of regimes from callers
        if not isinstance(self.suitable_regimes, frozenset):
            object.__setattr__(
                self, "suitable_regimes", frozenset(MarketRegime(r) for r in self.suitable_regimes)
            )

    def is_suitable_for(self, regime: MarketRegime) -> bool:
        """Check if the strategy is meant for the given market regime."""
        return regime in self.suitable_regimes

    def with_updates(self, **changes: Any) -> "StrategyConfig":
        """Return a copy with the given fields replaced (validated again)."""
        return replace(self, **changes)

    def to_dict(self) -> dict:
        """Convert strategy to dictionary."""
        result = {
            "id": self.id,
            "name": self.name,
            "style": self.style.value,
            "riskPerTrade": self.risk_per_trade,
            "takeProfitRatio": self.take_profit_ratio,
            "stopLossType": self.stop_loss_type.value,
            "indicators": self.indicators.to_dict(),
            "suitableRegimes": sorted(regime.value for regime in self.suitable_regimes),
        }
        if self.validation is not None:
            result["backTestResult"] = self.validation.to_dict()
        return result

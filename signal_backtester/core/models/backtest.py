"""
Backtest configuration and results models.
"""

from dataclasses import dataclass

from signal_backtester.core.constants import (
    DEFAULT_INITIAL_CAPITAL,
    MAX_INITIAL_CAPITAL,
    MIN_INITIAL_CAPITAL,
    SHARPE_PERIODS_PER_YEAR,
    VOLATILITY_ANNUALIZATION,
)
from signal_backtester.core.enums import ExitPriority, Timeframe
from signal_backtester.core.exceptions.backtest import ConfigurationError

from .trade import Trade


@dataclass(frozen=True)
class BacktestSettings:
    """Per-run knobs for the position simulator.

    ``intrabar_exits`` compares stops and targets against each candle's
    low/high instead of its close; only then can one candle breach both
    levels, and ``exit_priority`` decides which one is booked.
    """

    initial_capital: float = DEFAULT_INITIAL_CAPITAL
    sharpe_periods_per_year: float = SHARPE_PERIODS_PER_YEAR
    volatility_annualization: float = VOLATILITY_ANNUALIZATION
    exit_priority: ExitPriority = ExitPriority.STOP_LOSS_FIRST
    intrabar_exits: bool = False

    def is_valid_capital(self) -> bool:
        """Validate initial capital is within limits."""
        return MIN_INITIAL_CAPITAL <= self.initial_capital <= MAX_INITIAL_CAPITAL

    def is_valid_annualization(self) -> bool:
        """Validate annualization factors are positive."""
        return self.sharpe_periods_per_year > 0 and self.volatility_annualization > 0

    def validate(self) -> "BacktestSettings":
        """Raise ``ConfigurationError`` if any setting is out of range."""
        if not self.is_valid_capital():
            raise ConfigurationError(
                f"Initial capital must be between {MIN_INITIAL_CAPITAL} and "
                f"{MAX_INITIAL_CAPITAL}, got {self.initial_capital}"
            )
        if not self.is_valid_annualization():
            raise ConfigurationError("Annualization factors must be positive")
        return self

    def to_dict(self) -> dict:
        """Convert settings to dictionary."""
        return {
            "initial_capital": self.initial_capital,
            "sharpe_periods_per_year": self.sharpe_periods_per_year,
            "volatility_annualization": self.volatility_annualization,
            "exit_priority": self.exit_priority.value,
            "intrabar_exits": self.intrabar_exits,
        }


@dataclass(frozen=True)
class PerformanceMetrics:
    """Summary statistics reduced from a trade log and equity curve."""

    total_pnl: float
    total_pnl_percentage: float
    win_rate: float
    average_win: float
    average_loss: float
    profit_factor: float
    max_drawdown: float
    sharpe_ratio: float

    def to_dict(self) -> dict:
        """Convert metrics to dictionary."""
        return {
            "totalPnL": self.total_pnl,
            "totalPnLPercentage": self.total_pnl_percentage,
            "winRate": self.win_rate,
            "averageWin": self.average_win,
            "averageLoss": self.average_loss,
            "profitFactor": self.profit_factor,
            "maxDrawdown": self.max_drawdown,
            "sharpeRatio": self.sharpe_ratio,
        }


@dataclass(frozen=True)
class BacktestResult:
    """Results from one backtest run."""

    initial_capital: float
    final_capital: float
    trades: tuple[Trade, ...]
    metrics: PerformanceMetrics
    equity: tuple[float, ...]
    drawdowns: tuple[float, ...]
    strategy_id: str
    strategy_name: str
    start_time: int
    end_time: int
    symbol: str
    timeframe: Timeframe

    @property
    def total_pnl(self) -> float:
        return self.metrics.total_pnl

    @property
    def total_pnl_percentage(self) -> float:
        return self.metrics.total_pnl_percentage

    @property
    def win_rate(self) -> float:
        return self.metrics.win_rate

    @property
    def average_win(self) -> float:
        return self.metrics.average_win

    @property
    def average_loss(self) -> float:
        return self.metrics.average_loss

    @property
    def profit_factor(self) -> float:
        return self.metrics.profit_factor

    @property
    def max_drawdown(self) -> float:
        return self.metrics.max_drawdown

    @property
    def sharpe_ratio(self) -> float:
        return self.metrics.sharpe_ratio

    def to_dict(self) -> dict:
        """Convert results to dictionary."""
        return {
            "initialCapital": self.initial_capital,
            "finalCapital": self.final_capital,
            **self.metrics.to_dict(),
            "trades": [trade.to_dict() for trade in self.trades],
            "equity": list(self.equity),
            "drawdowns": list(self.drawdowns),
            "strategyId": self.strategy_id,
            "strategyName": self.strategy_name,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "symbol": self.symbol,
            "timeframe": self.timeframe.value,
        }

"""
Trade domain model.
"""

from dataclasses import dataclass

from signal_backtester.core.enums import ExitReason, PositionType
from signal_backtester.core.exceptions.backtest import ValidationError


@dataclass(frozen=True)
class Trade:
    """A closed simulated position, appended to the trade log."""

    entry_time: int
    entry_price: float
    exit_time: int
    exit_price: float
    type: PositionType
    pnl: float
    pnl_percentage: float
    exit_reason: ExitReason

    def __post_init__(self) -> None:
        """Validate trade data after initialization."""
        if self.entry_price <= 0:
            raise ValidationError(f"Entry price must be positive, got {self.entry_price}")
        if self.exit_time < self.entry_time:
            raise ValidationError(
                f"Exit time {self.exit_time} precedes entry time {self.entry_time}"
            )

    @property
    def is_winner(self) -> bool:
        """Check if the trade made money."""
        return self.pnl > 0

    def duration(self) -> int:
        """Holding time in milliseconds."""
        return self.exit_time - self.entry_time

    def to_dict(self) -> dict:
        """Convert trade to dictionary."""
        return {
            "entryTime": self.entry_time,
            "entryPrice": self.entry_price,
            "exitTime": self.exit_time,
            "exitPrice": self.exit_price,
            "type": self.type.value,
            "pnl": self.pnl,
            "pnlPercentage": self.pnl_percentage,
            "exitReason": self.exit_reason.value,
        }

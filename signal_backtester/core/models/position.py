"""
Simulated position model.

A position lives only inside one backtest run: it is opened on an
actionable signal while flat and turned into a ``Trade`` when it closes.
"""

from dataclasses import dataclass

from signal_backtester.core.constants import STOP_LOSS_ATR_MULTIPLIER
from signal_backtester.core.enums import ExitReason, PositionType
from signal_backtester.core.exceptions.backtest import CalculationError, ValidationError
from signal_backtester.core.models.trade import Trade
from signal_backtester.core.types.financial import HUNDRED, ZERO, calculate_pnl, safe_divide


@dataclass(frozen=True)
class SimulatedPosition:
    """The single open position of a backtest run."""

    side: PositionType
    entry_price: float
    entry_time: int
    size: float
    stop_loss: float
    take_profit: float

    def __post_init__(self) -> None:
        """Validate position data after initialization."""
        if self.entry_price <= ZERO:
            raise ValidationError(f"Entry price must be positive, got {self.entry_price}")
        if self.size <= ZERO:
            raise ValidationError(f"Position size must be positive, got {self.size}")

    @classmethod
    def open(
        cls,
        side: PositionType,
        entry_price: float,
        entry_time: int,
        capital: float,
        risk_per_trade: float,
        atr_value: float,
        take_profit_ratio: float,
    ) -> "SimulatedPosition":
        """Size a position so that hitting the stop loses ``capital * risk_per_trade``.

        The stop sits ``2 * atr_value`` away from the entry; the target sits
        ``take_profit_ratio`` times that distance on the other side.

        Args:
            side: Long or short
            entry_price: Fill price (the signal candle's close)
            entry_time: Fill timestamp
            capital: Capital available when the signal fires
            risk_per_trade: Fraction of capital put at risk
            atr_value: Volatility unit used for the stop distance
            take_profit_ratio: Reward to risk multiple

        Raises:
            CalculationError: If the stop distance is zero
        """
        stop_distance = atr_value * STOP_LOSS_ATR_MULTIPLIER
        if stop_distance <= ZERO:
            raise CalculationError(
                f"Cannot size position at {entry_price}: stop distance is {stop_distance}"
            )

        direction = side.direction
        stop_loss = entry_price - direction * stop_distance
        take_profit = entry_price + direction * stop_distance * take_profit_ratio
        risk_amount = capital * risk_per_trade

        return cls(
            side=side,
            entry_price=entry_price,
            entry_time=entry_time,
            size=risk_amount / abs(entry_price - stop_loss),
            stop_loss=stop_loss,
            take_profit=take_profit,
        )

    def stop_loss_hit(self, price: float) -> bool:
        """Check if ``price`` crosses the stop against the position."""
        if self.side.is_long:
            return price <= self.stop_loss
        return price >= self.stop_loss

    def take_profit_hit(self, price: float) -> bool:
        """Check if ``price`` reaches the target in favour of the position."""
        if self.side.is_long:
            return price >= self.take_profit
        return price <= self.take_profit

    def unrealized_pnl(self, price: float) -> float:
        """PnL if the position were closed at ``price``."""
        return calculate_pnl(self.entry_price, price, self.size, self.side.value)

    def close(self, exit_time: int, exit_price: float, reason: ExitReason) -> Trade:
        """Turn the position into an immutable trade record."""
        pnl = self.unrealized_pnl(exit_price)
        return Trade(
            entry_time=self.entry_time,
            entry_price=self.entry_price,
            exit_time=exit_time,
            exit_price=exit_price,
            type=self.side,
            pnl=pnl,
            pnl_percentage=safe_divide(pnl, self.entry_price * self.size) * HUNDRED,
            exit_reason=reason,
        )

"""
Trade exit enumerations.
"""

from enum import StrEnum


class ExitReason(StrEnum):
    """Why a simulated position was closed."""

    STOP_LOSS = "Stop Loss"
    TAKE_PROFIT = "Take Profit"
    SIGNAL_REVERSAL = "Signal Reversal"
    END_OF_TEST = "End of Test"

    @property
    def is_protective(self) -> bool:
        """Check if the exit was triggered by a price level."""
        return self in [self.STOP_LOSS, self.TAKE_PROFIT]


class ExitPriority(StrEnum):
    """
    Which price level wins when one candle breaches both.

    Only reachable with intrabar exits, where a candle's high/low range
    can cross the stop and the target at once.
    """

    STOP_LOSS_FIRST = "stop_loss_first"
    TAKE_PROFIT_FIRST = "take_profit_first"

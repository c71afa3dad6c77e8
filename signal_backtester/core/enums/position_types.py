"""
Position side and signal enumerations.

This module defines the allowed position sides and the trade signals
produced by the rule engine.
"""

from enum import StrEnum


class PositionType(StrEnum):
    """
    Allowed position types.

    Defines whether a simulated position is long or short.
    """

    LONG = "long"
    SHORT = "short"

    @property
    def is_long(self) -> bool:
        """Check if position type is long."""
        return self == self.LONG

    @property
    def is_short(self) -> bool:
        """Check if position type is short."""
        return self == self.SHORT

    @property
    def direction(self) -> float:
        """Sign applied to price moves: +1 for long, -1 for short."""
        return 1.0 if self.is_long else -1.0

    def opposite(self) -> "PositionType":
        """Get the opposite position type."""
        return self.SHORT if self.is_long else self.LONG  # type: ignore[return-value]


class SignalType(StrEnum):
    """
    Trade signal emitted by the rule engine.

    NEUTRAL never opens a position; LONG and SHORT map onto position sides.
    """

    LONG = "LONG"
    SHORT = "SHORT"
    NEUTRAL = "NEUTRAL"

    @property
    def is_actionable(self) -> bool:
        """Check if the signal can open a position."""
        return self != self.NEUTRAL

    def to_position_type(self) -> PositionType | None:
        """Get the position side opened by this signal."""
        if self == self.LONG:
            return PositionType.LONG
        elif self == self.SHORT:
            return PositionType.SHORT
        return None

    def reverses(self, position_type: PositionType) -> bool:
        """Check if this signal points against an open position."""
        return self.to_position_type() == position_type.opposite()

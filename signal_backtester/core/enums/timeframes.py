"""
Candle timeframe enumerations.

Series are sampled at one of these intervals; the interval length is what
the OHLCV validator checks timestamp spacing against.
"""

from enum import StrEnum

_MINUTE_MS = 60_000


class Timeframe(StrEnum):
    """Candle interval, valued by its exchange notation."""

    M1 = "1m"
    M5 = "5m"
    M15 = "15m"
    M30 = "30m"
    H1 = "1h"
    H4 = "4h"
    D1 = "1d"
    W1 = "1w"

    @property
    def milliseconds(self) -> int:
        """Spacing between consecutive candle timestamps."""
        return _INTERVAL_MINUTES[self] * _MINUTE_MS

    @classmethod
    def from_string(cls, value: str) -> "Timeframe":
        """Parse a case-insensitive interval such as ``"1H"``.

        Raises:
            ValueError: If the interval is not supported
        """
        try:
            return cls(value.lower())
        except ValueError:
            raise ValueError(
                f"Unsupported timeframe: {value}. "
                f"Supported timeframes: {', '.join(tf.value for tf in cls)}"
            ) from None


_INTERVAL_MINUTES = {
    Timeframe.M1: 1,
    Timeframe.M5: 5,
    Timeframe.M15: 15,
    Timeframe.M30: 30,
    Timeframe.H1: 60,
    Timeframe.H4: 240,
    Timeframe.D1: 1440,
    Timeframe.W1: 10080,
}

"""
Candle data infrastructure.

This module converts and validates historical OHLCV series.
"""

from .candles import candles_from_frame, candles_to_frame, load_candles_csv
from .ohlcv_validator import OHLCVValidator

__all__ = ["OHLCVValidator", "candles_from_frame", "candles_to_frame", "load_candles_csv"]

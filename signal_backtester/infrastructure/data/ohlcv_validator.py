"""
OHLCV data validation module.

Validates candle series before they reach the simulator: structure,
value ranges, OHLC relationships and timestamp ordering.
"""

from collections.abc import Sequence

import pandas as pd
from loguru import logger

from signal_backtester.core.enums import Timeframe
from signal_backtester.core.exceptions.backtest import ValidationError
from signal_backtester.core.models.candle import Candle

REQUIRED_COLUMNS = ["timestamp", "open", "high", "low", "close", "volume"]


class OHLCVValidator:
    """
    OHLCV data validator.

    Features:
    - Data structure validation (required columns, duplicates)
    - Data type validation for numeric columns
    - Value range validation (positive prices, non-negative volume)
    - OHLC relationship validation
    - Strictly increasing timestamps
    - Gap warnings for candle series spaced unlike their timeframe
    """

    def validate_data(self, data: pd.DataFrame) -> bool:
        """
        Validate OHLCV frame integrity.

        Args:
            data: DataFrame with OHLCV data

        Returns:
            True if data is valid

        Raises:
            ValidationError: If data has integrity issues
        """
        if data.empty:
            return True

        self._validate_data_structure(data)
        self._validate_data_types(data)
        self._validate_data_values(data)
        self._validate_ohlc_relationships(data)
        self._validate_ordering(data)
        self._validate_data_quality(data)

        return True

    def validate_candles(self, candles: Sequence[Candle]) -> bool:
        """Validate a candle sequence (same checks as ``validate_data``)."""
        if not candles:
            return True

        symbols = {candle.symbol for candle in candles}
        if len(symbols) > 1:
            raise ValidationError(f"Series mixes symbols: {sorted(symbols)}")

        frame = pd.DataFrame([candle.to_dict() for candle in candles])
        self.validate_data(frame)
        self._validate_spacing(frame, candles[0].timeframe)
        return True

    def _validate_data_structure(self, data: pd.DataFrame) -> None:
        """Validate basic data structure requirements."""
        missing_columns = set(REQUIRED_COLUMNS) - set(data.columns)
        if missing_columns:
            raise ValidationError(f"Missing required columns: {missing_columns}")

        if data["timestamp"].duplicated().any():
            raise ValidationError("Duplicate timestamps found in data")

    def _validate_data_types(self, data: pd.DataFrame) -> None:
        """Validate data types for numeric columns."""
        for col in ["open", "high", "low", "close", "volume"]:
            if not pd.api.types.is_numeric_dtype(data[col]):
                raise ValidationError(f"Column {col} must be numeric")

        for col in REQUIRED_COLUMNS:
            if data[col].isna().any():
                raise ValidationError(f"Column {col} contains NaN values")

    def _validate_data_values(self, data: pd.DataFrame) -> None:
        """Validate value ranges for prices and volume."""
        for col in ["open", "high", "low", "close"]:
            if (data[col] <= 0).any():
                raise ValidationError(f"Column {col} contains non-positive values")

        if (data["volume"] < 0).any():
            raise ValidationError("Volume column contains negative values")

    def _validate_ohlc_relationships(self, data: pd.DataFrame) -> None:
        """Validate OHLC price relationships."""
        invalid_ohlc = (
            (data["high"] < data["low"])
            | (data["high"] < data["open"])
            | (data["high"] < data["close"])
            | (data["low"] > data["open"])
            | (data["low"] > data["close"])
        )

        if invalid_ohlc.any():
            invalid_count = invalid_ohlc.sum()
            raise ValidationError(f"Invalid OHLC relationships found in {invalid_count} rows")

    def _validate_ordering(self, data: pd.DataFrame) -> None:
        """Validate that timestamps strictly increase."""
        if not data["timestamp"].is_monotonic_increasing:
            raise ValidationError("Timestamps are not in ascending order")

    def _validate_data_quality(self, data: pd.DataFrame) -> None:
        """Warn about anomalies that are legal but suspicious."""
        candle_range = (data["high"] - data["low"]) / data["low"]
        extreme_moves = candle_range > 0.5

        if extreme_moves.any():
            logger.warning(
                f"Found {extreme_moves.sum()} candles with extreme price movements (>50%)"
            )

    def _validate_spacing(self, data: pd.DataFrame, timeframe: Timeframe) -> None:
        """Warn when consecutive timestamps are not one interval apart."""
        gaps = data["timestamp"].diff().dropna()
        irregular = gaps != timeframe.milliseconds

        if irregular.any():
            logger.warning(
                f"Found {irregular.sum()} gaps not matching the {timeframe.value} interval"
            )

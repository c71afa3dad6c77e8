"""
Candle conversion utilities.

Moves candle series between ``Candle`` sequences, pandas DataFrames and
OHLCV CSV files (columns: timestamp,open,high,low,close,volume).
"""

from collections.abc import Sequence
from pathlib import Path

import pandas as pd
from loguru import logger

from signal_backtester.core.enums import Timeframe
from signal_backtester.core.exceptions.backtest import DataError
from signal_backtester.core.models.candle import Candle

from .ohlcv_validator import REQUIRED_COLUMNS, OHLCVValidator


def candles_to_frame(candles: Sequence[Candle]) -> pd.DataFrame:
    """Build an OHLCV DataFrame (one row per candle, positional index)."""
    return pd.DataFrame(
        {
            "timestamp": [c.timestamp for c in candles],
            "open": [c.open for c in candles],
            "high": [c.high for c in candles],
            "low": [c.low for c in candles],
            "close": [c.close for c in candles],
            "volume": [c.volume for c in candles],
        },
        columns=REQUIRED_COLUMNS,
        dtype=float,
    )


def candles_from_frame(
    data: pd.DataFrame, symbol: str, timeframe: Timeframe
) -> list[Candle]:
    """Convert an OHLCV DataFrame into candles.

    Args:
        data: Frame with the required OHLCV columns
        symbol: Symbol stamped on every candle
        timeframe: Timeframe stamped on every candle

    Returns:
        Candles in frame order
    """
    missing_columns = set(REQUIRED_COLUMNS) - set(data.columns)
    if missing_columns:
        raise DataError(f"Missing required columns: {missing_columns}")

    return [
        Candle(
            symbol=symbol,
            timestamp=int(row.timestamp),
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=float(row.volume),
            timeframe=timeframe,
        )
        for row in data[REQUIRED_COLUMNS].itertuples(index=False)
    ]


def load_candles_csv(
    file_path: Path | str,
    symbol: str,
    timeframe: Timeframe,
    validate: bool = True,
) -> list[Candle]:
    """Read an OHLCV CSV file into validated candles.

    Raises:
        DataError: If the file cannot be read or parsed
        ValidationError: If ``validate`` is set and the data is inconsistent
    """
    path = Path(file_path)
    if not path.exists():
        raise DataError(f"Data file not found: {path}")

    try:
        data = pd.read_csv(path)
    except pd.errors.EmptyDataError:
        logger.warning(f"Empty data file: {path.name}")
        return []
    except (OSError, pd.errors.ParserError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read {path.name}: {e}")
        raise DataError(f"Failed to read {path.name}") from e

    if "timestamp" not in data.columns:
        raise DataError(f"Missing timestamp column in {path.name}")

    data = data.sort_values("timestamp").reset_index(drop=True)
    if validate:
        OHLCVValidator().validate_data(data)

    candles = candles_from_frame(data, symbol, timeframe)
    logger.info(f"Loaded {len(candles)} {timeframe.value} candles for {symbol} from {path.name}")
    return candles

"""
Custom exception hierarchy for the backtesting engine.

This module defines domain-specific exceptions for better error handling.
"""


class BacktestException(Exception):
    """Base exception for all backtesting-related errors."""

    pass


class ValidationError(BacktestException):
    """Raised when input validation fails."""

    pass


class DataError(BacktestException):
    """Raised when data access or processing fails."""

    pass


class InsufficientDataError(DataError):
    """Raised when a candle series is shorter than the minimum window."""

    def __init__(self, required: int, available: int, operation: str = "backtest"):
        self.required = required
        self.available = available
        self.operation = operation
        super().__init__(
            f"Not enough data for {operation}: need at least {required} candles, "
            f"got {available}"
        )


class StrategyError(BacktestException):
    """Raised when strategy lookup or evaluation fails."""

    pass


class StrategyNotFoundError(StrategyError):
    """Raised when a strategy id is not in the catalogue."""

    def __init__(self, strategy_id: str):
        self.strategy_id = strategy_id
        super().__init__(f"Strategy not found: {strategy_id}")


class CalculationError(BacktestException):
    """Raised when mathematical calculations fail."""

    pass


class ConfigurationError(BacktestException):
    """Raised when configuration is invalid."""

    pass

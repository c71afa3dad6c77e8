"""
Validation utilities for core domain models.

Provides consistent validation across the application.
"""

import math

from signal_backtester.core.exceptions.backtest import ValidationError


def validate_positive(value: float, param_name: str) -> float:
    """Validate that a numeric value is positive.

    Raises:
        ValidationError: If value is not positive
    """
    if value <= 0:
        raise ValidationError(f"{param_name} must be positive, got {value}")
    return value


def validate_non_negative(value: float, param_name: str) -> float:
    """Validate that a numeric value is zero or positive."""
    if value < 0:
        raise ValidationError(f"{param_name} must be non-negative, got {value}")
    return value


def validate_fraction(value: float, param_name: str = "fraction") -> float:
    """Validate that a value lies in the half-open interval (0, 1].

    Args:
        value: Value to validate
        param_name: Parameter name for error messages

    Returns:
        The validated fraction

    Raises:
        ValidationError: If value is not in (0, 1]
    """
    if value <= 0 or value > 1:
        raise ValidationError(f"{param_name} must be in (0, 1], got {value}")
    return value


def validate_finite(value: float, param_name: str) -> float:
    """Validate that a value is neither NaN nor infinite."""
    if not math.isfinite(value):
        raise ValidationError(f"{param_name} must be finite, got {value}")
    return value

"""
Core type definitions and utilities.
"""

from .financial import HUNDRED, ZERO, calculate_pnl, percent_change, safe_divide

__all__ = [
    # Utility functions
    "safe_divide",
    "percent_change",
    "calculate_pnl",
    # Constants
    "ZERO",
    "HUNDRED",
]

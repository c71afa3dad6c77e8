"""
Technical indicator infrastructure.
"""

from .formatting import format_indicators, summarize_indicators
from .technical_indicators import (
    TechnicalIndicatorsCalculator,
    calculate_indicators,
    create_technical_indicators_calculator,
)

__all__ = [
    "TechnicalIndicatorsCalculator",
    "calculate_indicators",
    "create_technical_indicators_calculator",
    "format_indicators",
    "summarize_indicators",
]

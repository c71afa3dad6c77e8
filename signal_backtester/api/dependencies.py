"""
Shared API dependencies.
"""

from functools import lru_cache

from signal_backtester.engine.strategy_registry import StrategyRegistry


@lru_cache(maxsize=1)
def get_registry() -> StrategyRegistry:
    """Process-wide strategy catalogue."""
    return StrategyRegistry()

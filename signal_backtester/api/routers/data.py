"""
Market data API endpoints.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from signal_backtester.api.dependencies import get_registry
from signal_backtester.api.schemas.api_models import IndicatorRequest
from signal_backtester.core.enums import Timeframe
from signal_backtester.engine.strategy_registry import StrategyRegistry
from signal_backtester.infrastructure.indicators import (
    create_technical_indicators_calculator,
    summarize_indicators,
)

router = APIRouter()


@router.get("/timeframes")
async def get_timeframes() -> dict[str, list[str]]:
    """Get supported candle timeframes."""
    return {"timeframes": [tf.value for tf in Timeframe]}


@router.post("/indicators")
def get_indicators(
    request: IndicatorRequest,
    registry: Annotated[StrategyRegistry, Depends(get_registry)],
) -> dict:
    """Indicators for the last candle, computed for the strategy's style."""
    strategy = registry.get_strategy(request.strategy_id)
    calculator = create_technical_indicators_calculator()
    indicators = calculator.calculate_indicators(request.domain_candles(), strategy)
    return {
        "strategyId": strategy.id,
        "style": strategy.style.value,
        "indicators": indicators.to_dict(),
        "summary": summarize_indicators(indicators),
    }

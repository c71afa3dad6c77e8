"""
Backtest API endpoints.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from signal_backtester.api.dependencies import get_registry
from signal_backtester.api.schemas.api_models import BacktestRequest
from signal_backtester.core.models.backtest import BacktestSettings
from signal_backtester.engine.backtest_engine import BacktestEngine
from signal_backtester.engine.strategy_registry import StrategyRegistry

router = APIRouter()


@router.post("/")
def submit_backtest(
    request: BacktestRequest,
    registry: Annotated[StrategyRegistry, Depends(get_registry)],
) -> dict:
    """Run a backtest synchronously and return the full result."""
    if request.strategy is not None:
        strategy = request.strategy.to_domain()
    else:
        strategy = registry.get_strategy(request.strategy_id)

    settings = BacktestSettings(
        initial_capital=request.initial_capital,
        intrabar_exits=request.intrabar_exits,
        exit_priority=request.exit_priority,
    )
    result = BacktestEngine(settings=settings).run_backtest(request.domain_candles(), strategy)
    return result.to_dict()

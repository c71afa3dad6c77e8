"""
Strategy catalogue API endpoints.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from signal_backtester.api.dependencies import get_registry
from signal_backtester.api.schemas.api_models import (
    AnalyzeRequest,
    StrategyCreateRequest,
    StrategyFields,
)
from signal_backtester.engine.strategy_registry import StrategyRegistry

router = APIRouter()

Registry = Annotated[StrategyRegistry, Depends(get_registry)]


@router.get("/")
async def list_strategies(registry: Registry) -> list[dict]:
    """List the strategy catalogue."""
    return [strategy.to_dict() for strategy in registry.get_strategies()]


@router.post("/", status_code=201)
async def create_strategy(request: StrategyCreateRequest, registry: Registry) -> dict:
    """Add a strategy to the catalogue."""
    overrides = request.to_updates()
    overrides.pop("name", None)
    return registry.create_strategy(name=request.name, **overrides).to_dict()


@router.get("/{strategy_id}")
async def get_strategy(strategy_id: str, registry: Registry) -> dict:
    """Get one strategy."""
    return registry.get_strategy(strategy_id).to_dict()


@router.patch("/{strategy_id}")
async def update_strategy(strategy_id: str, request: StrategyFields, registry: Registry) -> dict:
    """Update fields of a strategy."""
    return registry.update_strategy(strategy_id, **request.to_updates()).to_dict()


@router.delete("/{strategy_id}", status_code=204)
async def delete_strategy(strategy_id: str, registry: Registry) -> None:
    """Remove a strategy."""
    if not registry.delete_strategy(strategy_id):
        raise HTTPException(status_code=404, detail=f"Strategy not found: {strategy_id}")


@router.post("/analyze")
def analyze_instrument(request: AnalyzeRequest, registry: Registry) -> dict:
    """Detect the market regime and rank the catalogue strategies suited to it."""
    return registry.analyze_instrument(request.domain_candles()).to_dict()

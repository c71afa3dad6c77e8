"""
FastAPI application exposing the backtesting engine.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from signal_backtester.core.exceptions.backtest import (
    BacktestException,
    ConfigurationError,
    InsufficientDataError,
    StrategyNotFoundError,
    ValidationError,
)

from .routers import backtest, data, strategies

app = FastAPI(
    title="Signal Backtester API",
    version="1.0.0",
    description="Indicators, rule-based signals, backtests and strategy ranking",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",  # Development dashboard
        "http://localhost:8080",
    ],
    allow_credentials=False,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Accept", "Origin"],
)

app.include_router(backtest.router, prefix="/api/backtest", tags=["backtest"])
app.include_router(data.router, prefix="/api/data", tags=["data"])
app.include_router(strategies.router, prefix="/api/strategies", tags=["strategies"])


def _status_for(error: BacktestException) -> int:
    if isinstance(error, StrategyNotFoundError):
        return 404
    if isinstance(error, InsufficientDataError | ValidationError | ConfigurationError):
        return 422
    return 400


@app.exception_handler(BacktestException)
async def backtest_exception_handler(request: Request, exc: BacktestException) -> JSONResponse:
    """Map domain errors onto HTTP status codes."""
    status_code = _status_for(exc)
    logger.warning(f"{request.method} {request.url.path} -> {status_code}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error_type": type(exc).__name__},
    )


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint returning API information."""
    return {"message": "Signal Backtester API", "version": "1.0.0", "status": "running"}


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}

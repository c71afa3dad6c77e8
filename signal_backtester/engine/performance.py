"""
Performance aggregation.

Pure reductions over a trade log and an equity curve. Every ratio guards
its denominator and resolves to 0 instead of NaN or an exception.
"""

from collections.abc import Sequence

import numpy as np

from signal_backtester.core.constants import SHARPE_PERIODS_PER_YEAR
from signal_backtester.core.models.backtest import PerformanceMetrics
from signal_backtester.core.models.trade import Trade
from signal_backtester.core.types.financial import HUNDRED, ZERO, safe_divide


def drawdown_series(equity: Sequence[float]) -> np.ndarray:
    """Percentage decline of each equity point from its running peak."""
    curve = np.asarray(equity, dtype=float)
    if curve.size == 0:
        return curve
    peaks = np.maximum.accumulate(curve)
    with np.errstate(divide="ignore", invalid="ignore"):
        declines = np.minimum((peaks - curve) / peaks * HUNDRED, HUNDRED)
        drawdowns = np.where(peaks > 0, declines, ZERO)
    return drawdowns


def sharpe_ratio(
    equity: Sequence[float], periods_per_year: float = SHARPE_PERIODS_PER_YEAR
) -> float:
    """
    Annualized Sharpe ratio of per-step equity returns (zero risk-free rate).

    Uses the population standard deviation. Returns 0 for curves with fewer
    than two points or without variance.
    """
    curve = np.asarray(equity, dtype=float)
    if curve.size < 2:
        return ZERO

    previous = curve[:-1]
    with np.errstate(divide="ignore", invalid="ignore"):
        returns = np.where(previous != 0, np.diff(curve) / previous, ZERO)

    std = float(np.std(returns))
    if std == ZERO or not np.isfinite(std):
        return ZERO
    return float(np.mean(returns)) / std * float(np.sqrt(periods_per_year))


def aggregate(
    trades: Sequence[Trade],
    equity: Sequence[float],
    initial_capital: float,
    periods_per_year: float = SHARPE_PERIODS_PER_YEAR,
) -> PerformanceMetrics:
    """
    Reduce a trade log and equity curve to summary statistics.

    Args:
        trades: Closed trades in order
        equity: Capital after each processed candle, initial capital first
        initial_capital: Starting capital
        periods_per_year: Sharpe annualization (252 assumes daily steps)

    Returns:
        Performance metrics
    """
    wins = [trade.pnl for trade in trades if trade.pnl > 0]
    losses = [trade.pnl for trade in trades if trade.pnl <= 0]

    total_pnl = float(sum(trade.pnl for trade in trades))
    average_win = float(np.mean(wins)) if wins else ZERO
    average_loss = float(np.mean(losses)) if losses else ZERO
    drawdowns = drawdown_series(equity)

    return PerformanceMetrics(
        total_pnl=total_pnl,
        total_pnl_percentage=safe_divide(total_pnl, initial_capital) * HUNDRED,
        win_rate=safe_divide(len(wins), len(trades)),
        average_win=average_win,
        average_loss=average_loss,
        profit_factor=abs(safe_divide(average_win, average_loss)),
        max_drawdown=float(drawdowns.max()) if drawdowns.size else ZERO,
        sharpe_ratio=sharpe_ratio(equity, periods_per_year),
    )

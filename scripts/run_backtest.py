#!/usr/bin/env python3
"""
Backtest Runner

Replays an OHLCV CSV file (columns: timestamp,open,high,low,close,volume)
against one catalogue strategy, or every strategy, and prints a summary.
Optionally detects the market regime and ranks the strategies suited to it.
"""

import argparse
import json
import sys

from loguru import logger
from tqdm import tqdm

from signal_backtester.core.enums import ExitPriority, Timeframe
from signal_backtester.core.exceptions.backtest import BacktestException
from signal_backtester.core.models.backtest import BacktestSettings
from signal_backtester.engine.backtest_engine import BacktestEngine
from signal_backtester.engine.strategy_registry import StrategyRegistry
from signal_backtester.infrastructure.data import load_candles_csv


def setup_logging(debug: bool = False):
    """Configure logging with loguru."""
    logger.remove()

    level = "DEBUG" if debug else "INFO"
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level,
    )


def format_summary(result) -> str:
    """One line per run."""
    return (
        f"{result.strategy_name:<20} trades={len(result.trades):<4} "
        f"pnl={result.total_pnl:>10.2f} ({result.total_pnl_percentage:>6.2f}%) "
        f"win_rate={result.win_rate:.2%} pf={result.profit_factor:.2f} "
        f"sharpe={result.sharpe_ratio:.2f} max_dd={result.max_drawdown:.2f}%"
    )


def main():
    parser = argparse.ArgumentParser(
        description="Backtest catalogue strategies on an OHLCV CSV file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Every catalogue strategy
  python run_backtest.py --csv data/BTCUSDT_1h.csv --symbol BTCUSDT --timeframe 1h

  # One strategy, custom capital, JSON output
  python run_backtest.py --csv data/BTCUSDT_1h.csv --symbol BTCUSDT --strategy breakout --capital 5000 --json

  # Rank strategies for the detected regime
  python run_backtest.py --csv data/ETHUSDT_4h.csv --symbol ETHUSDT --timeframe 4h --analyze
        """,
    )

    parser.add_argument("--csv", type=str, required=True, help="Path to the OHLCV CSV file")
    parser.add_argument("--symbol", type=str, required=True, help="Symbol of the series")
    parser.add_argument(
        "--timeframe",
        choices=[tf.value for tf in Timeframe],
        default="1h",
        help="Candle timeframe (default: 1h)",
    )
    parser.add_argument("--strategy", type=str, help="Catalogue strategy id (default: all)")
    parser.add_argument(
        "--capital", type=float, default=10000.0, help="Initial capital (default: 10000)"
    )
    parser.add_argument(
        "--intrabar-exits",
        action="store_true",
        help="Check stops/targets against candle high/low instead of the close",
    )
    parser.add_argument(
        "--take-profit-first",
        action="store_true",
        help="With intrabar exits, book the target when a candle hits both levels",
    )
    parser.add_argument("--analyze", action="store_true", help="Rank strategies for the regime")
    parser.add_argument("--json", action="store_true", help="Print full results as JSON")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    args = parser.parse_args()
    setup_logging(args.debug)

    registry = StrategyRegistry()
    settings = BacktestSettings(
        initial_capital=args.capital,
        intrabar_exits=args.intrabar_exits,
        exit_priority=(
            ExitPriority.TAKE_PROFIT_FIRST
            if args.take_profit_first
            else ExitPriority.STOP_LOSS_FIRST
        ),
    )

    try:
        candles = load_candles_csv(args.csv, args.symbol, Timeframe.from_string(args.timeframe))

        if args.analyze:
            analysis = registry.analyze_instrument(candles)
            print(json.dumps(analysis.to_dict(), indent=2))
            return 0

        strategies = (
            [registry.get_strategy(args.strategy)] if args.strategy else registry.get_strategies()
        )
        engine = BacktestEngine(settings=settings)
        results = [
            engine.run_backtest(candles, strategy)
            for strategy in tqdm(strategies, desc="Backtesting", unit="strategy")
        ]

        if args.json:
            print(json.dumps([result.to_dict() for result in results], indent=2))
        else:
            for result in results:
                print(format_summary(result))

        logger.success(f"Completed {len(results)} backtests on {len(candles)} candles")
        return 0

    except BacktestException as e:
        logger.error(f"Backtest failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

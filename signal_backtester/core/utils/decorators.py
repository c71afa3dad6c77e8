"""
Utility decorators for engine operations.
"""

import functools
import inspect
import time
import uuid
from collections.abc import Callable
from typing import Any, TypeVar

from loguru import logger

F = TypeVar("F", bound=Callable[..., Any])


def _serialize_parameter_value(param_name: str, value: Any) -> Any:
    """Reduce an argument to something small enough to log."""
    if param_name in ["candles", "candidates"] and hasattr(value, "__len__"):
        return len(value)
    if hasattr(value, "id") and hasattr(value, "style"):
        return str(value.id)  # StrategyConfig
    if hasattr(value, "value"):
        return str(value.value)  # Enum values
    return value


def _extract_operation_context(bound_args: inspect.BoundArguments) -> dict[str, Any]:
    """Extract loggable context from function arguments."""
    context = {}
    for param_name, value in bound_args.arguments.items():
        if param_name == "self" or value is None:
            continue
        if param_name in ["strategy", "candles", "candidates", "initial_capital", "regime"]:
            context[param_name] = _serialize_parameter_value(param_name, value)
    return context


def _setup_logging_context(
    func: Callable[..., Any], args: tuple[Any, ...], kwargs: dict[str, Any]
) -> dict[str, Any]:
    """Build the correlation context for one call."""
    sig = inspect.signature(func)
    bound_args = sig.bind(*args, **kwargs)
    bound_args.apply_defaults()

    return {
        "correlation_id": str(uuid.uuid4())[:8],
        **_extract_operation_context(bound_args),
    }


def _summarize_result(result: Any) -> dict[str, Any]:
    """Pick headline numbers off a result for the completion log line."""
    summary: dict[str, Any] = {"result_type": type(result).__name__}
    if isinstance(result, list):
        summary["result_count"] = len(result)
    elif hasattr(result, "trades") and hasattr(result, "final_capital"):
        summary["trades"] = len(result.trades)
        summary["final_capital"] = round(result.final_capital, 2)
    return summary


def log_operation(func: F) -> F:
    """Decorator to log engine operations with correlation IDs and timings."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        context = _setup_logging_context(func, args, kwargs)
        bound_logger = logger.bind(**context)
        func_name = func.__name__

        bound_logger.debug(f"Operation started: {func_name}")
        start_time = time.perf_counter()

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            execution_time_ms = (time.perf_counter() - start_time) * 1000
            bound_logger.bind(
                execution_time_ms=round(execution_time_ms, 2),
                error_type=type(e).__name__,
            ).error(f"Operation failed: {func_name}: {e}")
            raise

        execution_time_ms = (time.perf_counter() - start_time) * 1000
        bound_logger.bind(
            execution_time_ms=round(execution_time_ms, 2), **_summarize_result(result)
        ).success(f"Operation completed: {func_name}")
        return result

    return wrapper  # type: ignore

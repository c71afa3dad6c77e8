"""
Financial helpers for backtesting calculations.

All simulator arithmetic is float-based. Floats keep the engine compatible
with NumPy/Pandas and fast enough to replay long histories, at the cost of
~1e-15 relative precision; this is not an accounting ledger. The simulator
never rounds intermediate values, so results stay reproducible bit-for-bit.
"""

ZERO = 0.0
HUNDRED = 100.0


def safe_divide(numerator: float, denominator: float, default: float = ZERO) -> float:
    """Divide, returning ``default`` instead of raising or producing NaN.

    Examples:
        >>> safe_divide(1.0, 4.0)
        0.25
        >>> safe_divide(1.0, 0.0)
        0.0
    """
    if denominator == ZERO:
        return default
    return numerator / denominator


def percent_change(old: float, new: float) -> float:
    """Percentage change from ``old`` to ``new`` (0 when ``old`` is zero)."""
    return safe_divide(new - old, old) * HUNDRED


def calculate_pnl(
    entry_price: float,
    exit_price: float,
    amount: float,
    position_type: str,
) -> float:
    """Calculate direction-adjusted PnL.

    Args:
        entry_price: Entry price of position
        exit_price: Exit price of position
        amount: Position amount (absolute value)
        position_type: 'long' or 'short'

    Returns:
        PnL in quote currency
    """
    amt = abs(amount)
    position_type_upper = position_type.upper()

    if position_type_upper == "LONG":
        return (exit_price - entry_price) * amt
    elif position_type_upper == "SHORT":
        return (entry_price - exit_price) * amt
    raise ValueError(f"Invalid position type: {position_type}")

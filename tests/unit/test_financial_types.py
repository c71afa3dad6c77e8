"""
Unit tests for financial helpers.
"""

import pytest

from signal_backtester.core.types.financial import (
    calculate_pnl,
    percent_change,
    safe_divide,
)


class TestSafeDivide:
    """Tests for safe_divide."""

    def test_should_divide_normally(self) -> None:
        """Test ordinary division."""
        assert safe_divide(1.0, 4.0) == 0.25

    def test_should_return_default_for_zero_denominator(self) -> None:
        """Test zero denominators resolve to the default."""
        assert safe_divide(1.0, 0.0) == 0.0
        assert safe_divide(1.0, 0.0, default=-1.0) == -1.0


class TestPnlCalculation:
    """Tests for calculate_pnl."""

    def test_should_calculate_long_pnl(self) -> None:
        """Test long positions profit when price rises."""
        assert calculate_pnl(100.0, 110.0, 2.0, "long") == pytest.approx(20.0)

    def test_should_calculate_short_pnl(self) -> None:
        """Test short positions profit when price falls."""
        assert calculate_pnl(100.0, 90.0, 2.0, "SHORT") == pytest.approx(20.0)
        assert calculate_pnl(100.0, 110.0, -2.0, "short") == pytest.approx(-20.0)

    def test_should_reject_unknown_position_type(self) -> None:
        """Test invalid sides raise."""
        with pytest.raises(ValueError, match="Invalid position type"):
            calculate_pnl(100.0, 110.0, 1.0, "flat")


class TestPercentChange:
    """Tests for percent_change."""

    def test_should_compute_percent_change(self) -> None:
        """Test percent change with a zero base."""
        assert percent_change(100.0, 150.0) == pytest.approx(50.0)
        assert percent_change(0.0, 150.0) == 0.0

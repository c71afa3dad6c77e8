"""
Core constants and limits.

Defines the windows, thresholds and annualization conventions shared by
the indicator calculator, the rule engine and the simulator.
"""

import math

# Data Requirements
MIN_CANDLES = 50  # Minimum series length for indicators and backtests
PRICE_CHANGE_PERIODS = 24  # Compare against the close 24 candles back (~1 day on hourly data)
MIN_VOLATILITY_CANDLES = 20

# Capital
DEFAULT_INITIAL_CAPITAL = 10000.0
MIN_INITIAL_CAPITAL = 1.0
MAX_INITIAL_CAPITAL = 100000000.0

# Position Sizing
STOP_LOSS_ATR_MULTIPLIER = 2.0  # Stop distance in ATR units

# Annualization (hourly candles for volatility, trading days for Sharpe)
VOLATILITY_ANNUALIZATION = math.sqrt(24)
SHARPE_PERIODS_PER_YEAR = 252

# Indicator Periods
SMA_PERIOD = 50
EMA_PERIOD = 20
ADX_PERIOD = 14
RSI_PERIOD = 14
ATR_PERIOD = 14
BOLLINGER_PERIOD = 20
BOLLINGER_STD = 2.0
STOCHASTIC_PERIOD = 14
STOCHASTIC_SIGNAL_PERIOD = 3
DONCHIAN_PERIOD = 20
MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL = 9
VOLUME_RECENT_WINDOW = 5
VOLUME_PRIOR_WINDOW = 15

# Signal Thresholds
ADX_TREND_THRESHOLD = 25.0
RSI_OVERSOLD = 30.0
RSI_OVERBOUGHT = 70.0
BOLLINGER_TOLERANCE = 0.01  # Trigger within 1% of the band
VOLUME_CONFIRMATION = 20.0  # Percent above recent average

# Strategy Validation
TRAIN_TEST_SPLIT = 0.7

# Regime Detection
REGIME_TREND_STRENGTH = 25.0
REGIME_TRENDING_MAX_VOLATILITY = 2.5
REGIME_VOLATILE_VOLATILITY = 3.5
REGIME_VOLUME_SURGE = 20.0
REGIME_VOLUME_SURGE_VOLATILITY = 2.0

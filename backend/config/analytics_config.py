"""
Analytics Configuration Constants.

Fixed precision, weighting and bucket conventions shared by the performance
analytics services. Dashboard golden outputs depend on these values, so they
are constants rather than runtime settings.
"""

from typing import Dict


# Decimal places applied at the boundary of each metric.
SHARPE_PRECISION = 3
DRAWDOWN_PRECISION = 2
PROFIT_FACTOR_PRECISION = 2
AVERAGE_TRADE_PRECISION = 2
WIN_RATE_PRECISION = 1

# Composite ranking weights (sum to 1.0).
COMPOSITE_WEIGHTS: Dict[str, float] = {
    "return": 0.3,
    "sharpe": 0.3,
    "drawdown": 0.2,
    "win_rate": 0.2,
}

# Score given to every run when a metric has no spread across the set.
NEUTRAL_SCORE = 50.0

# Bucket names for rows that cannot be attributed.
UNKNOWN_REGIME = "Unknown"
UNKNOWN_STRATEGY = "Unknown Strategy"

HOURS_PER_DAY = 24.0

# Lookback windows for dashboard period selectors (days). "all" means no lower bound.
PERIOD_WINDOWS_DAYS: Dict[str, int] = {
    "30d": 30,
    "90d": 90,
    "1y": 365,
}
DEFAULT_PERIOD = "30d"

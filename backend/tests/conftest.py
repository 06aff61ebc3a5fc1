"""
Shared fixtures for analytics tests.
"""

import pytest
from datetime import datetime, timedelta

from engine.models import BacktestPerformance, BacktestResult
from factories import make_curve, make_trade


@pytest.fixture
def sample_trades():
    """Five closed trades: win, win, loss, flat, win."""
    base = datetime(2024, 1, 2)
    pnls = [120.0, 45.0, -80.0, 0.0, 60.0]
    return [
        make_trade(pnl, trade_id=f"t{i + 1}", entry=base + timedelta(days=5 * i))
        for i, pnl in enumerate(pnls)
    ]


@pytest.fixture
def sample_result(sample_trades):
    """Consistent backtest bundle."""
    return BacktestResult(
        backtest_id="bt-001",
        strategy_name="Mean Reversion",
        symbols=["AAPL"],
        performance=BacktestPerformance(
            initial_capital=10000.0,
            final_capital=10145.0,
            total_return=145.0,
            total_return_percent=1.45,
            sharpe_ratio=1.2,
            max_drawdown_percent=0.8,
            win_rate=60.0,
            profit_factor=2.8,
            total_trades=5,
            winning_trades=3,
            losing_trades=2,
        ),
        trades=sample_trades,
        equity_curve=make_curve([10000.0, 10120.0, 10165.0, 10085.0, 10085.0, 10145.0]),
    )

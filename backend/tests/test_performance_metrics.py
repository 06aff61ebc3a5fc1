"""
Tests for the execution performance metrics service.
"""

import pytest
from datetime import datetime, timedelta

from engine.models import Execution, PerformanceMetrics
from services.performance_metrics import (
    calculate_strategy_breakdown,
    compute_metrics,
    execution_pnl,
    max_drawdown_percent,
    round_metric,
)
from factories import make_execution


def test_empty_executions_return_zero_metrics():
    """No executions yields an all-zero summary."""
    metrics = compute_metrics([])

    assert metrics == PerformanceMetrics()
    assert metrics.model_dump() == {
        "total_return": 0.0,
        "sharpe_ratio": 0.0,
        "max_drawdown": 0.0,
        "win_rate": 0.0,
        "profit_factor": 0.0,
        "average_win": 0.0,
        "average_loss": 0.0,
        "total_trades": 0,
        "winning_trades": 0,
        "losing_trades": 0,
    }


def test_execution_pnl_is_directional_cash_flow():
    """Buys are outflows, sells are inflows."""
    assert execution_pnl(make_execution("buy", 10, 90)) == -900.0
    assert execution_pnl(make_execution("sell", 10, 100)) == 1000.0
    assert execution_pnl(make_execution("sell", -10, 100)) == 1000.0


def test_sell_then_buy_scenario():
    """A sell at 100 followed by a buy at 90."""
    metrics = compute_metrics([
        make_execution("sell", 10, 100),
        make_execution("buy", 10, 90),
    ])

    assert metrics.total_return == pytest.approx(100.0)
    assert metrics.win_rate == 50.0
    assert metrics.average_win == 1000.0
    assert metrics.average_loss == 900.0
    assert metrics.profit_factor == 1.11
    assert metrics.total_trades == 2
    assert metrics.winning_trades == 1
    assert metrics.losing_trades == 1
    # mean 50 / population stddev 950
    assert metrics.sharpe_ratio == 0.053


def test_drawdown_measured_from_cumulative_pnl():
    """Drawdown tracks the running peak of cumulative P&L."""
    metrics = compute_metrics([
        make_execution("sell", 1, 1000),
        make_execution("buy", 1, 250),
        make_execution("sell", 1, 100),
    ])

    # cumulative: 0, 1000, 750, 850
    assert metrics.max_drawdown == 25.0


def test_drawdown_ignored_while_peak_is_zero():
    """Losses before any profit do not produce a drawdown."""
    metrics = compute_metrics([
        make_execution("buy", 1, 500),
        make_execution("buy", 1, 500),
    ])

    assert metrics.max_drawdown == 0.0
    assert metrics.win_rate == 0.0
    assert metrics.profit_factor == 0.0
    assert metrics.average_win == 0.0
    assert metrics.average_loss == 500.0


def test_non_decreasing_series_has_no_drawdown():
    """Only sells means cumulative P&L never falls."""
    metrics = compute_metrics([make_execution("sell", 1, p) for p in (10, 20, 30)])

    assert metrics.max_drawdown == 0.0
    assert metrics.win_rate == 100.0
    assert metrics.profit_factor == 0.0


def test_max_drawdown_percent_on_value_series():
    """Peak-to-trough decline of an equity-like series."""
    assert max_drawdown_percent([100, 120, 90, 110]) == pytest.approx(25.0)
    assert max_drawdown_percent([]) == 0.0
    assert max_drawdown_percent([100]) == 0.0
    assert max_drawdown_percent([0, 0, 0]) == 0.0


def test_single_execution_has_zero_sharpe():
    """Zero standard deviation gives a zero Sharpe ratio."""
    metrics = compute_metrics([make_execution("sell", 5, 20)])

    assert metrics.sharpe_ratio == 0.0
    assert metrics.total_trades == 1
    assert metrics.winning_trades + metrics.losing_trades == metrics.total_trades


def test_compute_metrics_is_idempotent():
    """Same input, same output."""
    executions = [
        make_execution("sell", 3, 50),
        make_execution("buy", 2, 40),
        make_execution("sell", 1, 75),
    ]

    assert compute_metrics(executions) == compute_metrics(executions)


def test_round_metric_rounds_halves_away_from_zero():
    """Fixed-point display rounding."""
    assert round_metric(0.125, 2) == 0.13
    assert round_metric(-0.125, 2) == -0.13
    assert round_metric(2.5, 0) == 3.0
    assert round_metric(1.0 / 3.0, 3) == 0.333
    assert round_metric(float("nan"), 2) == 0.0


def test_round_metric_handles_values_wider_than_default_precision():
    assert round_metric(1e30, 2) == 1e30
    assert round_metric(-123456789012345678901234567.891, 2) == pytest.approx(-1.2345678901234568e26)


def test_tiny_float_peak_does_not_break_drawdown():
    """A float residue as the running peak yields a huge drawdown, not an error."""
    executions = [
        make_execution("buy", 0.3, 1),
        make_execution("sell", 0.1, 3),
        make_execution("buy", 1e4, 1e4),
    ]

    metrics = compute_metrics(executions)

    assert metrics.total_trades == 3
    assert metrics.max_drawdown > 1e20


def test_zero_notional_execution_is_neither_win_nor_loss():
    """Wins plus losses can fall short of the execution count."""
    metrics = compute_metrics([make_execution("sell", 1, 50), make_execution("buy", 0, 50)])

    assert metrics.total_trades == 2
    assert metrics.winning_trades == 1
    assert metrics.losing_trades == 0
    assert metrics.win_rate == 50.0


def test_strategy_breakdown_groups_in_first_seen_order():
    """Executions without a strategy fall into the unknown bucket."""
    base = datetime(2024, 3, 1)
    executions = [
        make_execution("sell", 1, 100, base, strategy_name="Momentum"),
        make_execution("buy", 1, 40, base + timedelta(hours=1)),
        make_execution("buy", 1, 30, base + timedelta(hours=2), strategy_name="Momentum"),
    ]

    breakdown = calculate_strategy_breakdown(executions)

    assert [b.strategy for b in breakdown] == ["Momentum", "Unknown Strategy"]
    assert breakdown[0].executions == 2
    assert breakdown[0].total_return == pytest.approx(70.0)
    assert breakdown[0].win_rate == 50.0
    assert breakdown[1].executions == 1
    assert breakdown[1].total_return == pytest.approx(-40.0)


def test_execution_from_joined_row():
    """Dashboard rows with nested symbol and strategy relations."""
    row = {
        "id": 42,
        "executed_at": "2024-02-01T10:00:00",
        "side": "SELL",
        "quantity": "3",
        "price": "12.5",
        "symbols": {"symbol": "MSFT", "name": "Microsoft"},
        "positions": {"id": 7, "strategies": {"id": 1, "name": "Breakout"}},
    }

    execution = Execution.from_row(row)

    assert execution.id == "42"
    assert execution.symbol == "MSFT"
    assert execution.strategy_name == "Breakout"
    assert execution.side.value == "sell"
    assert execution_pnl(execution) == pytest.approx(37.5)

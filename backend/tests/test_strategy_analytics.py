"""
Tests for the dashboard analytics service.
"""

import pytest
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from config.settings import Settings
from engine.models import AnalyticsInputError, BacktestResult, CapitalSnapshot, DateRange
from services.strategy_analytics import (
    StrategyAnalyticsService,
    build_time_series,
    resolve_date_range,
)


NOW = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def service():
    return StrategyAnalyticsService(settings=Settings(known_regime_types_raw="Bull, Bear,Sideways"))


def _execution_row(side, quantity, price, when, strategy="Momentum"):
    return SimpleNamespace(
        id=1,
        executed_at=when,
        side=side,
        quantity=quantity,
        price=price,
        symbols=SimpleNamespace(symbol="SPY"),
        positions=SimpleNamespace(strategies=SimpleNamespace(name=strategy)),
    )


def test_resolve_date_range_periods():
    assert resolve_date_range("30d", now=NOW).start == NOW - timedelta(days=30)
    assert resolve_date_range("90d", now=NOW).start == NOW - timedelta(days=90)
    assert resolve_date_range("1y", now=NOW).start == NOW - timedelta(days=365)
    all_time = resolve_date_range("all", now=NOW)
    assert all_time.start is None
    assert all_time.end == NOW
    assert resolve_date_range(now=NOW).period == "30d"


def test_resolve_date_range_explicit_bounds_win():
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    end = datetime(2024, 2, 1, tzinfo=timezone.utc)

    window = resolve_date_range("90d", start_date=start, end_date=end, now=NOW)

    assert (window.start, window.end) == (start, end)


def test_resolve_date_range_rejects_inverted_bounds():
    with pytest.raises(ValueError, match="end_date must be greater"):
        resolve_date_range(start_date=NOW, end_date=NOW - timedelta(days=1))


def test_unknown_period_has_open_lower_bound():
    assert resolve_date_range("5y", now=NOW).start is None


def test_build_time_series():
    snapshots = [
        CapitalSnapshot(
            created_at=datetime(2024, 6, 1, 23, 0),
            allocated_capital=5000.0,
            used_capital=1200.0,
            realized_pnl=30.0,
            unrealized_pnl=-10.0,
        )
    ]

    series = build_time_series(snapshots)

    assert series[0].date == "2024-06-01"
    assert series[0].portfolio_value == 5000.0
    assert series[0].pnl == pytest.approx(20.0)


def test_performance_analytics_payload(service):
    t0 = datetime(2024, 6, 1)
    executions = [
        _execution_row("sell", 10, 100, t0 + timedelta(days=1)),
        _execution_row("buy", 10, 90, t0 + timedelta(days=2), strategy="Reversion"),
    ]
    regime_rows = [
        {"regime_id": 1, "regime_name": "Bull", "created_at": t0, "regime_duration_hours": 48},
    ]
    snapshots = [
        {"created_at": t0, "allocated_capital": 1000, "used_capital": 100,
         "realized_pnl": 5, "unrealized_pnl": 1, "strategies": {"name": "Momentum"}},
    ]
    window = DateRange(start=t0, end=t0 + timedelta(days=30), period="30d")

    analytics = service.get_performance_analytics(
        executions, snapshots=snapshots, regime_events=regime_rows, date_range=window
    )

    assert analytics.total_executions == 2
    assert analytics.metrics.total_return == pytest.approx(100.0)
    assert analytics.metrics.profit_factor == 1.11
    assert [b.strategy for b in analytics.strategy_breakdown] == ["Momentum", "Reversion"]
    assert [r.regime for r in analytics.regime_performance] == ["Bull", "Bear", "Sideways"]
    assert analytics.regime_performance[0].executions == 2
    assert analytics.time_series[0].pnl == pytest.approx(6.0)
    assert analytics.date_range == window
    # serializable for the API layer
    assert analytics.model_dump(mode="json")["metrics"]["win_rate"] == 50.0


def test_explicit_known_regimes_override_settings(service):
    analytics = service.get_performance_analytics([], known_regime_types=["Crash"])

    assert [r.regime for r in analytics.regime_performance] == ["Crash"]
    assert analytics.metrics.total_trades == 0


def test_bad_execution_row_raises_input_error(service):
    with pytest.raises(AnalyticsInputError):
        service.get_performance_analytics([{"side": "hold", "quantity": 1, "price": 1}])


def test_compare_results_skips_invalid_bundles(service, sample_result):
    broken = BacktestResult(backtest_id="bt-bad", strategy_name="Broken")

    ranking = service.compare_results([sample_result, broken])

    assert [r.name for r in ranking.rankings] == ["Mean Reversion"]
    assert ranking.rankings[0].score == pytest.approx(50.0)

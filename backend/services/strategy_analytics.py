"""
Strategy Analytics Service.
Composes execution metrics, strategy breakdown, regime attribution and the
capital time series for the performance analytics dashboard.

Rows arrive already fetched and filtered by the storage layer; this service
only converts and computes.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, List, Optional, Sequence

from config.analytics_config import DEFAULT_PERIOD, PERIOD_WINDOWS_DAYS
from config.settings import Settings, get_settings
from engine.models import (
    BacktestResult,
    CapitalSnapshot,
    DateRange,
    Execution,
    PerformanceAnalytics,
    RankingResult,
    RegimeChangeEvent,
    TimeSeriesPoint,
    ValidationResult,
)
from services.backtest_comparison import compare_backtests
from services.performance_metrics import calculate_strategy_breakdown, compute_metrics
from services.regime_analysis import calculate_regime_performance
from services.result_validator import validate_backtest_result

logger = logging.getLogger(__name__)


def resolve_date_range(
    period: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> DateRange:
    """
    Resolve the request window for a dashboard period selector.

    An explicit start/end pair wins over the period. ``all`` (or any
    unrecognized period) leaves the lower bound open.
    """
    now = now or datetime.now(timezone.utc)
    period = period or DEFAULT_PERIOD
    if start_date is not None and end_date is not None:
        if end_date < start_date:
            raise ValueError("end_date must be greater than or equal to start_date")
        return DateRange(start=start_date, end=end_date, period=period)

    days = PERIOD_WINDOWS_DAYS.get(period)
    if days is None:
        if period != "all":
            logger.warning("Unrecognized analytics period %r; using no lower bound", period)
        return DateRange(start=None, end=now, period=period)
    return DateRange(start=now - timedelta(days=days), end=now, period=period)


def build_time_series(snapshots: Iterable[CapitalSnapshot]) -> List[TimeSeriesPoint]:
    """Map capital snapshots onto dashboard time-series rows."""
    return [
        TimeSeriesPoint(
            date=snapshot.created_at.date().isoformat(),
            portfolio_value=snapshot.allocated_capital,
            total_capital=snapshot.allocated_capital,
            used_capital=snapshot.used_capital,
            pnl=snapshot.realized_pnl + snapshot.unrealized_pnl,
            realized_pnl=snapshot.realized_pnl,
            unrealized_pnl=snapshot.unrealized_pnl,
        )
        for snapshot in snapshots
    ]


class StrategyAnalyticsService:
    """Service for dashboard performance analytics and backtest comparison."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def get_performance_analytics(
        self,
        executions: Sequence[Any],
        snapshots: Sequence[Any] = (),
        regime_events: Sequence[Any] = (),
        known_regime_types: Optional[Sequence[str]] = None,
        date_range: Optional[DateRange] = None,
    ) -> PerformanceAnalytics:
        """
        Build the performance analytics payload for one dashboard request.

        Args:
            executions: Execution rows ordered by execution time
            snapshots: Capital snapshot rows ordered by creation time
            regime_events: Regime-change rows ordered by creation time
            known_regime_types: Regime names that must always be reported;
                defaults to the configured list
            date_range: Window the rows were filtered by

        Returns:
            PerformanceAnalytics with metrics, breakdowns and time series
        """
        typed_executions = [Execution.from_row(row) for row in executions]
        typed_snapshots = [CapitalSnapshot.from_row(row) for row in snapshots]
        typed_events = [RegimeChangeEvent.from_row(row) for row in regime_events]
        if known_regime_types is None:
            known_regime_types = self.settings.known_regime_types

        analytics = PerformanceAnalytics(
            metrics=compute_metrics(typed_executions),
            time_series=build_time_series(typed_snapshots),
            strategy_breakdown=calculate_strategy_breakdown(typed_executions),
            regime_performance=calculate_regime_performance(
                typed_executions, typed_events, known_regime_types
            ),
            total_executions=len(typed_executions),
            date_range=date_range or resolve_date_range(),
        )
        logger.info(
            "Performance analytics built: %d executions, %d snapshots, %d regime events",
            len(typed_executions),
            len(typed_snapshots),
            len(typed_events),
        )
        return analytics

    def compare_results(self, results: Sequence[BacktestResult]) -> RankingResult:
        """
        Rank backtest results, skipping bundles that fail validation.
        """
        trusted: List[BacktestResult] = []
        for result in results:
            validation: ValidationResult = validate_backtest_result(result)
            if validation.valid:
                trusted.append(result)
            else:
                logger.warning(
                    "Skipping backtest %s in comparison: %s",
                    result.backtest_id or "<unknown>",
                    "; ".join(validation.errors),
                )
        return compare_backtests(trusted)

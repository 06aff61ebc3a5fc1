"""
Regime Analysis Service.

Splits regime-change history into contiguous periods, attributes executions
to the regime active when they happened, and summarizes performance per
regime.
"""
import logging
import math
from typing import Dict, Iterable, List, Optional, Sequence, Union

from config.analytics_config import HOURS_PER_DAY, UNKNOWN_REGIME
from engine.models import (
    Execution,
    PerformanceMetrics,
    RegimeChangeEvent,
    RegimePerformance,
    RegimePeriod,
)
from services.performance_metrics import compute_metrics

logger = logging.getLogger(__name__)


def build_periods(events: Sequence[RegimeChangeEvent]) -> List[RegimePeriod]:
    """
    Convert regime-change events into back-to-back periods.

    Events must already be sorted by start time; they are not re-sorted.
    Each period ends where the next one starts and the last stays open.
    """
    periods: List[RegimePeriod] = []
    for i, current in enumerate(events):
        following = events[i + 1] if i + 1 < len(events) else None
        periods.append(
            RegimePeriod(
                regime_id=current.regime_id,
                regime_name=current.regime_name or UNKNOWN_REGIME,
                start_date=current.start,
                end_date=following.start if following is not None else None,
                duration=current.regime_duration_hours or 0.0,
            )
        )
    return periods


def find_period(execution: Execution, periods: Sequence[RegimePeriod]) -> Optional[RegimePeriod]:
    """First period containing the execution timestamp, if any."""
    for period in periods:
        if period.contains(execution.timestamp):
            return period
    return None


def assign_executions_to_regimes(
    executions: Iterable[Execution],
    periods: Sequence[RegimePeriod],
) -> Dict[str, List[Execution]]:
    """
    Group executions by the regime active at their timestamp.

    Executions outside every period land in the ``Unknown`` bucket. Buckets
    keep the order in which regimes are first seen.
    """
    if not periods:
        logger.warning("No regime periods supplied; all executions attributed to %s", UNKNOWN_REGIME)

    buckets: Dict[str, List[Execution]] = {}
    for execution in executions:
        period = find_period(execution, periods)
        regime_name = period.regime_name if period is not None else UNKNOWN_REGIME
        buckets.setdefault(regime_name, []).append(execution)
    return buckets


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _occurrence_stats(regime_name: str, periods: Sequence[RegimePeriod]) -> tuple[int, int]:
    """Return (occurrences, average duration in whole days) for a regime name."""
    occurrences = [p for p in periods if p.regime_name == regime_name]
    if not occurrences:
        return 0, 0
    avg_hours = sum(p.duration for p in occurrences) / len(occurrences)
    return len(occurrences), _round_half_up(avg_hours / HOURS_PER_DAY)


def _regime_performance(
    regime_name: str,
    metrics: PerformanceMetrics,
    execution_count: int,
    periods: Sequence[RegimePeriod],
) -> RegimePerformance:
    occurrences, avg_duration = _occurrence_stats(regime_name, periods)
    return RegimePerformance(
        regime=regime_name,
        avg_return=metrics.total_return,
        sharpe=metrics.sharpe_ratio,
        max_drawdown=metrics.max_drawdown,
        win_rate=metrics.win_rate,
        profit_factor=metrics.profit_factor,
        average_win=metrics.average_win,
        average_loss=metrics.average_loss,
        winning_trades=metrics.winning_trades,
        losing_trades=metrics.losing_trades,
        occurrences=occurrences,
        avg_duration=avg_duration,
        executions=execution_count,
    )


def calculate_regime_performance(
    executions: Sequence[Execution],
    history: Sequence[Union[RegimeChangeEvent, RegimePeriod]],
    known_regime_types: Optional[Iterable[str]] = None,
) -> List[RegimePerformance]:
    """
    Summarize execution performance per market regime.

    Args:
        executions: Executions to attribute
        history: Regime-change events (sorted ascending) or prebuilt periods
        known_regime_types: Regime names that must appear even without executions

    Returns:
        One entry per regime, sorted by execution count descending
    """
    if history and isinstance(history[0], RegimeChangeEvent):
        periods = build_periods(history)  # type: ignore[arg-type]
    else:
        periods = list(history)  # type: ignore[arg-type]

    buckets = assign_executions_to_regimes(executions, periods)

    results: List[RegimePerformance] = [
        _regime_performance(name, compute_metrics(regime_execs), len(regime_execs), periods)
        for name, regime_execs in buckets.items()
    ]

    # Quiet regimes stay visible with zeroed metrics.
    seen = {r.regime for r in results}
    for regime_name in known_regime_types or []:
        if regime_name in seen:
            continue
        seen.add(regime_name)
        results.append(_regime_performance(regime_name, PerformanceMetrics.empty(), 0, periods))

    results.sort(key=lambda r: r.executions, reverse=True)
    logger.debug(
        "Regime performance built: %d regimes from %d periods and %d executions",
        len(results),
        len(periods),
        len(executions),
    )
    return results

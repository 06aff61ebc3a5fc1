"""
Advanced Risk Analytics Service.
Derives secondary risk measures (Ulcer Index, gain-to-pain, monthly return
distribution, win/loss streaks) from an equity curve and trade list.
"""
import logging
import math
from typing import List, Sequence, Tuple

from engine.models import (
    AdvancedMetrics,
    BacktestPerformance,
    BacktestResult,
    EquityPoint,
    Trade,
)

logger = logging.getLogger(__name__)


def calculate_ulcer_index(equity_curve: Sequence[EquityPoint]) -> float:
    """Root-mean-square of the per-point drawdowns."""
    if len(equity_curve) < 2:
        return 0.0
    mean_squared = sum(p.drawdown * p.drawdown for p in equity_curve) / len(equity_curve)
    return math.sqrt(mean_squared)


def calculate_gain_to_pain_ratio(equity_curve: Sequence[EquityPoint]) -> float:
    """Sum of positive period returns over the sum of absolute negative ones."""
    if len(equity_curve) < 2:
        return 0.0
    gains = 0.0
    losses = 0.0
    # The first point has no prior reference.
    for point in equity_curve[1:]:
        if point.returns > 0:
            gains += point.returns
        else:
            losses += abs(point.returns)
    return gains / losses if losses > 0 else 0.0


def calculate_recovery_factor(performance: BacktestPerformance) -> float:
    """Total return percent per percent of max drawdown."""
    if performance.max_drawdown_percent > 0:
        return performance.total_return_percent / performance.max_drawdown_percent
    return 0.0


def _month_key(point: EquityPoint) -> str:
    return f"{point.date.year}-{point.date.month:02d}"


def _percent_change(start: float, end: float) -> float:
    if start == 0:
        return 0.0
    return (end - start) / start * 100


def calculate_monthly_returns(equity_curve: Sequence[EquityPoint]) -> List[float]:
    """
    Percent return of each calendar month touched by the curve.

    A month is measured from the previous month's closing equity (the first
    point for the first month) to its own last point; the final, possibly
    partial, month closes on the last point of the curve.
    """
    if len(equity_curve) < 2:
        return []

    monthly_returns: List[float] = []
    current_month = _month_key(equity_curve[0])
    month_start = equity_curve[0].equity

    for i in range(1, len(equity_curve)):
        month_key = _month_key(equity_curve[i])
        if month_key == current_month:
            continue
        month_end = equity_curve[i - 1].equity
        monthly_returns.append(_percent_change(month_start, month_end))
        current_month = month_key
        month_start = month_end

    monthly_returns.append(_percent_change(month_start, equity_curve[-1].equity))
    return monthly_returns


def calculate_streaks(trades: Sequence[Trade]) -> Tuple[int, int]:
    """
    Longest consecutive win and loss runs, in the given trade order.

    Only pnl > 0 counts as a win; flat trades extend the loss streak.
    """
    max_win_streak = 0
    max_loss_streak = 0
    current_win_streak = 0
    current_loss_streak = 0
    for trade in trades:
        if trade.pnl > 0:
            current_win_streak += 1
            current_loss_streak = 0
            max_win_streak = max(max_win_streak, current_win_streak)
        else:
            current_loss_streak += 1
            current_win_streak = 0
            max_loss_streak = max(max_loss_streak, current_loss_streak)
    return max_win_streak, max_loss_streak


def calculate_probability_of_success(trades: Sequence[Trade]) -> float:
    """Percentage of trades closed with positive P&L."""
    if not trades:
        return 0.0
    return len([t for t in trades if t.pnl > 0]) / len(trades) * 100


def calculate_advanced_metrics(
    equity_curve: Sequence[EquityPoint],
    trades: Sequence[Trade],
    performance: BacktestPerformance,
) -> AdvancedMetrics:
    """
    Calculate secondary risk metrics for one backtest run.

    Args:
        equity_curve: Chronological equity points
        trades: Closed trades in execution order
        performance: Summary statistics of the same run

    Returns:
        AdvancedMetrics with zero values wherever inputs are insufficient
    """
    monthly_returns = calculate_monthly_returns(equity_curve)
    if monthly_returns:
        average_monthly_return = sum(monthly_returns) / len(monthly_returns)
        worst_month = min(monthly_returns)
        best_month = max(monthly_returns)
    else:
        average_monthly_return = worst_month = best_month = 0.0

    win_streak, loss_streak = calculate_streaks(trades)

    logger.debug(
        "Advanced metrics over %d equity points, %d trades, %d months",
        len(equity_curve),
        len(trades),
        len(monthly_returns),
    )
    return AdvancedMetrics(
        ulcer_index=calculate_ulcer_index(equity_curve),
        recovery_factor=calculate_recovery_factor(performance),
        gain_to_pain_ratio=calculate_gain_to_pain_ratio(equity_curve),
        probability_of_success=calculate_probability_of_success(trades),
        average_monthly_return=average_monthly_return,
        worst_month=worst_month,
        best_month=best_month,
        consecutive_win_streak=win_streak,
        consecutive_loss_streak=loss_streak,
    )


def calculate_advanced_metrics_for_result(result: BacktestResult) -> AdvancedMetrics:
    """Convenience wrapper taking a whole backtest bundle."""
    return calculate_advanced_metrics(
        result.equity_curve,
        result.trades,
        result.performance or BacktestPerformance(),
    )

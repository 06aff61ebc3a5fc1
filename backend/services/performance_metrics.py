"""
Performance Metrics Service.
Turns raw execution records into the execution-level performance summary
shown on the analytics dashboard.
"""
import logging
import math
from decimal import Context, Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Sequence

from config.analytics_config import (
    AVERAGE_TRADE_PRECISION,
    DRAWDOWN_PRECISION,
    PROFIT_FACTOR_PRECISION,
    SHARPE_PRECISION,
    UNKNOWN_STRATEGY,
    WIN_RATE_PRECISION,
)
from engine.models import (
    Execution,
    ExecutionSide,
    PerformanceMetrics,
    StrategyBreakdown,
)

logger = logging.getLogger(__name__)


def round_metric(value: float, places: int) -> float:
    """
    Round to ``places`` decimals, halves away from zero.

    Works on the exact binary value of the float, so 1.005 rounds to 1.0
    (it is stored as 1.00499...) while 0.125 rounds to 0.13.
    """
    if not math.isfinite(value):
        return 0.0
    exact = Decimal(value)
    # Precision must cover every integer digit plus the kept decimals.
    context = Context(prec=max(28, exact.adjusted() + places + 2))
    quantum = Decimal(1).scaleb(-places)
    return float(exact.quantize(quantum, rounding=ROUND_HALF_UP, context=context))


def execution_pnl(execution: Execution) -> float:
    """
    Directional cash-flow P&L of one execution.

    Buys are capital outflows, sells are inflows. This is not a matched
    round-trip P&L; callers that need one supply ``Trade`` records instead.
    """
    notional = abs(execution.quantity * execution.price)
    return -notional if execution.side == ExecutionSide.BUY else notional


def max_drawdown_percent(values: Iterable[float]) -> float:
    """
    Largest peak-to-trough decline of a value series, in percent.

    Points where the running peak is zero contribute no drawdown.
    """
    max_drawdown = 0.0
    peak = None
    for value in values:
        if peak is None or value > peak:
            peak = value
        if peak == 0:
            continue
        drawdown = (peak - value) / abs(peak) * 100
        max_drawdown = max(max_drawdown, drawdown)
    return max_drawdown


def _sharpe(pnl_values: Sequence[float]) -> float:
    """Mean over population standard deviation; no risk-free rate, not annualized."""
    count = len(pnl_values)
    mean = sum(pnl_values) / count
    variance = sum((pnl - mean) ** 2 for pnl in pnl_values) / count
    std_dev = math.sqrt(variance)
    return mean / std_dev if std_dev > 0 else 0.0


def compute_metrics(executions: Sequence[Execution]) -> PerformanceMetrics:
    """
    Calculate performance metrics for a list of executions.

    Args:
        executions: Executions in chronological order

    Returns:
        PerformanceMetrics; all zero for an empty list
    """
    if not executions:
        return PerformanceMetrics.empty()

    pnl_values = [execution_pnl(e) for e in executions]

    total_pnl = sum(pnl_values)
    # Zero-notional executions are neither wins nor losses.
    wins = [pnl for pnl in pnl_values if pnl > 0]
    losses = [pnl for pnl in pnl_values if pnl < 0]

    win_rate = len(wins) / len(pnl_values) * 100
    average_win = sum(wins) / len(wins) if wins else 0.0
    average_loss = abs(sum(losses) / len(losses)) if losses else 0.0
    profit_factor = average_win / average_loss if average_loss > 0 else 0.0

    # Cumulative P&L starts from a flat book.
    cumulative = [0.0]
    running = 0.0
    for pnl in pnl_values:
        running += pnl
        cumulative.append(running)
    max_drawdown = max_drawdown_percent(cumulative)

    return PerformanceMetrics(
        total_return=total_pnl,
        sharpe_ratio=round_metric(_sharpe(pnl_values), SHARPE_PRECISION),
        max_drawdown=round_metric(max_drawdown, DRAWDOWN_PRECISION),
        win_rate=round_metric(win_rate, WIN_RATE_PRECISION),
        profit_factor=round_metric(profit_factor, PROFIT_FACTOR_PRECISION),
        average_win=round_metric(average_win, AVERAGE_TRADE_PRECISION),
        average_loss=round_metric(average_loss, AVERAGE_TRADE_PRECISION),
        total_trades=len(executions),
        winning_trades=len(wins),
        losing_trades=len(losses),
    )


def group_by_strategy(executions: Iterable[Execution]) -> Dict[str, List[Execution]]:
    """Group executions by strategy name in first-seen order."""
    groups: Dict[str, List[Execution]] = {}
    for execution in executions:
        name = execution.strategy_name or UNKNOWN_STRATEGY
        groups.setdefault(name, []).append(execution)
    return groups


def calculate_strategy_breakdown(executions: Sequence[Execution]) -> List[StrategyBreakdown]:
    """Per-strategy execution metrics, in the order strategies first appear."""
    breakdown: List[StrategyBreakdown] = []
    for strategy_name, strategy_execs in group_by_strategy(executions).items():
        metrics = compute_metrics(strategy_execs)
        breakdown.append(
            StrategyBreakdown(
                strategy=strategy_name,
                executions=len(strategy_execs),
                total_return=metrics.total_return,
                win_rate=metrics.win_rate,
                sharpe_ratio=metrics.sharpe_ratio,
                max_drawdown=metrics.max_drawdown,
            )
        )
    logger.debug("Strategy breakdown built for %d strategies", len(breakdown))
    return breakdown

"""
Backtest Comparison Service.
Compares multiple completed backtest runs: best-in-class per metric,
composite ranking, and equity-curve correlation.
"""
import logging
import math
import operator
from typing import Callable, Dict, List, NamedTuple, Sequence, Union

from config.analytics_config import COMPOSITE_WEIGHTS, NEUTRAL_SCORE
from engine.models import (
    BacktestPerformance,
    BacktestResult,
    BestPerformer,
    ComparisonSummary,
    EquityPoint,
    RankingEntry,
    RankingMetrics,
    RankingResult,
)

logger = logging.getLogger(__name__)


class RankedRun(NamedTuple):
    """Name plus performance summary of one run to compare."""
    name: str
    performance: BacktestPerformance


RunInput = Union[RankedRun, BacktestResult]


def _as_run(run: RunInput) -> RankedRun:
    if isinstance(run, BacktestResult):
        return RankedRun(run.strategy_name, run.performance or BacktestPerformance())
    return RankedRun(run[0], run[1])


def normalize_scores(values: Sequence[float]) -> List[float]:
    """
    Min-max scale every value onto 0-100.

    Needs the whole set up front. When all values are equal each one
    scores the neutral 50.
    """
    if not values:
        return []
    low = min(values)
    high = max(values)
    if high == low:
        return [NEUTRAL_SCORE for _ in values]
    return [(v - low) / (high - low) * 100 for v in values]


def _best(
    runs: Sequence[RankedRun],
    metric: Callable[[BacktestPerformance], float],
    better: Callable[[float, float], bool],
) -> BestPerformer:
    """Linear scan keeping the first run on ties."""
    best = runs[0]
    for run in runs[1:]:
        if better(metric(run.performance), metric(best.performance)):
            best = run
    return BestPerformer(name=best.name, value=metric(best.performance))


def _summarize(runs: Sequence[RankedRun]) -> ComparisonSummary:
    return ComparisonSummary(
        best_return=_best(runs, lambda p: p.total_return_percent, operator.gt),
        best_sharpe=_best(runs, lambda p: p.sharpe_ratio, operator.gt),
        lowest_drawdown=_best(runs, lambda p: p.max_drawdown_percent, operator.lt),
        most_trades=_best(runs, lambda p: p.total_trades, operator.gt),
    )


def compare_backtests(runs: Sequence[RunInput]) -> RankingResult:
    """
    Rank backtest runs by a weighted composite of normalized metrics.

    Args:
        runs: BacktestResult bundles or (name, performance) pairs

    Returns:
        RankingResult with best-in-class summary and ranks 1..N
    """
    ranked_runs = [_as_run(run) for run in runs]
    if not ranked_runs:
        return RankingResult()

    performances = [run.performance for run in ranked_runs]
    scores: Dict[str, List[float]] = {
        "return": normalize_scores([p.total_return_percent for p in performances]),
        "sharpe": normalize_scores([p.sharpe_ratio for p in performances]),
        # Lower drawdown is better.
        "drawdown": normalize_scores([-p.max_drawdown_percent for p in performances]),
        "win_rate": normalize_scores([p.win_rate for p in performances]),
    }

    scored = []
    for i, run in enumerate(ranked_runs):
        composite = sum(COMPOSITE_WEIGHTS[key] * scores[key][i] for key in COMPOSITE_WEIGHTS)
        scored.append((composite, run))

    # sort() is stable, so equal scores keep input order.
    scored.sort(key=lambda item: item[0], reverse=True)

    rankings = [
        RankingEntry(
            name=run.name,
            rank=position,
            score=composite,
            metrics=RankingMetrics(
                return_percent=run.performance.total_return_percent,
                sharpe=run.performance.sharpe_ratio,
                drawdown=run.performance.max_drawdown_percent,
                win_rate=run.performance.win_rate,
            ),
        )
        for position, (composite, run) in enumerate(scored, start=1)
    ]
    logger.info(
        "Ranked %d backtests; leader %s (score %.2f)",
        len(rankings),
        rankings[0].name,
        rankings[0].score,
    )
    return RankingResult(summary=_summarize(ranked_runs), rankings=rankings)


rank = compare_backtests


def calculate_correlation(curve_a: Sequence[EquityPoint], curve_b: Sequence[EquityPoint]) -> float:
    """
    Pearson correlation of the period returns of two equity curves.

    The first point of each curve is skipped. Curves of different length or
    shorter than two points, and flat return series, correlate as 0.
    """
    if len(curve_a) != len(curve_b) or len(curve_a) < 2:
        return 0.0

    returns_a = [p.returns for p in curve_a[1:]]
    returns_b = [p.returns for p in curve_b[1:]]
    mean_a = sum(returns_a) / len(returns_a)
    mean_b = sum(returns_b) / len(returns_b)

    numerator = 0.0
    sum_sq_a = 0.0
    sum_sq_b = 0.0
    for ra, rb in zip(returns_a, returns_b):
        diff_a = ra - mean_a
        diff_b = rb - mean_b
        numerator += diff_a * diff_b
        sum_sq_a += diff_a * diff_a
        sum_sq_b += diff_b * diff_b

    denominator = math.sqrt(sum_sq_a * sum_sq_b)
    return numerator / denominator if denominator != 0 else 0.0


def calculate_correlation_matrix(results: Sequence[BacktestResult]) -> Dict[str, Dict[str, float]]:
    """Pairwise equity-curve correlation keyed by strategy name."""
    matrix: Dict[str, Dict[str, float]] = {}
    for a in results:
        row = matrix.setdefault(a.strategy_name, {})
        for b in results:
            row[b.strategy_name] = calculate_correlation(a.equity_curve, b.equity_curve)
    return matrix

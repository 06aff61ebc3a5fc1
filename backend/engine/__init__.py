"""
Analytics engine value objects.

Immutable models shared by the analytics services:
- Raw inputs (executions, trades, equity points, regime events)
- Metric summaries (performance, regime, advanced)
- Comparison and validation results
"""

from engine.models import (
    AnalyticsInputError,
    Execution,
    ExecutionSide,
    Trade,
    TradeSide,
    EquityPoint,
    RegimeChangeEvent,
    RegimePeriod,
    CapitalSnapshot,
    PerformanceMetrics,
    StrategyBreakdown,
    RegimePerformance,
    BacktestPerformance,
    BacktestPeriod,
    BacktestResult,
    AdvancedMetrics,
    RankingEntry,
    RankingResult,
    ValidationResult,
    PerformanceAnalytics,
)

__all__ = [
    "AnalyticsInputError",
    "Execution",
    "ExecutionSide",
    "Trade",
    "TradeSide",
    "EquityPoint",
    "RegimeChangeEvent",
    "RegimePeriod",
    "CapitalSnapshot",
    "PerformanceMetrics",
    "StrategyBreakdown",
    "RegimePerformance",
    "BacktestPerformance",
    "BacktestPeriod",
    "BacktestResult",
    "AdvancedMetrics",
    "RankingEntry",
    "RankingResult",
    "ValidationResult",
    "PerformanceAnalytics",
]

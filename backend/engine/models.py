"""
Analytics Data Models.
Defines immutable Pydantic value objects for executions, trades, equity
curves, regimes and the metric summaries built from them.

Storage rows are loosely typed (ORM objects or plain dicts). They are
converted once, at the boundary, through the ``from_row`` constructors so the
calculators only ever see typed values.
"""
from typing import Optional, List, Any, Mapping
from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from config.analytics_config import UNKNOWN_REGIME


class AnalyticsInputError(ValueError):
    """Raised when a storage row cannot be converted into a value object."""


def read_field(row: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from a mapping or attribute-style row."""
    if row is None:
        return default
    if isinstance(row, Mapping):
        value = row.get(name, default)
    else:
        value = getattr(row, name, default)
    return default if value is None else value


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Read naive timestamps as UTC so rows from different sources compare."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class _ValueObject(BaseModel):
    """Frozen base for all analytics value objects."""
    model_config = ConfigDict(frozen=True)


# ============================================================================
# Enums
# ============================================================================

class ExecutionSide(str, Enum):
    """Execution side enumeration."""
    BUY = "buy"
    SELL = "sell"


class TradeSide(str, Enum):
    """Round-trip trade direction."""
    LONG = "long"
    SHORT = "short"


# ============================================================================
# Raw inputs
# ============================================================================

class Execution(_ValueObject):
    """A single fill: one side, one quantity, one price, one timestamp."""
    timestamp: datetime
    symbol: str = ""
    side: ExecutionSide
    quantity: float
    price: float
    strategy_name: Optional[str] = None
    id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Any) -> "Execution":
        """
        Build an execution from a storage row.

        Understands both the flat shape (``timestamp``/``symbol``/
        ``strategy_name``) and the joined dashboard shape (``executed_at``,
        ``symbols.symbol``, ``positions.strategies.name``).
        """
        if isinstance(row, Execution):
            return row.model_copy(update={"timestamp": as_utc(row.timestamp)})
        symbol = read_field(row, "symbol")
        if symbol is None:
            symbol = read_field(read_field(row, "symbols"), "symbol", "")
        strategy_name = read_field(row, "strategy_name")
        if strategy_name is None:
            strategies = read_field(read_field(row, "positions"), "strategies")
            strategy_name = read_field(strategies, "name")
        raw_id = read_field(row, "id")
        side = read_field(row, "side", "")
        try:
            execution = cls(
                timestamp=read_field(row, "timestamp") or read_field(row, "executed_at"),
                symbol=str(symbol),
                side=str(getattr(side, "value", side)).lower(),
                quantity=float(read_field(row, "quantity", 0.0)),
                price=float(read_field(row, "price", 0.0)),
                strategy_name=strategy_name,
                id=str(raw_id) if raw_id is not None else None,
            )
        except (ValidationError, TypeError, ValueError) as e:
            raise AnalyticsInputError(f"Invalid execution row: {e}") from e
        return execution.model_copy(update={"timestamp": as_utc(execution.timestamp)})


class Trade(_ValueObject):
    """
    Closed round-trip trade.

    Entry/exit ordering and positive quantity are expected but not enforced
    here; the result validator reports violations instead.
    """
    id: str = ""
    symbol: str = ""
    entry_date: datetime
    exit_date: datetime
    entry_price: float = 0.0
    exit_price: float = 0.0
    quantity: float
    side: TradeSide = TradeSide.LONG
    pnl: float = 0.0
    pnl_percent: float = 0.0
    duration: float = 0.0  # days
    commission: float = 0.0
    slippage: float = 0.0


class EquityPoint(_ValueObject):
    """One snapshot of an equity curve."""
    date: datetime
    equity: float
    returns: float = 0.0  # period return
    cumulative_returns: float = 0.0
    drawdown: float = 0.0  # fraction of running peak
    positions: int = 0
    cash: float = 0.0


class RegimeChangeEvent(_ValueObject):
    """A recorded switch of the global market regime."""
    regime_id: Optional[int] = None
    regime_name: str = UNKNOWN_REGIME
    created_at: datetime
    regime_start_date: Optional[datetime] = None
    regime_duration_hours: float = 0.0

    @property
    def start(self) -> datetime:
        """Explicit regime start when recorded, otherwise the event time."""
        return self.regime_start_date or self.created_at

    def _in_utc(self) -> "RegimeChangeEvent":
        return self.model_copy(
            update={
                "created_at": as_utc(self.created_at),
                "regime_start_date": as_utc(self.regime_start_date),
            }
        )

    @classmethod
    def from_row(cls, row: Any) -> "RegimeChangeEvent":
        """Build an event from a regime-history storage row."""
        if isinstance(row, RegimeChangeEvent):
            return row._in_utc()
        name = read_field(row, "regime_name")
        if name is None:
            regime_type = read_field(row, "regime_type") or read_field(
                row, "regime_types_global_market_regime_current_regime_idToregime_types"
            )
            name = read_field(regime_type, "name", UNKNOWN_REGIME)
        regime_id = read_field(row, "regime_id")
        if regime_id is None:
            regime_id = read_field(row, "current_regime_id")
        try:
            event = cls(
                regime_id=regime_id,
                regime_name=str(name),
                created_at=read_field(row, "created_at"),
                regime_start_date=read_field(row, "regime_start_date"),
                regime_duration_hours=float(read_field(row, "regime_duration_hours", 0.0)),
            )
        except (ValidationError, TypeError, ValueError) as e:
            raise AnalyticsInputError(f"Invalid regime event row: {e}") from e
        return event._in_utc()


class RegimePeriod(_ValueObject):
    """Interval during which one regime was active; ``end_date`` None means still open."""
    regime_id: Optional[int] = None
    regime_name: str
    start_date: datetime
    end_date: Optional[datetime] = None
    duration: float = 0.0  # hours

    @property
    def is_open(self) -> bool:
        return self.end_date is None

    def contains(self, timestamp: datetime) -> bool:
        """True when ``timestamp`` falls inside the period (both bounds inclusive)."""
        timestamp = as_utc(timestamp)
        if timestamp < as_utc(self.start_date):
            return False
        return self.end_date is None or timestamp <= as_utc(self.end_date)


class CapitalSnapshot(_ValueObject):
    """Strategy capital snapshot used for the dashboard time series."""
    created_at: datetime
    allocated_capital: float = 0.0
    used_capital: float = 0.0
    realized_pnl: float = 0.0
    unrealized_pnl: float = 0.0
    strategy_name: Optional[str] = None

    @classmethod
    def from_row(cls, row: Any) -> "CapitalSnapshot":
        if isinstance(row, CapitalSnapshot):
            return row
        strategy_name = read_field(row, "strategy_name")
        if strategy_name is None:
            strategy_name = read_field(read_field(row, "strategies"), "name")
        try:
            return cls(
                created_at=read_field(row, "created_at"),
                allocated_capital=float(read_field(row, "allocated_capital", 0.0)),
                used_capital=float(read_field(row, "used_capital", 0.0)),
                realized_pnl=float(read_field(row, "realized_pnl", 0.0)),
                unrealized_pnl=float(read_field(row, "unrealized_pnl", 0.0)),
                strategy_name=strategy_name,
            )
        except (ValidationError, TypeError, ValueError) as e:
            raise AnalyticsInputError(f"Invalid capital snapshot row: {e}") from e


# ============================================================================
# Metric summaries
# ============================================================================

class PerformanceMetrics(_ValueObject):
    """Execution-level performance summary."""
    total_return: float = 0.0
    sharpe_ratio: float = 0.0
    max_drawdown: float = 0.0  # percent
    win_rate: float = 0.0  # percent
    profit_factor: float = 0.0
    average_win: float = 0.0
    average_loss: float = 0.0
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0

    @classmethod
    def empty(cls) -> "PerformanceMetrics":
        return cls()


class StrategyBreakdown(_ValueObject):
    """Per-strategy slice of execution metrics."""
    strategy: str
    executions: int = 0
    total_return: float = 0.0
    win_rate: float = 0.0
    sharpe_ratio: float = 0.0
    max_drawdown: float = 0.0


class RegimePerformance(_ValueObject):
    """Execution metrics attributed to one market regime."""
    regime: str
    avg_return: float = 0.0  # total pnl inside the regime
    sharpe: float = 0.0
    max_drawdown: float = 0.0
    win_rate: float = 0.0
    profit_factor: float = 0.0
    average_win: float = 0.0
    average_loss: float = 0.0
    winning_trades: int = 0
    losing_trades: int = 0
    occurrences: int = 0
    avg_duration: int = 0  # days
    executions: int = 0


class BacktestPerformance(_ValueObject):
    """Summary statistics of one completed backtest run."""
    initial_capital: float = 0.0
    final_capital: float = 0.0
    total_return: float = 0.0
    total_return_percent: float = 0.0
    annualized_return: float = 0.0
    volatility: float = 0.0
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0
    max_drawdown: float = 0.0
    max_drawdown_percent: float = 0.0
    max_drawdown_duration: int = 0  # days
    win_rate: float = 0.0
    profit_factor: float = 0.0
    average_win: float = 0.0
    average_loss: float = 0.0
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    average_trade_return: float = 0.0


class BacktestPeriod(_ValueObject):
    """Date span covered by a backtest."""
    start: datetime
    end: datetime
    total_days: int = 0
    trading_days: int = 0


class BacktestResult(_ValueObject):
    """A complete backtest bundle as returned by the backtest service."""
    backtest_id: str = ""
    strategy_name: str = ""
    symbols: List[str] = Field(default_factory=list)
    period: Optional[BacktestPeriod] = None
    performance: Optional[BacktestPerformance] = None
    trades: List[Trade] = Field(default_factory=list)
    equity_curve: List[EquityPoint] = Field(default_factory=list)


class AdvancedMetrics(_ValueObject):
    """Secondary risk measures derived from an equity curve and trade list."""
    ulcer_index: float = 0.0
    recovery_factor: float = 0.0
    gain_to_pain_ratio: float = 0.0
    probability_of_success: float = 0.0
    average_monthly_return: float = 0.0
    worst_month: float = 0.0
    best_month: float = 0.0
    consecutive_win_streak: int = 0
    consecutive_loss_streak: int = 0


# ============================================================================
# Comparison
# ============================================================================

class BestPerformer(_ValueObject):
    """Owner of the best value for one metric."""
    name: str = ""
    value: float = 0.0


class ComparisonSummary(_ValueObject):
    """Best-in-class runs per headline metric."""
    best_return: BestPerformer = Field(default_factory=BestPerformer)
    best_sharpe: BestPerformer = Field(default_factory=BestPerformer)
    lowest_drawdown: BestPerformer = Field(default_factory=BestPerformer)
    most_trades: BestPerformer = Field(default_factory=BestPerformer)


class RankingMetrics(_ValueObject):
    """Raw metric values carried alongside a ranking entry."""
    return_percent: float = 0.0
    sharpe: float = 0.0
    drawdown: float = 0.0
    win_rate: float = 0.0


class RankingEntry(_ValueObject):
    """A run's place in the composite ranking."""
    name: str
    rank: int
    score: float  # 0-100
    metrics: RankingMetrics


class RankingResult(_ValueObject):
    """Comparison summary plus the ordered ranking."""
    summary: ComparisonSummary = Field(default_factory=ComparisonSummary)
    rankings: List[RankingEntry] = Field(default_factory=list)


class ValidationResult(_ValueObject):
    """Outcome of structural checks on a result bundle."""
    valid: bool
    errors: List[str] = Field(default_factory=list)


# ============================================================================
# Dashboard payload
# ============================================================================

class TimeSeriesPoint(_ValueObject):
    """One row of the dashboard capital time series."""
    date: str  # YYYY-MM-DD
    portfolio_value: float = 0.0
    total_capital: float = 0.0
    used_capital: float = 0.0
    pnl: float = 0.0
    realized_pnl: float = 0.0
    unrealized_pnl: float = 0.0


class DateRange(_ValueObject):
    """Resolved request window."""
    start: Optional[datetime] = None
    end: datetime
    period: str


class PerformanceAnalytics(_ValueObject):
    """Everything the performance dashboard renders for one request."""
    metrics: PerformanceMetrics
    time_series: List[TimeSeriesPoint] = Field(default_factory=list)
    strategy_breakdown: List[StrategyBreakdown] = Field(default_factory=list)
    regime_performance: List[RegimePerformance] = Field(default_factory=list)
    total_executions: int = 0
    date_range: DateRange

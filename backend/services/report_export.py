"""
Backtest Report Export Service.
Formats backtest results for display, narrative summaries and CSV export.
"""
import csv
import io
from typing import Dict, Iterable, List, NamedTuple

from engine.models import BacktestPerformance, BacktestResult
from services.risk_analytics import calculate_advanced_metrics_for_result


class CsvExport(NamedTuple):
    """CSV documents produced for one backtest."""
    trades: str
    equity: str
    summary: str


TRADE_HEADERS = [
    "Date Entry", "Date Exit", "Symbol", "Side", "Quantity",
    "Entry Price", "Exit Price", "PnL", "PnL %", "Duration",
]
EQUITY_HEADERS = ["Date", "Equity", "Returns", "Cumulative Returns", "Drawdown", "Cash", "Positions"]


def _signed_percent(value: float) -> str:
    return f"{'+' if value >= 0 else ''}{value:.2f}%"


def format_performance_metrics(performance: BacktestPerformance) -> Dict[str, str]:
    """Display strings for the headline performance metrics."""
    return {
        "Total Return": _signed_percent(performance.total_return_percent),
        "Annualized Return": _signed_percent(performance.annualized_return),
        "Sharpe Ratio": f"{performance.sharpe_ratio:.3f}",
        "Sortino Ratio": f"{performance.sortino_ratio:.3f}",
        "Max Drawdown": f"{performance.max_drawdown_percent:.2f}%",
        "Volatility": f"{performance.volatility:.2f}%",
        "Win Rate": f"{performance.win_rate:.1f}%",
        "Profit Factor": f"{performance.profit_factor:.3f}",
        "Total Trades": str(performance.total_trades),
        "Avg Trade": _signed_percent(performance.average_trade_return),
    }


def generate_report_summary(result: BacktestResult) -> str:
    """Plain-English summary paragraph set for a backtest result."""
    performance = result.performance or BacktestPerformance()
    advanced = calculate_advanced_metrics_for_result(result)

    is_positive = performance.total_return_percent > 0
    performance_verb = "generated" if is_positive else "resulted in"
    return_description = "profit" if is_positive else "loss"
    quality = "profitable" if performance.profit_factor > 1 else "unprofitable"

    if result.period is not None:
        span = (
            f"ran from {result.period.start.date().isoformat()} to "
            f"{result.period.end.date().isoformat()}, covering "
            f"{result.period.trading_days} trading days"
        )
    else:
        span = "covered an unspecified period"

    paragraphs = [
        f"The {result.strategy_name} strategy backtest {span}.",
        (
            f"The strategy {performance_verb} a total return of "
            f"{performance.total_return_percent:.2f}% ({return_description}) with an "
            f"annualized return of {performance.annualized_return:.2f}%."
        ),
        (
            f"Risk-adjusted performance showed a Sharpe ratio of {performance.sharpe_ratio:.3f} "
            f"and a Sortino ratio of {performance.sortino_ratio:.3f}. The maximum drawdown "
            f"reached {performance.max_drawdown_percent:.2f}%, lasting "
            f"{performance.max_drawdown_duration} days."
        ),
        (
            f"Trading activity included {performance.total_trades} total trades with a win rate "
            f"of {performance.win_rate:.1f}%. The profit factor was "
            f"{performance.profit_factor:.3f}, indicating {quality} trading overall."
        ),
        (
            f"The strategy showed {advanced.consecutive_win_streak} consecutive winning trades "
            f"at best and {advanced.consecutive_loss_streak} consecutive losing trades at worst. "
            f"Monthly performance analysis revealed an average monthly return of "
            f"{advanced.average_monthly_return:.2f}%, with the best month at "
            f"{advanced.best_month:.2f}% and worst month at {advanced.worst_month:.2f}%."
        ),
    ]
    return "\n\n".join(paragraphs)


def _to_csv(headers: List[str], rows: Iterable[List[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return buffer.getvalue().rstrip("\n")


def export_to_csv(result: BacktestResult) -> CsvExport:
    """Render trades, equity curve and headline summary as CSV text."""
    trade_rows = [
        [
            trade.entry_date.date().isoformat(),
            trade.exit_date.date().isoformat(),
            trade.symbol,
            trade.side.value,
            f"{trade.quantity:g}",
            f"{trade.entry_price:.4f}",
            f"{trade.exit_price:.4f}",
            f"{trade.pnl:.2f}",
            f"{trade.pnl_percent:.2f}",
            f"{trade.duration:g}",
        ]
        for trade in result.trades
    ]
    equity_rows = [
        [
            point.date.date().isoformat(),
            f"{point.equity:.2f}",
            f"{point.returns:.4f}",
            f"{point.cumulative_returns:.4f}",
            f"{point.drawdown:.4f}",
            f"{point.cash:.2f}",
            str(point.positions),
        ]
        for point in result.equity_curve
    ]
    summary = format_performance_metrics(result.performance or BacktestPerformance())
    return CsvExport(
        trades=_to_csv(TRADE_HEADERS, trade_rows),
        equity=_to_csv(EQUITY_HEADERS, equity_rows),
        summary=_to_csv(["Metric", "Value"], ([k, v] for k, v in summary.items())),
    )

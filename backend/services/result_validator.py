"""
Backtest Result Validator.

Checks the structural integrity of a backtest result bundle before the
analytics services trust it. Problems are reported, never raised, so callers
decide what to do with a partially malformed bundle.
"""
import logging
from datetime import datetime
from typing import Any, List, Optional

from pydantic import TypeAdapter, ValidationError

from engine.models import ValidationResult, read_field

logger = logging.getLogger(__name__)

_datetime_adapter = TypeAdapter(datetime)


def _parse_date(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    try:
        return _datetime_adapter.validate_python(value)
    except ValidationError:
        return None


def _number(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _strictly_before(earlier: Optional[datetime], later: Optional[datetime]) -> bool:
    if earlier is None or later is None:
        return False
    try:
        return earlier < later
    except TypeError:
        # naive vs aware timestamps cannot be ordered
        return False


def _check_performance(performance: Any, trades: Any, errors: List[str]) -> None:
    total_trades = _number(read_field(performance, "total_trades", 0))
    if isinstance(trades, list) and total_trades != len(trades):
        errors.append("Trade count mismatch between performance and trades array")

    winning = _number(read_field(performance, "winning_trades", 0))
    losing = _number(read_field(performance, "losing_trades", 0))
    if winning is None or losing is None or winning + losing != total_trades:
        errors.append("Winning + losing trades does not equal total trades")


def _check_equity_curve(equity_curve: List[Any], errors: List[str]) -> None:
    previous: Optional[datetime] = None
    for point in equity_curve:
        current = _parse_date(read_field(point, "date"))
        if current is None or (previous is not None and not _strictly_before(previous, current)):
            errors.append("Equity curve dates are not in chronological order")
            return
        previous = current


def _check_trades(trades: List[Any], errors: List[str]) -> None:
    for trade in trades:
        trade_id = read_field(trade, "id", "")
        entry = _parse_date(read_field(trade, "entry_date"))
        exit_ = _parse_date(read_field(trade, "exit_date"))
        if not _strictly_before(entry, exit_):
            errors.append(f"Trade {trade_id}: entry date must be before exit date")

        quantity = _number(read_field(trade, "quantity"))
        if quantity is None or quantity <= 0:
            errors.append(f"Trade {trade_id}: quantity must be positive")


def validate_backtest_result(result: Any) -> ValidationResult:
    """
    Validate backtest result data integrity.

    Args:
        result: BacktestResult or a raw mapping with the same snake_case keys

    Returns:
        ValidationResult listing every problem found
    """
    errors: List[str] = []

    if not read_field(result, "backtest_id"):
        errors.append("Missing backtest ID")
    if not read_field(result, "strategy_name"):
        errors.append("Missing strategy name")

    performance = read_field(result, "performance")
    if performance is None:
        errors.append("Missing performance data")

    trades = read_field(result, "trades")
    if not isinstance(trades, list):
        errors.append("Invalid trades data")
    equity_curve = read_field(result, "equity_curve")
    if not isinstance(equity_curve, list):
        errors.append("Invalid equity curve data")

    if performance is not None:
        _check_performance(performance, trades, errors)
    if isinstance(equity_curve, list) and len(equity_curve) > 1:
        _check_equity_curve(equity_curve, errors)
    if isinstance(trades, list):
        _check_trades(trades, errors)

    if errors:
        logger.info(
            "Backtest result %s failed validation with %d error(s)",
            read_field(result, "backtest_id", "<unknown>"),
            len(errors),
        )
    return ValidationResult(valid=not errors, errors=errors)

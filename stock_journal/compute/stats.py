from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable

from stock_journal.models import TRANSACTION_BUY, TRANSACTION_SELL, TradingRecord


@dataclass(frozen=True)
class TradingStats:
    total_investment: float
    total_return: float
    total_fees: float
    net_profit_loss: float
    trade_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _gross(r: TradingRecord) -> float:
    return int(r.quantity) * float(r.price)


def _fees(r: TradingRecord) -> float:
    return float(r.commission or 0) + float(r.tax or 0)


def compute_trading_stats(records: Iterable[TradingRecord]) -> TradingStats:
    """Portfolio-level profit/loss.

    Fees (commission + tax) of every record, buy or sell, are deducted once from the
    net result. Gross amounts are quantity * price per side.
    """
    total_investment = 0.0
    total_return = 0.0
    total_fees = 0.0
    n = 0
    for r in records:
        n += 1
        if r.transaction_type == TRANSACTION_BUY:
            total_investment += _gross(r)
        elif r.transaction_type == TRANSACTION_SELL:
            total_return += _gross(r)
        total_fees += _fees(r)

    return TradingStats(
        total_investment=total_investment,
        total_return=total_return,
        total_fees=total_fees,
        net_profit_loss=total_return - total_investment - total_fees,
        trade_count=n,
    )


def display_amount(record: TradingRecord) -> float:
    """Signed per-row amount shown next to a record.

    NOTE: fees are *added* on both sides here (a sell shows gross + fees), unlike
    compute_trading_stats() which deducts them. The two views are kept as they are
    until the intended semantics are confirmed; see DESIGN.md.
    """
    total = _gross(record) + _fees(record)
    if record.transaction_type == TRANSACTION_BUY:
        return -total
    return total

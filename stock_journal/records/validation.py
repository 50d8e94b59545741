from __future__ import annotations

import math
from typing import Any, Dict, Mapping

from stock_journal.models import TRANSACTION_TYPES
from stock_journal.util.time import parse_iso_date

EDITABLE_FIELDS = (
    "trade_date",
    "stock_symbol",
    "stock_name",
    "transaction_type",
    "quantity",
    "price",
    "commission",
    "tax",
    "notes",
)


def _blank(v: Any) -> bool:
    return v is None or (isinstance(v, str) and not v.strip())


def _optional_text(v: Any) -> str | None:
    if _blank(v):
        return None
    return str(v).strip()


def _to_quantity(v: Any) -> int:
    if _blank(v):
        raise ValueError("quantity_required")
    if isinstance(v, bool):
        raise ValueError("quantity_not_integer")
    if isinstance(v, float):
        if not v.is_integer():
            raise ValueError("quantity_not_integer")
        q = int(v)
    else:
        try:
            q = int(str(v).strip())
        except ValueError:
            raise ValueError("quantity_not_integer")
    if q <= 0:
        raise ValueError("quantity_not_positive")
    return q


def _to_amount(v: Any, field: str, *, default: float | None = None) -> float:
    if _blank(v):
        if default is None:
            raise ValueError(f"{field}_required")
        return default
    if isinstance(v, bool):
        raise ValueError(f"{field}_not_numeric")
    try:
        x = float(str(v).strip()) if isinstance(v, str) else float(v)
    except (TypeError, ValueError):
        raise ValueError(f"{field}_not_numeric")
    if math.isnan(x) or math.isinf(x):
        raise ValueError(f"{field}_not_numeric")
    if x < 0:
        raise ValueError(f"{field}_negative")
    return x


def validate_record_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate and normalize the editable fields of a trading record.

    Returns a new dict containing exactly EDITABLE_FIELDS. Raises ValueError with a
    detail code on the first problem found. Nothing is written before this passes.
    """
    if _blank(fields.get("trade_date")):
        raise ValueError("trade_date_required")
    try:
        trade_date = parse_iso_date(fields.get("trade_date"))
    except ValueError:
        raise ValueError("trade_date_invalid")

    symbol = _optional_text(fields.get("stock_symbol"))
    if symbol is None:
        raise ValueError("stock_symbol_required")

    tx = str(fields.get("transaction_type") or "").strip().lower()
    if not tx:
        raise ValueError("transaction_type_required")
    if tx not in TRANSACTION_TYPES:
        raise ValueError("invalid_transaction_type")

    return {
        "trade_date": trade_date,
        "stock_symbol": symbol.upper(),
        "stock_name": _optional_text(fields.get("stock_name")),
        "transaction_type": tx,
        "quantity": _to_quantity(fields.get("quantity")),
        "price": _to_amount(fields.get("price"), "price"),
        "commission": _to_amount(fields.get("commission"), "commission", default=0.0),
        "tax": _to_amount(fields.get("tax"), "tax", default=0.0),
        "notes": _optional_text(fields.get("notes")),
    }

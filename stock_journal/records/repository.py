"""Trading record persistence.

Every statement carries the owner predicate (`user_id=?`), so a record owned by
someone else behaves exactly like a record that does not exist: it is never listed,
and update/delete report it as not found.
"""

from __future__ import annotations

import uuid
from typing import Any, Dict, List, Mapping

from stock_journal.models import TradingRecord
from stock_journal.util.time import utcnow_iso_us

from .validation import EDITABLE_FIELDS, validate_record_fields


def _debug(msg: str) -> None:
    print(f"[records] {msg}")


class RecordNotFound(LookupError):
    def __init__(self, record_id: str):
        super().__init__("record_not_found")
        self.record_id = record_id


def _require_owner(owner: str) -> str:
    o = str(owner or "").strip()
    if not o:
        # Without an identity there is nothing the owner predicate could match.
        raise PermissionError("owner_required")
    return o


def list_records(conn: Any, owner: str) -> List[TradingRecord]:
    rows = conn.execute(
        """
        SELECT * FROM trading_records
        WHERE user_id=?
        ORDER BY trade_date DESC, created_at DESC
        """,
        (_require_owner(owner),),
    ).fetchall()
    return [TradingRecord.from_row(r) for r in rows]


def get_record(conn: Any, owner: str, record_id: str) -> TradingRecord:
    row = conn.execute(
        "SELECT * FROM trading_records WHERE id=? AND user_id=?",
        (str(record_id), _require_owner(owner)),
    ).fetchone()
    if row is None:
        raise RecordNotFound(str(record_id))
    return TradingRecord.from_row(row)


def create_record(conn: Any, owner: str, fields: Mapping[str, Any]) -> TradingRecord:
    o = _require_owner(owner)
    v = validate_record_fields(fields)
    record_id = str(uuid.uuid4())
    now = utcnow_iso_us()
    conn.execute(
        """
        INSERT INTO trading_records (
            id, user_id, trade_date, stock_symbol, stock_name, transaction_type,
            quantity, price, commission, tax, notes, created_at, updated_at
        ) VALUES (?,?,?,?,?,?,?,?,?,?,?,?,?)
        """,
        (
            record_id,
            o,
            v["trade_date"],
            v["stock_symbol"],
            v["stock_name"],
            v["transaction_type"],
            v["quantity"],
            v["price"],
            v["commission"],
            v["tax"],
            v["notes"],
            now,
            now,
        ),
    )
    _debug(f"Created record id={record_id} symbol={v['stock_symbol']} type={v['transaction_type']}")
    return get_record(conn, o, record_id)


def update_record(conn: Any, owner: str, record_id: str, fields: Mapping[str, Any]) -> TradingRecord:
    """Apply a partial update.

    Unknown keys are ignored. The merged record is validated as a whole, so an update
    can never leave a record that create_record() would have rejected.
    """
    o = _require_owner(owner)
    current = get_record(conn, o, record_id)

    merged: Dict[str, Any] = {k: getattr(current, k) for k in EDITABLE_FIELDS}
    for k in EDITABLE_FIELDS:
        if k in fields:
            merged[k] = fields[k]
    v = validate_record_fields(merged)

    now = utcnow_iso_us()
    sets = ", ".join(f"{k}=?" for k in EDITABLE_FIELDS)
    cur = conn.execute(
        f"UPDATE trading_records SET {sets}, updated_at=? WHERE id=? AND user_id=?",
        [v[k] for k in EDITABLE_FIELDS] + [now, str(record_id), o],
    )
    if int(cur.rowcount or 0) == 0:
        raise RecordNotFound(str(record_id))
    return get_record(conn, o, record_id)


def delete_record(conn: Any, owner: str, record_id: str) -> None:
    """Hard delete. A missing (or foreign) id raises RecordNotFound."""
    cur = conn.execute(
        "DELETE FROM trading_records WHERE id=? AND user_id=?",
        (str(record_id), _require_owner(owner)),
    )
    if int(cur.rowcount or 0) == 0:
        raise RecordNotFound(str(record_id))
    _debug(f"Deleted record id={record_id}")

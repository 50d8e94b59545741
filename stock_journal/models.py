from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional

ROLE_ADMIN = "admin"
ROLE_USER = "user"
ROLES = (ROLE_ADMIN, ROLE_USER)

TRANSACTION_BUY = "buy"
TRANSACTION_SELL = "sell"
TRANSACTION_TYPES = (TRANSACTION_BUY, TRANSACTION_SELL)


@dataclass(frozen=True)
class TradingRecord:
    id: str
    user_id: str
    trade_date: str
    stock_symbol: str
    transaction_type: str
    quantity: int
    price: float
    commission: float = 0.0
    tax: float = 0.0
    stock_name: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "TradingRecord":
        d = dict(row)
        return cls(
            id=str(d["id"]),
            user_id=str(d["user_id"]),
            trade_date=str(d["trade_date"]),
            stock_symbol=str(d["stock_symbol"]),
            transaction_type=str(d["transaction_type"]),
            quantity=int(d["quantity"]),
            price=float(d["price"]),
            # NULL fees are treated as zero, same as the column default.
            commission=float(d.get("commission") or 0),
            tax=float(d.get("tax") or 0),
            stock_name=d.get("stock_name"),
            notes=d.get("notes"),
            created_at=d.get("created_at"),
            updated_at=d.get("updated_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class UserProfile:
    id: str
    user_id: str
    display_name: Optional[str]
    email: Optional[str]
    created_at: str
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "UserProfile":
        d = dict(row)
        return cls(
            id=str(d["id"]),
            user_id=str(d["user_id"]),
            display_name=d.get("display_name"),
            email=d.get("email"),
            created_at=str(d["created_at"]),
            updated_at=d.get("updated_at"),
        )


@dataclass(frozen=True)
class DirectoryUser:
    """One row of the admin user listing."""

    user_id: str
    email: Optional[str]
    display_name: Optional[str]
    created_at: str
    role: str
    record_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Session:
    access_token: str
    user_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None

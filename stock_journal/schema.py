"""Database schema for Stock Journal.

SQLite is the default engine; Postgres is supported as well.

Timestamps are ISO-8601 TEXT (UTC, with 'Z') and trade dates are 'YYYY-MM-DD' TEXT,
so ordering by either column is plain lexicographic ordering on both engines.

Identifiers are opaque UUID strings generated by the application.

NOTE: The Postgres schema is generated from the SQLite schema with a small set of
transformations (types + pragmas).
"""

from __future__ import annotations

import re


SCHEMA_SQLITE = r"""
PRAGMA foreign_keys = ON;

CREATE TABLE IF NOT EXISTS app_config (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

-- Identities (sign-in credentials)
-- We use JWTs for stateless sessions and store only password hashes.
CREATE TABLE IF NOT EXISTS identities (
    user_id TEXT PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    last_sign_in_at TEXT
);

-- Profiles: one per identity, created together with the identity.
CREATE TABLE IF NOT EXISTS profiles (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL UNIQUE,
    display_name TEXT,
    email TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY (user_id) REFERENCES identities(user_id) ON DELETE CASCADE
);

-- Roles: a missing row means 'user'.
CREATE TABLE IF NOT EXISTS user_roles (
    user_id TEXT PRIMARY KEY,
    role TEXT NOT NULL CHECK (role IN ('admin','user')),
    updated_at TEXT NOT NULL,
    FOREIGN KEY (user_id) REFERENCES identities(user_id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_user_roles_role ON user_roles (role);

CREATE TABLE IF NOT EXISTS trading_records (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    trade_date TEXT NOT NULL,
    stock_symbol TEXT NOT NULL,
    stock_name TEXT,
    transaction_type TEXT NOT NULL CHECK (transaction_type IN ('buy','sell')),
    quantity INTEGER NOT NULL CHECK (quantity > 0),
    price REAL NOT NULL CHECK (price >= 0),
    commission REAL NOT NULL DEFAULT 0 CHECK (commission >= 0),
    tax REAL NOT NULL DEFAULT 0 CHECK (tax >= 0),
    notes TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY (user_id) REFERENCES identities(user_id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_trading_records_user_date ON trading_records (user_id, trade_date);
"""


def _sqlite_to_postgres(ddl: str) -> str:
    # Remove SQLite pragmas
    lines: list[str] = []
    for line in ddl.splitlines():
        if line.strip().upper().startswith("PRAGMA "):
            continue
        lines.append(line)
    out = "\n".join(lines)

    # Types
    out = re.sub(r"\bREAL\b", "DOUBLE PRECISION", out)

    return out


SCHEMA_POSTGRES = _sqlite_to_postgres(SCHEMA_SQLITE)


def get_schema_sql(dialect: str) -> str:
    d = (dialect or "").lower()
    if d.startswith("post"):
        return SCHEMA_POSTGRES
    return SCHEMA_SQLITE

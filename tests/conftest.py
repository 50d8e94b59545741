"""Shared fixtures: a fresh SQLite database per test."""

from typing import Any, Dict

import pytest

from stock_journal.auth.crud import sign_up
from stock_journal.config import Config
from stock_journal.db import connect, init_db


@pytest.fixture
def cfg(tmp_path):
    """Config pointing at an initialized, empty database under tmp_path."""
    c = Config(
        DB_DSN=str(tmp_path / "journal.sqlite"),
        AUTH_JWT_SECRET="test-secret",
        AUTH_BOOTSTRAP_ADMIN_EMAIL="",
        AUTH_BOOTSTRAP_ADMIN_PASSWORD="",
        CORS_ALLOW_ORIGINS="",
    )
    init_db(c.DB_DSN)
    return c


@pytest.fixture
def conn(cfg):
    """An open connection; committed when the test finishes."""
    with connect(cfg.DB_DSN) as c:
        yield c


@pytest.fixture
def alice(conn) -> Dict[str, Any]:
    return sign_up(conn, email="alice@example.com", password="secret123", display_name="Alice")


@pytest.fixture
def bob(conn) -> Dict[str, Any]:
    return sign_up(conn, email="bob@example.com", password="secret456", display_name="Bob")


@pytest.fixture
def buy_fields() -> Dict[str, Any]:
    return {
        "trade_date": "2024-03-01",
        "stock_symbol": "aapl",
        "stock_name": "Apple",
        "transaction_type": "buy",
        "quantity": 10,
        "price": 100,
        "commission": 5,
    }

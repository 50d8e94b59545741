"""Tests for the store adapter: transactions and error wrapping."""

import pytest
from fastapi.testclient import TestClient

from stock_journal.api.server import create_app
from stock_journal.config import Config
from stock_journal.db import StoreError, connect, upsert_app_config


class TestConnect:

    def test_commits_on_success(self, cfg):
        with connect(cfg.DB_DSN) as conn:
            upsert_app_config(conn, "k", "v")

        with connect(cfg.DB_DSN) as conn:
            row = conn.execute("SELECT value FROM app_config WHERE key=?", ("k",)).fetchone()
        assert row["value"] == "v"

    def test_driver_error_rolls_back_and_raises_store_error(self, cfg):
        with pytest.raises(StoreError):
            with connect(cfg.DB_DSN) as conn:
                upsert_app_config(conn, "written_before_failure", "1")
                # Violates the transaction_type CHECK, the owner foreign key and NOT NULL updated_at.
                conn.execute(
                    """
                    INSERT INTO trading_records (
                        id, user_id, trade_date, stock_symbol, transaction_type,
                        quantity, price, created_at
                    ) VALUES (?,?,?,?,?,?,?,?)
                    """,
                    ("r1", "nobody", "2024-01-01", "AAPL", "hold", 1, 1.0, "2024-01-01T00:00:00Z"),
                )

        with connect(cfg.DB_DSN) as conn:
            row = conn.execute(
                "SELECT 1 FROM app_config WHERE key=?",
                ("written_before_failure",),
            ).fetchone()
            n = conn.execute("SELECT COUNT(*) AS n FROM trading_records").fetchone()["n"]
        assert row is None
        assert n == 0

    def test_other_errors_roll_back_and_propagate_unchanged(self, cfg):
        with pytest.raises(ValueError):
            with connect(cfg.DB_DSN) as conn:
                upsert_app_config(conn, "k2", "v")
                raise ValueError("quantity_required")

        with connect(cfg.DB_DSN) as conn:
            assert conn.execute("SELECT 1 FROM app_config WHERE key=?", ("k2",)).fetchone() is None


class TestStoreErrorOverHttp:

    def test_uninitialized_store_maps_to_503(self, tmp_path):
        cfg = Config(
            DB_DSN=str(tmp_path / "fresh" / "journal.sqlite"),
            AUTH_JWT_SECRET="test-secret",
            AUTH_BOOTSTRAP_ADMIN_EMAIL="",
            AUTH_BOOTSTRAP_ADMIN_PASSWORD="",
            CORS_ALLOW_ORIGINS="",
        )
        # Not used as a context manager: the startup hook (init_db) never runs.
        client = TestClient(create_app(cfg))

        r = client.post("/auth/signin", json={"email": "alice@example.com", "password": "secret123"})

        assert r.status_code == 503
        assert r.json() == {"detail": "store_error"}

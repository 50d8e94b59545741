"""HTTP tests against the FastAPI app (TestClient)."""

import pytest
from fastapi.testclient import TestClient

from stock_journal.admin.directory import set_role
from stock_journal.api.server import create_app
from stock_journal.db import connect


@pytest.fixture
def client(cfg):
    with TestClient(create_app(cfg)) as c:
        yield c


def _signup(client, email, password="secret123", display_name=None):
    r = client.post("/auth/signup", json={"email": email, "password": password, "display_name": display_name})
    assert r.status_code == 200, r.text
    data = r.json()
    return data["user"]["user_id"], {"Authorization": f"Bearer {data['access_token']}"}


BUY = {
    "trade_date": "2024-03-01",
    "stock_symbol": "aapl",
    "transaction_type": "buy",
    "quantity": 10,
    "price": 100,
    "commission": 5,
}


class TestAuthEndpoints:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_signup_sets_cookie_and_me(self, client):
        user_id, headers = _signup(client, "alice@example.com", display_name="Alice")

        assert "sj_token" in client.cookies
        me = client.get("/auth/me", headers=headers).json()["user"]
        assert me["user_id"] == user_id
        assert me["display_name"] == "Alice"
        assert me["role"] == "user"
        assert me["is_admin"] is False

    def test_cookie_session_without_bearer(self, client):
        _signup(client, "alice@example.com")
        assert client.get("/auth/role").json()["role"] == "user"

    def test_duplicate_signup_conflict(self, client):
        _signup(client, "alice@example.com")
        r = client.post("/auth/signup", json={"email": "alice@example.com", "password": "secret123"})
        assert r.status_code == 409
        assert r.json()["detail"] == "email_exists"

    def test_signin(self, client):
        _signup(client, "alice@example.com")

        bad = client.post("/auth/signin", json={"email": "alice@example.com", "password": "wrong"})
        assert bad.status_code == 401
        assert bad.json()["detail"] == "invalid_credentials"

        ok = client.post("/auth/signin", json={"email": "alice@example.com", "password": "secret123"})
        assert ok.status_code == 200
        assert ok.json()["token_type"] == "bearer"

    def test_missing_and_invalid_token(self, client):
        client.cookies.clear()
        assert client.get("/records").json()["detail"] == "missing_token"
        r = client.get("/records", headers={"Authorization": "Bearer garbage"})
        assert r.status_code == 401
        assert r.json()["detail"] == "token_invalid"

    def test_signout_clears_cookie(self, client):
        _signup(client, "alice@example.com")
        assert client.post("/auth/signout").json() == {"ok": True}
        assert "sj_token" not in client.cookies
        assert client.get("/auth/me").status_code == 401


class TestRecordEndpoints:

    def test_create_list_and_stats(self, client):
        _, headers = _signup(client, "alice@example.com")

        r = client.post("/records", json=BUY, headers=headers)
        assert r.status_code == 201
        rec = r.json()["record"]
        assert rec["stock_symbol"] == "AAPL"
        assert rec["display_amount"] == -1005

        records = client.get("/records", headers=headers).json()["records"]
        assert [x["id"] for x in records] == [rec["id"]]

        stats = client.get("/records/stats", headers=headers).json()["stats"]
        assert stats == {
            "total_investment": 1000,
            "total_return": 0,
            "total_fees": 5,
            "net_profit_loss": -1005,
            "trade_count": 1,
        }

    def test_validation_error_code(self, client):
        _, headers = _signup(client, "alice@example.com")

        r = client.post("/records", json={**BUY, "quantity": 0}, headers=headers)
        assert r.status_code == 400
        assert r.json()["detail"] == "quantity_not_positive"

        r = client.post("/records", json={**BUY, "quantity": "lots"}, headers=headers)
        assert r.status_code == 422

    def test_patch_only_touches_given_fields(self, client):
        _, headers = _signup(client, "alice@example.com")
        rec = client.post("/records", json=BUY, headers=headers).json()["record"]

        r = client.patch(f"/records/{rec['id']}", json={"price": 101.25}, headers=headers)
        assert r.status_code == 200
        updated = r.json()["record"]
        assert updated["price"] == 101.25
        assert updated["quantity"] == 10
        assert updated["commission"] == 5

    def test_delete_then_not_found(self, client):
        _, headers = _signup(client, "alice@example.com")
        rec = client.post("/records", json=BUY, headers=headers).json()["record"]

        assert client.delete(f"/records/{rec['id']}", headers=headers).status_code == 200
        r = client.delete(f"/records/{rec['id']}", headers=headers)
        assert r.status_code == 404
        assert r.json()["detail"] == "record_not_found"
        assert client.get("/records", headers=headers).json()["records"] == []

    def test_records_are_private(self, client):
        _, alice = _signup(client, "alice@example.com")
        _, bob = _signup(client, "bob@example.com")
        rec = client.post("/records", json=BUY, headers=alice).json()["record"]

        assert client.get("/records", headers=bob).json()["records"] == []
        assert client.get(f"/records/{rec['id']}", headers=bob).status_code == 404
        assert client.patch(f"/records/{rec['id']}", json={"price": 1}, headers=bob).status_code == 404
        assert client.delete(f"/records/{rec['id']}", headers=bob).status_code == 404
        assert client.get(f"/records/{rec['id']}", headers=alice).json()["record"]["price"] == 100


class TestAdminEndpoints:

    def test_non_admin_forbidden(self, client):
        _, headers = _signup(client, "alice@example.com")
        for path in ("/admin/users", "/admin/stats"):
            r = client.get(path, headers=headers)
            assert r.status_code == 403
            assert r.json()["detail"] == "admin_required"

    def test_admin_directory(self, client, cfg):
        admin_id, admin = _signup(client, "root@example.com", display_name="Root")
        bob_id, bob = _signup(client, "bob@example.com")
        client.post("/records", json=BUY, headers=bob)
        with connect(cfg.DB_DSN) as conn:
            set_role(conn, admin_id, "admin")

        # Role is resolved per request: no new sign-in needed.
        assert client.get("/auth/role", headers=admin).json()["role"] == "admin"

        r = client.put(f"/admin/users/{bob_id}/role", json={"role": "admin"}, headers=admin)
        assert r.json() == {"user_id": bob_id, "role": "admin"}

        users = {u["user_id"]: u for u in client.get("/admin/users", headers=admin).json()["users"]}
        assert users[bob_id]["role"] == "admin"
        assert users[bob_id]["record_count"] == 1

        stats = client.get("/admin/stats", headers=admin).json()["stats"]
        assert stats == {"total_users": 2, "total_records": 1, "admin_users": 2, "active_users": 2}

    def test_set_role_errors(self, client, cfg):
        admin_id, admin = _signup(client, "root@example.com")
        with connect(cfg.DB_DSN) as conn:
            set_role(conn, admin_id, "admin")

        r = client.put(f"/admin/users/{admin_id}/role", json={"role": "owner"}, headers=admin)
        assert r.status_code == 400
        assert r.json()["detail"] == "invalid_role"

        r = client.put("/admin/users/ghost/role", json={"role": "admin"}, headers=admin)
        assert r.status_code == 404
        assert r.json()["detail"] == "user_not_found"

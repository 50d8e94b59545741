"""Tests for role lookup and the stale-result guard of RoleResolver."""

import threading

from stock_journal.admin.directory import set_role
from stock_journal.auth.roles import RoleResolver, lookup_role, resolve_role
from stock_journal.config import Config
from stock_journal.models import Session


class TestLookupRole:

    def test_missing_row_is_user(self, conn, alice):
        assert lookup_role(conn, alice["user_id"]) == "user"

    def test_admin_row(self, conn, alice):
        set_role(conn, alice["user_id"], "admin")
        assert lookup_role(conn, alice["user_id"]) == "admin"

    def test_unknown_identity_is_user(self, conn):
        assert lookup_role(conn, "ghost") == "user"


class TestResolveRole:

    def test_no_identity_is_unresolved(self, cfg):
        assert resolve_role(cfg, None) is None
        assert resolve_role(cfg, "") is None

    def test_store_failure_falls_back_to_user(self, tmp_path):
        # Schema never initialized: the lookup query fails.
        broken = Config(DB_DSN=str(tmp_path / "empty" / "db.sqlite"))
        assert resolve_role(broken, "someone") == "user"


class TestRoleResolver:

    def test_logged_out_state(self):
        r = RoleResolver(lookup=lambda uid: "admin")

        assert r.resolve(None) is None
        assert r.role is None
        assert not r.loading
        assert not r.is_admin
        assert not r.is_user

    def test_resolves_admin_and_user(self):
        roles = {"a": "admin", "b": None}
        r = RoleResolver(lookup=lambda uid: roles[uid])

        assert r.resolve("a") == "admin"
        assert r.is_admin
        # A missing role falls back to the default.
        assert r.resolve("b") == "user"
        assert r.is_user

    def test_lookup_error_never_grants_admin(self):
        def boom(uid):
            raise RuntimeError("store down")

        r = RoleResolver(lookup=boom)
        assert r.resolve("a") == "user"
        assert not r.is_admin
        assert not r.loading

    def test_unexpected_role_value_is_user(self):
        r = RoleResolver(lookup=lambda uid: "superuser")
        assert r.resolve("a") == "user"

    def test_stale_lookup_does_not_overwrite_newer_identity(self):
        entered = threading.Event()
        release = threading.Event()

        def lookup(uid):
            if uid == "A":
                entered.set()
                release.wait(5)
                return "admin"
            return "user"

        r = RoleResolver(lookup=lookup)
        t = threading.Thread(target=r.resolve, args=("A",))
        t.start()
        assert entered.wait(5)

        # A -> signed out -> B while A's lookup is still in flight.
        assert r.resolve(None) is None
        assert r.resolve("B") == "user"

        release.set()
        t.join(5)

        assert r.user_id == "B"
        assert r.role == "user"
        assert not r.is_admin
        assert not r.loading

    def test_session_callback(self):
        r = RoleResolver(lookup=lambda uid: "admin")

        r.on_session_change(Session(access_token="t", user_id="x"))
        assert r.is_admin
        r.on_session_change(None)
        assert r.role is None

"""HTTP client for the Stock Journal API.

The client keeps a SessionState (who is signed in) and a RoleResolver subscribed to
it, so `client.roles` follows sign-in / sign-out without extra calls.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests

from stock_journal.auth.roles import RoleResolver
from stock_journal.compute.stats import TradingStats
from stock_journal.config import Config, load_config
from stock_journal.models import DirectoryUser, Session, TradingRecord

from .session import SessionState


def _debug(msg: str) -> None:
    print(f"[client] {msg}")


class ApiError(RuntimeError):
    def __init__(self, status_code: int, detail: str):
        super().__init__(f"API error {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


def _detail(r: Any) -> str:
    try:
        data = r.json()
    except Exception:
        return str(getattr(r, "text", "") or "")
    if isinstance(data, dict) and "detail" in data:
        return str(data["detail"])
    return str(data)


class JournalClient:
    def __init__(
        self,
        base_url: str | None = None,
        *,
        http: Any = None,
        access_token: str | None = None,
        cfg: Config | None = None,
    ):
        cfg = cfg or load_config()
        self.base_url = (base_url or cfg.JOURNAL_API_URL).rstrip("/")
        self.timeout = float(cfg.JOURNAL_API_TIMEOUT_SECONDS)
        self.http = http if http is not None else requests.Session()
        self._token = access_token

        self.session_state = SessionState()
        self.roles = RoleResolver(lookup=self._lookup_role)
        self.session_state.subscribe(self.roles.on_session_change)

    # -----------------------------
    # Transport
    # -----------------------------

    def _request(self, method: str, path: str, *, json: Any = None, auth: bool = True) -> Any:
        headers: Dict[str, str] = {}
        if auth:
            if not self._token:
                raise ApiError(401, "missing_token")
            headers["Authorization"] = f"Bearer {self._token}"

        url = f"{self.base_url}{path}"
        r = self.http.request(method, url, json=json, headers=headers, timeout=self.timeout)
        if r.status_code < 200 or r.status_code >= 300:
            raise ApiError(int(r.status_code), _detail(r))
        return r.json() if r.content else {}

    def _lookup_role(self, user_id: str) -> str:
        data = self._request("GET", "/auth/role")
        if str(data.get("user_id")) != str(user_id):
            # The token changed under us; this answer is for someone else.
            raise ApiError(409, "session_changed")
        return str(data.get("role") or "user")

    def _start_session(self, data: Dict[str, Any]) -> Session:
        user = data.get("user") or {}
        session = Session(
            access_token=str(data["access_token"]),
            user_id=str(user["user_id"]),
            email=user.get("email"),
            display_name=user.get("display_name"),
        )
        self._token = session.access_token
        self.session_state.set_session(session)
        return session

    # -----------------------------
    # Identity
    # -----------------------------

    def sign_up(self, email: str, password: str, display_name: str | None = None) -> Session:
        data = self._request(
            "POST",
            "/auth/signup",
            json={"email": email, "password": password, "display_name": display_name},
            auth=False,
        )
        return self._start_session(data)

    def sign_in(self, email: str, password: str) -> Session:
        data = self._request("POST", "/auth/signin", json={"email": email, "password": password}, auth=False)
        return self._start_session(data)

    def sign_out(self) -> None:
        try:
            self._request("POST", "/auth/signout", auth=False)
        finally:
            self._token = None
            self.session_state.clear()

    def current_session(self) -> Optional[Session]:
        if not self._token:
            return None
        try:
            data = self._request("GET", "/auth/me")
        except ApiError as e:
            if e.status_code == 401:
                return None
            raise
        user = data.get("user") or {}
        return Session(
            access_token=self._token,
            user_id=str(user["user_id"]),
            email=user.get("email"),
            display_name=user.get("display_name"),
        )

    def initialize(self) -> Optional[Session]:
        """Restore the session for a token passed at construction time."""
        session = self.session_state.initialize(self.current_session)
        if session is None:
            self._token = None
        return session

    def fetch_role(self) -> str:
        return str(self._request("GET", "/auth/role").get("role") or "user")

    # -----------------------------
    # Trading records
    # -----------------------------

    def list_records(self) -> List[TradingRecord]:
        data = self._request("GET", "/records")
        return [TradingRecord.from_row(r) for r in data.get("records") or []]

    def get_record(self, record_id: str) -> TradingRecord:
        return TradingRecord.from_row(self._request("GET", f"/records/{record_id}")["record"])

    def create_record(self, **fields: Any) -> TradingRecord:
        return TradingRecord.from_row(self._request("POST", "/records", json=fields)["record"])

    def update_record(self, record_id: str, **fields: Any) -> TradingRecord:
        return TradingRecord.from_row(self._request("PATCH", f"/records/{record_id}", json=fields)["record"])

    def delete_record(self, record_id: str) -> None:
        self._request("DELETE", f"/records/{record_id}")

    def record_stats(self) -> TradingStats:
        return TradingStats(**self._request("GET", "/records/stats")["stats"])

    # -----------------------------
    # Admin directory
    # -----------------------------

    def _require_admin(self) -> None:
        if not self.roles.is_admin:
            raise PermissionError("admin_required")

    def list_users(self) -> List[DirectoryUser]:
        self._require_admin()
        data = self._request("GET", "/admin/users")
        return [DirectoryUser(**u) for u in data.get("users") or []]

    def set_role(self, user_id: str, role: str) -> str:
        self._require_admin()
        data = self._request("PUT", f"/admin/users/{user_id}/role", json={"role": role})
        _debug(f"Role updated user_id={user_id} role={data.get('role')}")
        return str(data["role"])

    def admin_stats(self) -> Dict[str, int]:
        self._require_admin()
        return dict(self._request("GET", "/admin/stats")["stats"])

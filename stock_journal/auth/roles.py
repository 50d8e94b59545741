"""Role resolution.

Policy: the least-privileged role wins on any ambiguity.

- No identity            -> None (unresolved: logged out, neither admin nor user)
- Identity, no role row  -> 'user'
- Lookup failure         -> 'user' (never 'admin')
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional

from stock_journal.config import Config
from stock_journal.db import connect
from stock_journal.models import ROLE_ADMIN, ROLE_USER


def _debug(msg: str) -> None:
    print(f"[roles] {msg}")


def _normalize_role(value: Any) -> str:
    return ROLE_ADMIN if str(value or "").strip().lower() == ROLE_ADMIN else ROLE_USER


def lookup_role(conn: Any, user_id: str) -> str:
    """Read the stored role. A missing row is the default role."""
    row = conn.execute(
        "SELECT role FROM user_roles WHERE user_id=?",
        (str(user_id),),
    ).fetchone()
    if row is None:
        return ROLE_USER
    return _normalize_role(row["role"])


def lookup_role_safe(conn: Any, user_id: str) -> str:
    try:
        return lookup_role(conn, user_id)
    except Exception as e:
        _debug(f"Role lookup failed for user_id={user_id}, defaulting to user: {e}")
        return ROLE_USER


def resolve_role(cfg: Config, user_id: Optional[str]) -> Optional[str]:
    if not user_id:
        return None
    try:
        with connect(cfg.DB_DSN) as conn:
            return lookup_role(conn, user_id)
    except Exception as e:
        _debug(f"Role lookup failed for user_id={user_id}, defaulting to user: {e}")
        return ROLE_USER


class RoleResolver:
    """Tracks the role of the current identity as it changes.

    `lookup(user_id)` may be slow (a network round trip). Every resolve() call takes
    a generation token; when a newer resolve() started while a lookup was in flight,
    the older result is discarded instead of overwriting the newer state.

    Session notifications carry a sequence number. A change older than the last one
    seen is ignored before it can take a generation token.
    """

    def __init__(self, lookup: Callable[[str], Optional[str]]):
        self._lookup = lookup
        self._lock = threading.Lock()
        self._generation = 0
        self._last_seq = -1
        self._user_id: Optional[str] = None
        self._role: Optional[str] = None
        self._loading = False

    @property
    def role(self) -> Optional[str]:
        with self._lock:
            return self._role

    @property
    def loading(self) -> bool:
        with self._lock:
            return self._loading

    @property
    def user_id(self) -> Optional[str]:
        with self._lock:
            return self._user_id

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_user(self) -> bool:
        return self.role == ROLE_USER

    def resolve(self, user_id: Optional[str], seq: Optional[int] = None) -> Optional[str]:
        """Resolve the role for `user_id` and return the resolver's current role.

        `seq` is the session change this call belongs to, if any.
        """
        with self._lock:
            if seq is not None:
                if seq <= self._last_seq:
                    _debug(f"Ignored out-of-order session change seq={seq} user_id={user_id}")
                    return self._role
                self._last_seq = seq
            self._generation += 1
            token = self._generation
            self._user_id = user_id
            if not user_id:
                self._role = None
                self._loading = False
                return None
            self._loading = True

        try:
            role = _normalize_role(self._lookup(user_id))
        except Exception as e:
            _debug(f"Role lookup failed for user_id={user_id}, defaulting to user: {e}")
            role = ROLE_USER

        with self._lock:
            if token != self._generation:
                _debug(f"Discarded stale role for user_id={user_id}")
                return self._role
            self._role = role
            self._loading = False
            return role

    def on_session_change(self, session: Any, seq: Optional[int] = None) -> None:
        """Subscriber callback for SessionState."""
        self.resolve(getattr(session, "user_id", None) if session is not None else None, seq)

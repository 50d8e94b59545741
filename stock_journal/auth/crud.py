from __future__ import annotations

import uuid
from typing import Any, Dict, Optional

from stock_journal.config import Config
from stock_journal.db import connect, integrity_errors
from stock_journal.models import ROLE_ADMIN, UserProfile
from stock_journal.util.time import utcnow_iso

from .security import hash_password, verify_password


def _debug(msg: str) -> None:
    print(f"[auth] {msg}")


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def public_identity(row: Any | Dict[str, Any]) -> Dict[str, Any]:
    d = dict(row)
    d.pop("password_hash", None)
    return d


def get_identity_by_email(conn: Any, email: str) -> Optional[Any]:
    e = normalize_email(email)
    if not e:
        return None
    return conn.execute(
        "SELECT * FROM identities WHERE email=?",
        (e,),
    ).fetchone()


def get_identity_by_id(conn: Any, user_id: str) -> Optional[Any]:
    return conn.execute(
        "SELECT * FROM identities WHERE user_id=?",
        (str(user_id),),
    ).fetchone()


def get_profile(conn: Any, user_id: str) -> Optional[UserProfile]:
    row = conn.execute(
        "SELECT * FROM profiles WHERE user_id=?",
        (str(user_id),),
    ).fetchone()
    if row is None:
        return None
    return UserProfile.from_row(row)


def verify_credentials(conn: Any, email: str, password: str) -> Optional[Any]:
    row = get_identity_by_email(conn, email)
    if row is None:
        return None
    if int(row["is_active"] or 0) != 1:
        return None
    if not verify_password(password, str(row["password_hash"])):
        return None
    return row


def _create_profile(conn: Any, *, user_id: str, email: str, display_name: str | None, now: str) -> None:
    """Seed the profile row from sign-up metadata.

    Only called from sign_up(): profiles are never created on their own.
    """
    conn.execute(
        """
        INSERT INTO profiles (id, user_id, display_name, email, created_at, updated_at)
        VALUES (?,?,?,?,?,?)
        """,
        (str(uuid.uuid4()), user_id, display_name, email, now, now),
    )


def sign_up(
    conn: Any,
    *,
    email: str,
    password: str,
    display_name: str | None = None,
    min_password_length: int = 6,
) -> Dict[str, Any]:
    """Register an identity and its profile in one transaction.

    Raises ValueError with a detail code: email_invalid, password_too_short, email_exists.
    """
    e = normalize_email(email)
    if not e or "@" not in e or e.startswith("@") or e.endswith("@"):
        raise ValueError("email_invalid")
    if len(password or "") < int(min_password_length):
        raise ValueError("password_too_short")

    if get_identity_by_email(conn, e) is not None:
        raise ValueError("email_exists")

    name = (display_name or "").strip() or None
    user_id = str(uuid.uuid4())
    now = utcnow_iso()
    try:
        conn.execute(
            """
            INSERT INTO identities (user_id, email, password_hash, is_active, created_at, updated_at)
            VALUES (?,?,?,?,?,?)
            """,
            (user_id, e, hash_password(password), 1, now, now),
        )
    except integrity_errors() as exc:
        # A concurrent sign-up took the email between the check and the insert.
        raise ValueError("email_exists") from exc
    _create_profile(conn, user_id=user_id, email=e, display_name=name, now=now)
    _debug(f"Registered identity user_id={user_id}")

    row = get_identity_by_id(conn, user_id)
    assert row is not None
    out = public_identity(row)
    out["display_name"] = name
    return out


def touch_last_sign_in(conn: Any, user_id: str) -> None:
    now = utcnow_iso()
    conn.execute(
        "UPDATE identities SET last_sign_in_at=?, updated_at=? WHERE user_id=?",
        (now, now, str(user_id)),
    )


def bootstrap_admin_if_needed(cfg: Config) -> Optional[Dict[str, Any]]:
    """Create the first admin identity if the identities table is empty.

    - AUTH_BOOTSTRAP_ADMIN_EMAIL
    - AUTH_BOOTSTRAP_ADMIN_PASSWORD

    This only runs when there are 0 rows in `identities` and both values are set.
    """

    email = normalize_email(getattr(cfg, "AUTH_BOOTSTRAP_ADMIN_EMAIL", "") or "")
    password = getattr(cfg, "AUTH_BOOTSTRAP_ADMIN_PASSWORD", "") or ""
    if not email or not password:
        return None

    with connect(cfg.DB_DSN) as conn:
        n = conn.execute("SELECT COUNT(*) AS n FROM identities").fetchone()["n"]
        if int(n) > 0:
            return None

        u = sign_up(
            conn,
            email=email,
            password=password,
            display_name="Administrator",
            min_password_length=cfg.AUTH_MIN_PASSWORD_LENGTH,
        )
        conn.execute(
            "INSERT INTO user_roles (user_id, role, updated_at) VALUES (?,?,?)",
            (u["user_id"], ROLE_ADMIN, utcnow_iso()),
        )
        u["role"] = ROLE_ADMIN
        return u

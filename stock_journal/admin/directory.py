"""Admin directory: identities, their roles and record counts.

Callers must already have checked that the acting identity is an admin
(see auth.deps.require_admin). These functions read across all owners.
"""

from __future__ import annotations

from typing import Any, Dict, List

from stock_journal.models import ROLE_ADMIN, ROLE_USER, ROLES, DirectoryUser
from stock_journal.util.time import utcnow_iso


def _debug(msg: str) -> None:
    print(f"[admin] {msg}")


class UserNotFound(LookupError):
    def __init__(self, user_id: str):
        super().__init__("user_not_found")
        self.user_id = user_id


def list_users(conn: Any) -> List[DirectoryUser]:
    rows = conn.execute(
        """
        SELECT
            p.user_id,
            p.email,
            p.display_name,
            p.created_at,
            COALESCE(r.role, ?) AS role,
            (SELECT COUNT(*) FROM trading_records t WHERE t.user_id = p.user_id) AS record_count
        FROM profiles p
        LEFT JOIN user_roles r ON r.user_id = p.user_id
        ORDER BY p.created_at DESC
        """,
        (ROLE_USER,),
    ).fetchall()
    out: List[DirectoryUser] = []
    for r in rows:
        role = ROLE_ADMIN if str(r["role"]) == ROLE_ADMIN else ROLE_USER
        out.append(
            DirectoryUser(
                user_id=str(r["user_id"]),
                email=r["email"],
                display_name=r["display_name"],
                created_at=str(r["created_at"]),
                role=role,
                record_count=int(r["record_count"] or 0),
            )
        )
    return out


def count_records(conn: Any) -> int:
    row = conn.execute("SELECT COUNT(*) AS n FROM trading_records").fetchone()
    return int(row["n"] or 0)


def set_role(conn: Any, user_id: str, role: str) -> str:
    """Upsert the role of `user_id`. No audit trail is kept."""
    r = (role or "").strip().lower()
    if r not in ROLES:
        raise ValueError("invalid_role")

    exists = conn.execute(
        "SELECT 1 FROM identities WHERE user_id=?",
        (str(user_id),),
    ).fetchone()
    if exists is None:
        raise UserNotFound(str(user_id))

    conn.execute(
        """
        INSERT INTO user_roles (user_id, role, updated_at) VALUES (?, ?, ?)
        ON CONFLICT(user_id) DO UPDATE SET role=excluded.role, updated_at=excluded.updated_at
        """,
        (str(user_id), r, utcnow_iso()),
    )
    _debug(f"Role set user_id={user_id} role={r}")
    return r


def directory_stats(conn: Any) -> Dict[str, int]:
    users = list_users(conn)
    total_users = len(users)
    return {
        "total_users": total_users,
        "total_records": count_records(conn),
        "admin_users": sum(1 for u in users if u.role == ROLE_ADMIN),
        # No activity tracking exists; every known user counts as active.
        "active_users": total_users,
    }

"""Assign a role to an existing identity, looked up by email.

Usage:
  python scripts/set_role.py --email alice@example.com --role admin
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from stock_journal.admin.directory import set_role
from stock_journal.auth.crud import get_identity_by_email
from stock_journal.config import load_config
from stock_journal.db import connect, init_db


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--email", required=True)
    ap.add_argument("--role", choices=["user", "admin"], required=True)
    args = ap.parse_args()

    cfg = load_config()
    init_db(cfg.DB_DSN)

    with connect(cfg.DB_DSN) as conn:
        row = get_identity_by_email(conn, args.email)
        if row is None:
            raise SystemExit(f"No identity with email {args.email}")
        role = set_role(conn, str(row["user_id"]), args.role)

    print(f"{args.email}: {role}")


if __name__ == "__main__":
    main()

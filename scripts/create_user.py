"""Create an identity (and its profile) in the DB.

Usage:
  python scripts/create_user.py --email alice@example.com --password '...' --role user

NOTE: This is intended for local/dev.
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from stock_journal.admin.directory import set_role
from stock_journal.auth.crud import sign_up
from stock_journal.config import load_config
from stock_journal.db import connect, init_db


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--email", required=True)
    ap.add_argument("--password", required=True)
    ap.add_argument("--display-name", default=None)
    ap.add_argument("--role", choices=["user", "admin"], default="user")
    args = ap.parse_args()

    cfg = load_config()
    init_db(cfg.DB_DSN)

    with connect(cfg.DB_DSN) as conn:
        u = sign_up(
            conn,
            email=args.email,
            password=args.password,
            display_name=args.display_name,
            min_password_length=cfg.AUTH_MIN_PASSWORD_LENGTH,
        )
        # No role row means 'user'; only admins get an explicit row.
        if args.role == "admin":
            u["role"] = set_role(conn, u["user_id"], "admin")

    print("Created user:")
    print(u)


if __name__ == "__main__":
    main()

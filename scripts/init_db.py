import sys
from pathlib import Path

# Ensure project root is on sys.path when running as a script
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from stock_journal import __version__
from stock_journal.config import load_config
from stock_journal.db import connect, init_db, record_schema_version


def main() -> None:
    cfg = load_config()
    init_db(cfg.DB_DSN)
    with connect(cfg.DB_DSN) as conn:
        record_schema_version(conn, __version__)

    print(f"DB initialized: {cfg.DB_DSN}")


if __name__ == "__main__":
    main()

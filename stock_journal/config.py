import os
from dataclasses import dataclass
from typing import Optional

# Optional: load a local .env file if present.
try:
    from dotenv import load_dotenv

    load_dotenv()
except Exception:
    # If python-dotenv isn't installed or .env isn't present, that's fine.
    pass


def _env_bool(name: str, default: Optional[bool] = None) -> Optional[bool]:
    """Parse a boolean environment variable.

    Returns:
      - True/False if the env var is set to a recognizable value
      - default if unset or unrecognized

    Accepted truthy: 1, true, yes, y, on
    Accepted falsy:  0, false, no, n, off
    """

    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in ("1", "true", "yes", "y", "on"):
        return True
    if v in ("0", "false", "no", "n", "off"):
        return False
    return default


@dataclass(frozen=True)
class Config:
    """Runtime configuration.

    IMPORTANT: Provide secrets via environment variables or a .env file.
    Do not hardcode secrets in source code.
    """

    # -----------------
    # Core
    # -----------------
    # Preferred: set JOURNAL_DATABASE_URL (or DATABASE_URL) to use Postgres.
    # Fallback: JOURNAL_DB_PATH for SQLite.
    DB_DSN: str = (
        os.environ.get("JOURNAL_DATABASE_URL")
        or os.environ.get("DATABASE_URL")
        or os.environ.get("JOURNAL_DB_PATH", "./stock_journal.sqlite")
    )

    # -----------------
    # Auth (JWT)
    # -----------------
    # NOTE: In dev, this defaults to a fixed string so you can get started.
    # In production, you MUST set AUTH_JWT_SECRET to a strong random value.
    AUTH_JWT_SECRET: str = os.environ.get("AUTH_JWT_SECRET", "dev_change_me")
    AUTH_TOKEN_EXPIRE_MINUTES: int = int(os.environ.get("AUTH_TOKEN_EXPIRE_MINUTES", "10080"))  # 7 days
    AUTH_MIN_PASSWORD_LENGTH: int = int(os.environ.get("AUTH_MIN_PASSWORD_LENGTH", "6"))

    # Bootstrap first admin identity if the identities table is empty.
    # Blank email disables bootstrapping.
    AUTH_BOOTSTRAP_ADMIN_EMAIL: str = os.environ.get("AUTH_BOOTSTRAP_ADMIN_EMAIL", "")
    AUTH_BOOTSTRAP_ADMIN_PASSWORD: str = os.environ.get("AUTH_BOOTSTRAP_ADMIN_PASSWORD", "")

    # Cookie-based browser sessions
    # - The API sets an httpOnly cookie on /auth/signin and /auth/signup
    # - The API reads the token from either Authorization: Bearer ... OR the cookie
    AUTH_COOKIE_NAME: str = os.environ.get("AUTH_COOKIE_NAME", "sj_token")
    AUTH_COOKIE_DOMAIN: str | None = (os.environ.get("AUTH_COOKIE_DOMAIN") or "").strip() or None
    AUTH_COOKIE_PATH: str = os.environ.get("AUTH_COOKIE_PATH", "/")
    AUTH_COOKIE_SAMESITE: str = os.environ.get("AUTH_COOKIE_SAMESITE", "lax")  # lax|strict|none

    # If AUTH_COOKIE_SECURE is unset, we default to secure cookies when PUBLIC_APP_URL is https.
    # NOTE: Browsers require Secure when SameSite=None.
    PUBLIC_APP_URL: str = os.environ.get("PUBLIC_APP_URL", "http://localhost:5173")
    AUTH_COOKIE_SECURE: bool = (
        _env_bool("AUTH_COOKIE_SECURE", None)
        if _env_bool("AUTH_COOKIE_SECURE", None) is not None
        else PUBLIC_APP_URL.lower().startswith("https://")
    )

    # -----------------
    # CORS (development)
    # -----------------
    CORS_ALLOW_ORIGINS: str = os.environ.get(
        "CORS_ALLOW_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000",
    )

    # -----------------
    # Client
    # -----------------
    JOURNAL_API_URL: str = os.environ.get("JOURNAL_API_URL", "http://localhost:8000")
    JOURNAL_API_TIMEOUT_SECONDS: float = float(os.environ.get("JOURNAL_API_TIMEOUT_SECONDS", "30"))


def load_config() -> Config:
    return Config()

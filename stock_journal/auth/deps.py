from __future__ import annotations

from typing import Any, Dict, Optional

import jwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from stock_journal.config import Config
from stock_journal.db import connect
from stock_journal.models import ROLE_ADMIN

from .crud import get_identity_by_id, get_profile, public_identity
from .roles import lookup_role_safe
from .security import decode_access_token


_bearer = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


def get_cfg(request: Request) -> Config:
    cfg = getattr(request.app.state, "cfg", None)
    if cfg is None:
        raise HTTPException(status_code=500, detail="server_config_missing")
    return cfg


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> Dict[str, Any]:
    """Authenticate a request.

    Supports both:
      - Authorization: Bearer <jwt>
      - Cookie-based sessions (httpOnly cookie set by /auth/signin)

    The returned dict carries the identity, its profile fields and the role resolved
    from the store for this request.
    """

    cfg = get_cfg(request)

    token: str | None = None

    # Prefer Bearer token when explicitly provided.
    if credentials is not None and credentials.credentials:
        token = credentials.credentials

    if not token:
        cookie_name = str(getattr(cfg, "AUTH_COOKIE_NAME", "sj_token") or "sj_token")
        token = request.cookies.get(cookie_name)

    if not token:
        raise _unauthorized("missing_token")

    try:
        payload = decode_access_token(token=token, secret=cfg.AUTH_JWT_SECRET)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("token_expired")
    except jwt.InvalidTokenError:
        raise _unauthorized("token_invalid")
    except Exception:
        raise _unauthorized("token_decode_error")

    user_id = str(payload.get("sub") or "").strip()
    if not user_id:
        raise _unauthorized("token_missing_sub")

    with connect(cfg.DB_DSN) as conn:
        row = get_identity_by_id(conn, user_id)
        if row is None:
            raise _unauthorized("user_not_found")
        if int(row["is_active"] or 0) != 1:
            raise _unauthorized("user_inactive")
        user = public_identity(row)

        profile = get_profile(conn, user_id)
        user["display_name"] = profile.display_name if profile is not None else None
        user["role"] = lookup_role_safe(conn, user_id)

    user["is_admin"] = (user["role"] == ROLE_ADMIN)
    return user


def require_admin(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    if user.get("role") != ROLE_ADMIN:
        raise HTTPException(status_code=403, detail="admin_required")
    return user

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from stock_journal.admin.directory import UserNotFound, directory_stats, list_users, set_role
from stock_journal.auth import get_current_user, require_admin
from stock_journal.auth.crud import (
    bootstrap_admin_if_needed,
    get_identity_by_id,
    get_profile,
    public_identity,
    sign_up,
    touch_last_sign_in,
    verify_credentials,
)
from stock_journal.auth.deps import get_cfg
from stock_journal.auth.security import create_access_token
from stock_journal.compute.stats import compute_trading_stats, display_amount
from stock_journal.config import Config, load_config
from stock_journal.db import StoreError, connect, init_db
from stock_journal.models import TradingRecord
from stock_journal.records.repository import (
    RecordNotFound,
    create_record,
    delete_record,
    get_record,
    list_records,
    update_record,
)


def _debug(msg: str) -> None:
    print(f"[api] {msg}")


router = APIRouter()


# -----------------------------
# Health
# -----------------------------


@router.get("/health")
def health() -> Dict[str, Any]:
    return {"status": "ok"}


# -----------------------------
# Auth
# -----------------------------

def _cookie_secure(cfg: Config) -> bool:
    """Return whether auth cookies should be marked Secure."""
    samesite = str(getattr(cfg, "AUTH_COOKIE_SAMESITE", "lax") or "lax").lower()
    # Browsers require Secure when SameSite=None
    if samesite == "none":
        return True
    return bool(getattr(cfg, "AUTH_COOKIE_SECURE", False))


def _set_auth_cookie(response: Response, *, token: str, cfg: Config) -> None:
    response.set_cookie(
        key=str(cfg.AUTH_COOKIE_NAME or "sj_token"),
        value=str(token),
        httponly=True,
        samesite=str(cfg.AUTH_COOKIE_SAMESITE or "lax").lower(),
        secure=_cookie_secure(cfg),
        max_age=int(cfg.AUTH_TOKEN_EXPIRE_MINUTES) * 60,
        path=str(cfg.AUTH_COOKIE_PATH or "/"),
        domain=cfg.AUTH_COOKIE_DOMAIN,
    )


def _clear_auth_cookie(response: Response, cfg: Config) -> None:
    response.delete_cookie(
        key=str(cfg.AUTH_COOKIE_NAME or "sj_token"),
        path=str(cfg.AUTH_COOKIE_PATH or "/"),
        domain=cfg.AUTH_COOKIE_DOMAIN,
    )


def _session_payload(cfg: Config, user: Dict[str, Any]) -> Dict[str, Any]:
    token = create_access_token(
        secret=cfg.AUTH_JWT_SECRET,
        user_id=str(user["user_id"]),
        email=str(user["email"]),
        expires_minutes=int(cfg.AUTH_TOKEN_EXPIRE_MINUTES),
    )
    return {"access_token": token, "token_type": "bearer", "user": user}


class SignInRequest(BaseModel):
    email: str
    password: str


class SignUpRequest(BaseModel):
    email: str
    password: str
    display_name: Optional[str] = None


@router.post("/auth/signup")
def auth_signup(payload: SignUpRequest, response: Response, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    """Register an identity. Its profile row is created in the same transaction."""
    with connect(cfg.DB_DSN) as conn:
        try:
            u = sign_up(
                conn,
                email=payload.email,
                password=payload.password,
                display_name=payload.display_name,
                min_password_length=cfg.AUTH_MIN_PASSWORD_LENGTH,
            )
        except ValueError as e:
            detail = str(e)
            if detail == "email_exists":
                raise HTTPException(status_code=409, detail=detail)
            raise HTTPException(status_code=400, detail=detail)

    out = _session_payload(cfg, u)
    _set_auth_cookie(response, token=out["access_token"], cfg=cfg)
    return out


@router.post("/auth/signin")
def auth_signin(payload: SignInRequest, response: Response, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        row = verify_credentials(conn, payload.email, payload.password)
        if row is None:
            raise HTTPException(status_code=401, detail="invalid_credentials")
        touch_last_sign_in(conn, str(row["user_id"]))
        u = public_identity(get_identity_by_id(conn, str(row["user_id"])))
        profile = get_profile(conn, u["user_id"])
        u["display_name"] = profile.display_name if profile is not None else None

    out = _session_payload(cfg, u)
    _set_auth_cookie(response, token=out["access_token"], cfg=cfg)
    return out


@router.post("/auth/signout")
def auth_signout(response: Response, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    """Clear the browser session cookie. Bearer tokens simply get dropped by the client."""
    _clear_auth_cookie(response, cfg)
    return {"ok": True}


@router.get("/auth/me")
def auth_me(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    return {"user": user}


@router.get("/auth/role")
def auth_role(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    return {"user_id": user["user_id"], "role": user["role"]}


# -----------------------------
# Trading records
# -----------------------------


class RecordCreateRequest(BaseModel):
    trade_date: Optional[str] = None
    stock_symbol: Optional[str] = None
    stock_name: Optional[str] = None
    transaction_type: Optional[str] = None
    quantity: Optional[int] = None
    price: Optional[float] = None
    commission: Optional[float] = None
    tax: Optional[float] = None
    notes: Optional[str] = None


class RecordUpdateRequest(RecordCreateRequest):
    """Same fields as create; only the ones present in the body are changed."""


def _record_out(r: TradingRecord) -> Dict[str, Any]:
    d = r.to_dict()
    d["display_amount"] = display_amount(r)
    return d


@router.get("/records")
def records_list(
    user: Dict[str, Any] = Depends(get_current_user),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        records = list_records(conn, user["user_id"])
    return {"records": [_record_out(r) for r in records]}


@router.post("/records", status_code=201)
def records_create(
    payload: RecordCreateRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        try:
            r = create_record(conn, user["user_id"], payload.model_dump())
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    return {"record": _record_out(r)}


@router.get("/records/stats")
def records_stats(
    user: Dict[str, Any] = Depends(get_current_user),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        records = list_records(conn, user["user_id"])
    return {"stats": compute_trading_stats(records).to_dict()}


@router.get("/records/{record_id}")
def records_get(
    record_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        r = get_record(conn, user["user_id"], record_id)
    return {"record": _record_out(r)}


@router.patch("/records/{record_id}")
def records_update(
    record_id: str,
    payload: RecordUpdateRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        try:
            r = update_record(conn, user["user_id"], record_id, payload.model_dump(exclude_unset=True))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    return {"record": _record_out(r)}


@router.delete("/records/{record_id}")
def records_delete(
    record_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        delete_record(conn, user["user_id"], record_id)
    return {"ok": True, "id": record_id}


# -----------------------------
# Admin
# -----------------------------


class SetRoleRequest(BaseModel):
    role: str  # admin|user


@router.get("/admin/users")
def admin_list_users(
    _admin: Dict[str, Any] = Depends(require_admin),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        users = list_users(conn)
    return {"users": [u.to_dict() for u in users]}


@router.put("/admin/users/{user_id}/role")
def admin_set_role(
    user_id: str,
    payload: SetRoleRequest,
    _admin: Dict[str, Any] = Depends(require_admin),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        try:
            role = set_role(conn, user_id, payload.role)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    return {"user_id": user_id, "role": role}


@router.get("/admin/stats")
def admin_stats(
    _admin: Dict[str, Any] = Depends(require_admin),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return {"stats": directory_stats(conn)}


# -----------------------------
# App factory
# -----------------------------


def _not_found(request: Request, exc: LookupError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


def _store_error(request: Request, exc: StoreError) -> JSONResponse:
    _debug(f"Store error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"detail": "store_error"})


def create_app(cfg: Config | None = None) -> FastAPI:
    cfg = cfg or load_config()
    app = FastAPI(title="Stock Journal", version="0.1.0")
    app.state.cfg = cfg

    # CORS is mainly needed for local development (Vite on :5173 -> API on :8000).
    cors_origins = [o.strip() for o in (cfg.CORS_ALLOW_ORIGINS or "").split(",") if o.strip()]
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(RecordNotFound, _not_found)
    app.add_exception_handler(UserNotFound, _not_found)
    app.add_exception_handler(StoreError, _store_error)

    @app.on_event("startup")
    def _on_startup() -> None:
        # Ensure schema exists.
        init_db(cfg.DB_DSN)

        # Bootstrap first admin if needed (only when identities table is empty)
        boot = bootstrap_admin_if_needed(cfg)
        if boot:
            _debug(f"Bootstrapped initial admin: email={boot.get('email')}")

    app.include_router(router)
    return app


app = create_app()

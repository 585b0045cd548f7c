"""
api/routes/v1/auth.py -- Registration, login and current-principal endpoints.

Routes:
  POST /api/auth/register   -- self-service registration; 201 + token
  POST /api/auth/login      -- email/password login; 200 + token
  GET  /api/auth/me         -- sanitized account of the bearer (requires auth)

Security:
  [H2] POST /login and POST /register are rate-limited per IP.
  [C1] authenticate_account() provides timing equalization -- use it, never inline.
  [M5] Cache-Control: no-store on responses that carry a token.

Handlers that hash passwords are plain `def`, so FastAPI runs them in its
worker thread pool and bcrypt never blocks the event loop.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import AccountOut, AuthData, AuthResponse, LoginRequest, MeData, MeResponse, RegisterRequest
from auth.dependencies import get_current_principal
from auth.errors import NotFoundError, ValidationError
from auth.models import Account, Principal, Role
from auth.registry import AccountRegistry, sanitize
from auth.store import AccountStore
from auth.tokens import authenticate_account, create_access_token
from core.config import get_settings

_settings = get_settings()

# Auth policy:
# - POST /api/auth/register: public -- new accounts cannot hold a token yet
# - POST /api/auth/login:    public -- login endpoint must be unauthenticated
# - GET  /api/auth/me:       requires auth (get_current_principal)
router = APIRouter()

_TRAVELER_REGISTERED = "Registration successful. You can now login."
_PROVIDER_REGISTERED = (
    "Registration successful. Your account is pending approval. "
    "You will be able to login once an admin approves your account."
)


def account_out(account: Account) -> AccountOut:
    return AccountOut(**sanitize(account))


def _token_response(status_code: int, message: str, account: Account) -> JSONResponse:
    token = create_access_token(account)
    resp = JSONResponse(
        status_code=status_code,
        content=AuthResponse(
            message=message,
            data=AuthData(user=account_out(account), token=token),
        ).model_dump(mode="json"),
    )
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@limiter.limit(_settings.register_rate_limit)
@router.post("/auth/register", response_model=AuthResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Register a traveler, travel agency or hotel representative.

    Travelers are ACTIVE immediately. Providers are PENDING: they still get a
    token, but the authentication gate rejects it until an admin approves.
    """
    store: AccountStore = request.app.state.account_store
    account = AccountRegistry(store).register(body.to_payload())
    message = _TRAVELER_REGISTERED if account.role == Role.traveler else _PROVIDER_REGISTERED
    return _token_response(201, message, account)


@limiter.limit(_settings.login_rate_limit)  # [H2] brute-force mitigation -- must be ABOVE @router
@router.post("/auth/login", response_model=AuthResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password.

    Wrong email and wrong password produce the same 401 message. A correct
    password on a PENDING or BLOCKED account yields 403.
    """
    if not body.email or not body.password:
        raise ValidationError("Email and password are required")
    store: AccountStore = request.app.state.account_store
    account = authenticate_account(store, body.email, body.password)
    return _token_response(200, "Login successful", account)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=MeResponse)
def me(request: Request, principal: Principal = Depends(get_current_principal)) -> MeResponse:
    """Return the sanitized account of the authenticated caller."""
    store: AccountStore = request.app.state.account_store
    account = AccountRegistry(store).find_by_id(principal.id)
    if account is None:
        raise NotFoundError("User not found")
    return MeResponse(data=MeData(user=account_out(account)))

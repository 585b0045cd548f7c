"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication and authorization.

get_current_principal() is the authentication gate:
  1. Require `Authorization: Bearer <token>`.
  2. Verify the JWT (signature, pinned algorithm, expiry).
  3. Re-resolve the account by the token's id claim. The token is a hint, not
     a trust anchor: an unknown id is rejected.
  4. Reject accounts that are not ACTIVE. Approving or blocking an account
     therefore takes effect on the very next request, without any token
     revocation list.
  5. Attach the Principal to request.state.principal.

authorize() is the authorization gate: a pure predicate over an optional
Principal and a set of allowed roles. require_roles() composes it after the
authentication gate as a dependency factory:

    router = APIRouter(dependencies=[Depends(require_roles(Role.admin))])

Errors are raised as auth.errors exceptions; api/main.py renders them.

Layer rule: auth/dependencies.py may import from fastapi (for Depends/Request)
because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from fastapi import Depends, Request

from auth.errors import AuthenticationError, AuthorizationError
from auth.models import Principal, Role
from auth.store import AccountStore
from auth.tokens import decode_access_token, inactive_message

_BEARER_PREFIX = "Bearer "


def _bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith(_BEARER_PREFIX):
        raise AuthenticationError(
            "No token provided. Please include a Bearer token in the Authorization header."
        )
    token = auth_header[len(_BEARER_PREFIX):].strip()
    if not token:
        raise AuthenticationError("No token provided.")
    return token


def get_current_principal(request: Request) -> Principal:
    """Authenticate the request. Raises AuthenticationError (401) or AuthorizationError (403).

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(principal: Principal = Depends(get_current_principal)): ...
    """
    token = _bearer_token(request)
    claims = decode_access_token(token)

    store: AccountStore = request.app.state.account_store
    account = store.get_by_id(claims["id"])
    if account is None:
        raise AuthenticationError("User not found. Token may be invalid.")
    if not account.is_active:
        raise AuthorizationError(inactive_message(account.status))

    principal = Principal(id=account.id, email=account.email, role=account.role, status=account.status)
    request.state.principal = principal
    return principal


def authorize(principal: Principal | None, allowed_roles: Iterable[Role]) -> Principal:
    """Return the principal if its role is allowed.

    Raises AuthenticationError with no principal, AuthorizationError when the
    role is not in allowed_roles.
    """
    if principal is None:
        raise AuthenticationError("Authentication required.")
    if principal.role not in set(allowed_roles):
        raise AuthorizationError("Access denied. Insufficient permissions.")
    return principal


def require_roles(*allowed_roles: Role) -> Callable[..., Principal]:
    """Build a dependency that authenticates the request, then checks its role."""
    allowed = frozenset(allowed_roles)

    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        return authorize(principal, allowed)

    return dependency

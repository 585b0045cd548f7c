"""
auth/tokens.py -- JWT issuance/verification and password hashing.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       id, email, role, iat and exp. The accepted algorithm list is pinned to
       HS256 at decode time, so a token cannot choose its own algorithm
       ("none", RS256 with the secret as a public key, ...). Verification
       raises TokenExpiredError or MalformedTokenError; the authentication
       gate turns both into a 401 with distinct messages.

  Passwords: bcrypt with a fixed cost of 10 rounds. The _DUMMY_HASH constant
       enables timing equalization in authenticate_account() so response time
       does not reveal whether an email is registered [C1].

  SECRET_KEY: sourced from core.config.get_settings(). A missing key falls
       back to the insecure development default with a warning.

Layer rule: no imports from api/. Import from core/ is allowed -- core/ is the
kernel and has no reverse dependencies.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from auth.errors import AuthenticationError, AuthorizationError, MalformedTokenError, TokenExpiredError
from auth.models import ApprovalStatus
from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import Account
    from auth.store import AccountStore

logger = logging.getLogger("tripnetwork.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"

BCRYPT_ROUNDS = 10

_REQUIRED_CLAIMS = ("id", "email", "role")

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    No length policy is applied here; that lives in registration validation.
    Passwords longer than 72 bytes are truncated before hashing, matching
    what older bcrypt releases did implicitly (bcrypt 4.1+ raises instead).
    """
    secret = plain.encode("utf-8")[:72]
    return bcrypt.hashpw(secret, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    Malformed hashes verify as False rather than raising.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8")[:72], hashed.encode("utf-8"))
    except ValueError:
        return False


# Timing equalization dummy hash [C1].
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("tripnetwork_timing_dummy")


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(account: Account, expires_delta: timedelta | None = None) -> str:
    """Encode a signed JWT carrying the account's identity claims.

    Args:
        account:       A persisted Account (id must be set).
        expires_delta: Token lifetime. Defaults to Settings.token_expire_seconds
                       (7 days). A negative delta yields an already-expired
                       token, which tests use to exercise the expiry path.
    """
    now = datetime.now(timezone.utc)
    lifetime = expires_delta if expires_delta is not None else timedelta(seconds=_settings.token_expire_seconds)
    payload = {
        "id": account.id,
        "email": account.email,
        "role": account.role.value,
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Decode and verify a JWT. Returns the claims dict.

    Raises:
        TokenExpiredError:   the exp claim has passed.
        MalformedTokenError: bad signature, foreign algorithm, garbage input,
                             or a payload without id/email/role.
    """
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except ExpiredSignatureError as exc:
        raise TokenExpiredError("Token expired. Please login again.") from exc
    except JWTError as exc:
        raise MalformedTokenError("Invalid token.") from exc
    if any(claim not in payload for claim in _REQUIRED_CLAIMS) or not isinstance(payload["id"], int):
        raise MalformedTokenError("Invalid token.")
    return payload


# ---------------------------------------------------------------------------
# Account authentication (constant-time) [C1]
# ---------------------------------------------------------------------------

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
PENDING_MESSAGE = "Account is pending approval. Please wait for admin approval."
BLOCKED_MESSAGE = "Account has been blocked."


def inactive_message(status: ApprovalStatus) -> str:
    return BLOCKED_MESSAGE if status == ApprovalStatus.blocked else PENDING_MESSAGE


def authenticate_account(store: AccountStore, email: str, password: str) -> Account:
    """Authenticate an email/password login with timing equalization.

    Always runs bcrypt whether or not the email exists:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)
    Both raise the same AuthenticationError message.

    Approval status is checked only after the password matched, so the
    pending/blocked message is never shown to someone without the password.
    """
    account = store.get_by_email(email)
    if account is None:
        # Equalize timing -- do NOT return early before running bcrypt [C1]
        verify_password(password, _DUMMY_HASH)
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)
    if not verify_password(password, account.password_hash):
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)
    if not account.is_active:
        logger.info("Login refused for account %s (status=%s)", account.id, account.status.value)
        raise AuthorizationError(inactive_message(account.status))
    return account

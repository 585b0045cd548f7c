"""
auth/errors.py -- Error taxonomy for the identity subsystem.

Every failure the registry, token verifier, gates or approval state machine
can report is one of these classes. Each carries the HTTP status it maps to,
so the exception handler in api/main.py renders them without a lookup table.

Messages of 4xx errors are safe to show to users verbatim. InternalError
messages are generic; the underlying cause is logged, never returned.

Layer rule: no imports from api/ or core/.
"""


class IdentityError(Exception):
    """Base exception for the identity subsystem."""

    status_code: int = 500
    error_code: str = "identity_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(IdentityError):
    """Malformed or missing input (registration payload, login body)."""

    status_code = 400
    error_code = "validation_error"


class ConflictError(IdentityError):
    """The email is already registered."""

    status_code = 400
    error_code = "conflict"


class AuthenticationError(IdentityError):
    """Bad credentials or an unusable bearer token."""

    status_code = 401
    error_code = "unauthorized"


class TokenExpiredError(AuthenticationError):
    error_code = "token_expired"


class MalformedTokenError(AuthenticationError):
    """Bad signature, wrong algorithm, or a payload missing identity claims."""

    error_code = "invalid_token"


class AuthorizationError(IdentityError):
    """Role not permitted, or account not ACTIVE."""

    status_code = 403
    error_code = "forbidden"


class NotFoundError(IdentityError):
    status_code = 404
    error_code = "not_found"


class InternalError(IdentityError):
    status_code = 500
    error_code = "internal_error"

"""
API request and response models for the TripNetwork identity endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

RegisterRequest is deliberately permissive (every field optional, extra keys
ignored): the role-specific rules live in auth.registry.validate_registration
so that a missing field produces the registry's 400 message rather than a
generic schema error.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import ApprovalStatus, Role

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/auth/register."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)

    email: Optional[str] = None
    password: Optional[str] = Field(default=None, max_length=255)
    role: Optional[str] = None

    # traveler
    name: Optional[str] = None
    phone: Optional[str] = None

    # travel_agency / hotel_representative
    agency_name: Optional[str] = Field(default=None, alias="agencyName")
    hotel_name: Optional[str] = Field(default=None, alias="hotelName")
    nid: Optional[str] = None
    trade_license_id: Optional[str] = Field(default=None, alias="tradeLicenseId")
    address: Optional[str] = None
    website: Optional[str] = None
    location: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        """Return the payload keyed by the public camelCase field names."""
        return self.model_dump(by_alias=True)


class LoginRequest(BaseModel):
    """Request body for POST /api/auth/login. Presence is checked by the route."""

    email: Optional[str] = None
    password: Optional[str] = Field(default=None, max_length=255)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class AccountOut(BaseModel):
    """Sanitized account as returned to clients. Never carries password_hash."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    role: Role
    status: ApprovalStatus
    profile: Optional[dict[str, Any]] = None
    created_at: str
    updated_at: str


class AuthData(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: AccountOut
    token: str


class AuthResponse(BaseModel):
    """Response for POST /register and POST /login."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str
    data: AuthData


class MeData(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: AccountOut


class MeResponse(BaseModel):
    """Response for GET /api/auth/me."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    data: MeData


class PendingProvidersResponse(BaseModel):
    """Response for GET /api/admin/pending-providers."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    data: list[AccountOut]


class MessageResponse(BaseModel):
    """Confirmation envelope for admin transitions."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Error envelope returned on 4xx/5xx responses.

    stack is populated only when Settings.debug is true.
    """

    model_config = ConfigDict(frozen=True)

    success: bool = False
    message: str
    code: str
    stack: Optional[str] = None


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)

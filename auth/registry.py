"""
auth/registry.py -- Account registration, lookup and sanitization.

The registry is the only code path that creates self-service accounts:

    payload -> validate_registration() -> hash_password() -> AccountStore.create_account()

validate_registration() turns the loosely typed request payload into a
Registration with exactly one profile variant for the declared role. Field
names in the payload use the public camelCase spelling (agencyName,
tradeLicenseId, ...).

Email uniqueness is checked twice: a cheap lookup before hashing, and the
UNIQUE constraint at insert time. The second check closes the race between
two concurrent registrations; both surface as the same ConflictError.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import ConflictError, InternalError, ValidationError
from auth.models import (
    Account,
    AgencyProfile,
    ApprovalStatus,
    HotelProfile,
    Profile,
    ProviderProfile,
    ProviderType,
    Role,
    TravelerProfile,
)
from auth.store import AccountStore
from auth.tokens import hash_password

logger = logging.getLogger("tripnetwork.auth")

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

MIN_PASSWORD_LENGTH = 6

_REQUIRED_FIELDS: dict[Role, tuple[str, ...]] = {
    Role.traveler: ("name", "phone"),
    Role.travel_agency: ("agencyName", "nid", "tradeLicenseId", "address", "phone"),
    Role.hotel_representative: ("hotelName", "nid", "tradeLicenseId", "address", "phone"),
}

_MISSING_FIELDS_MESSAGES: dict[Role, str] = {
    Role.traveler: "Name and phone are required for travelers",
    Role.travel_agency: (
        "Agency name, NID, trade license ID, address, and phone are required for travel agencies"
    ),
    Role.hotel_representative: (
        "Hotel name, NID, trade license ID, address, and phone are required for hotel representatives"
    ),
}


@dataclass(frozen=True)
class Registration:
    """A validated registration request, ready to be hashed and persisted."""

    email: str
    password: str
    role: Role
    profile: Profile

    @property
    def initial_status(self) -> ApprovalStatus:
        # Travelers self-certify; providers wait for an administrator.
        return ApprovalStatus.active if self.role == Role.traveler else ApprovalStatus.pending


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    return True


def _text(payload: Mapping[str, Any], key: str) -> str:
    return str(payload[key]).strip()


def _optional_text(payload: Mapping[str, Any], key: str) -> str | None:
    value = payload.get(key)
    return _text(payload, key) if _present(value) else None


def validate_registration(payload: Mapping[str, Any]) -> Registration:
    """Validate a raw registration payload. Raises ValidationError on the first problem."""
    email = payload.get("email")
    password = payload.get("password")
    role_value = payload.get("role")

    # Only None or "" counts as a missing password.
    if not _present(email) or password is None or password == "" or not _present(role_value):
        raise ValidationError("Email, password, and role are required")
    if not isinstance(email, str) or not EMAIL_PATTERN.fullmatch(email):
        raise ValidationError("Invalid email format")
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    try:
        role = Role(role_value)
    except ValueError:
        raise ValidationError("Invalid role") from None
    if role == Role.admin:
        raise ValidationError("Admin accounts cannot be created through registration")

    if not all(_present(payload.get(field)) for field in _REQUIRED_FIELDS[role]):
        raise ValidationError(_MISSING_FIELDS_MESSAGES[role])

    return Registration(email=email, password=password, role=role, profile=_build_profile(role, payload))


def _build_profile(role: Role, payload: Mapping[str, Any]) -> Profile:
    if role == Role.traveler:
        return TravelerProfile(name=_text(payload, "name"), phone=_text(payload, "phone"))

    address = _text(payload, "address")
    if role == Role.travel_agency:
        provider_type = ProviderType.agency
        details: AgencyProfile | HotelProfile = AgencyProfile(agency_name=_text(payload, "agencyName"))
    else:
        provider_type = ProviderType.hotel
        details = HotelProfile(
            hotel_name=_text(payload, "hotelName"),
            location=_optional_text(payload, "location") or address,
        )
    return ProviderProfile(
        provider_type=provider_type,
        trade_license_id=_text(payload, "tradeLicenseId"),
        address=address,
        website=_optional_text(payload, "website"),
        nid=_text(payload, "nid"),
        phone=_text(payload, "phone"),
        details=details,
    )


def sanitize(account: Account | Mapping[str, Any] | None) -> dict | None:
    """Return an outward-safe dict of the account with password_hash removed.

    Accepts an Account, an already-sanitized mapping (idempotent), or None.
    """
    if account is None:
        return None
    if isinstance(account, Account):
        data = dataclasses.asdict(account)
    else:
        data = dict(account)
    data.pop("password_hash", None)
    return data


class AccountRegistry:
    """Creates accounts and looks them up.

    find_by_email / find_by_id return the full internal record, hash
    included. Anything handed back to a client goes through sanitize().
    """

    def __init__(self, store: AccountStore) -> None:
        self.store = store

    def register(self, payload: Mapping[str, Any]) -> Account:
        """Validate, hash and persist a self-service registration.

        Raises:
            ValidationError: payload rejected (see validate_registration).
            ConflictError:   email already registered, including when a
                             concurrent registration wins the insert race.
            InternalError:   the store failed for any other reason.
        """
        registration = validate_registration(payload)
        if self.store.get_by_email(registration.email) is not None:
            raise ConflictError("Email already registered")

        account = Account(
            email=registration.email,
            password_hash=hash_password(registration.password),
            role=registration.role,
            status=registration.initial_status,
            profile=registration.profile,
        )
        try:
            account_id = self.store.create_account(account)
        except IntegrityError as exc:
            raise ConflictError("Email already registered") from exc
        except SQLAlchemyError as exc:
            logger.error("Account store write failed for role=%s", registration.role.value, exc_info=exc)
            raise InternalError("Registration failed. Please try again later.") from exc

        created = self.store.get_by_id(account_id)
        logger.info(
            "Registered account %s (role=%s, status=%s)",
            account_id,
            registration.role.value,
            registration.initial_status.value,
        )
        return created

    def find_by_email(self, email: str) -> Account | None:
        return self.store.get_by_email(email)

    def find_by_id(self, account_id: int) -> Account | None:
        return self.store.get_by_id(account_id)

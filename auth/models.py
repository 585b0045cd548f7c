"""
auth/models.py -- Domain dataclasses for identity entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own domain
shape; the store, registry and routes do the work.

Role-specific attributes never sit on Account itself. Each account carries one
profile variant chosen by its role (a tagged union):

    traveler              -> TravelerProfile
    travel_agency         -> ProviderProfile(details=AgencyProfile)
    hotel_representative  -> ProviderProfile(details=HotelProfile)
    admin                 -> AdminProfile

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class Role(str, Enum):
    traveler = "traveler"
    travel_agency = "travel_agency"
    hotel_representative = "hotel_representative"
    admin = "admin"


class ApprovalStatus(str, Enum):
    """Account lifecycle state. ACTIVE and BLOCKED are terminal."""

    pending = "PENDING"
    active = "ACTIVE"
    blocked = "BLOCKED"


class ProviderType(str, Enum):
    agency = "AGENCY"
    hotel = "HOTEL"


# Roles that need an administrator's approval before they may act.
PROVIDER_ROLES: frozenset[Role] = frozenset({Role.travel_agency, Role.hotel_representative})


@dataclass
class TravelerProfile:
    name: str
    phone: str


@dataclass
class AgencyProfile:
    agency_name: str


@dataclass
class HotelProfile:
    hotel_name: str
    location: str


@dataclass
class ProviderProfile:
    """Profile shared by agencies and hotels.

    approved_by_admin / approved_at form the approval audit pair. They are
    stamped in the same transaction that moves the account to ACTIVE.
    """

    provider_type: ProviderType
    trade_license_id: str
    address: str
    nid: str
    phone: str
    details: Union[AgencyProfile, HotelProfile]
    website: str | None = None
    approved_by_admin: bool = False
    approved_at: str | None = None


@dataclass
class AdminProfile:
    name: str


Profile = Union[TravelerProfile, ProviderProfile, AdminProfile]


@dataclass
class Account:
    """One identity in TripNetwork.

    password_hash is the bcrypt digest. It is needed internally (login) and
    must be stripped with auth.registry.sanitize() before leaving the process.

    id is None before the record is written to the database.
    """

    email: str
    role: Role
    status: ApprovalStatus
    profile: Profile
    password_hash: str = ""
    id: int | None = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""  # ISO 8601, refreshed on every mutation

    @property
    def is_active(self) -> bool:
        return self.status == ApprovalStatus.active

    @property
    def is_provider(self) -> bool:
        return self.role in PROVIDER_ROLES


@dataclass(frozen=True)
class Principal:
    """The authenticated identity attached to a request by the authentication gate."""

    id: int
    email: str
    role: Role
    status: ApprovalStatus

"""
tests/conftest.py -- Shared test fixtures for the TripNetwork identity tests.

This module provides:
  - store:        fresh in-memory AccountStore per test (unit tests)
  - file_store:   AccountStore on a temporary SQLite file, for tests that hit
                  the store from several threads at once
  - make_account: factory that persists an account with a given role/status
  - api_client:   TestClient with an admin JWT for API integration tests

Design: Named shared-memory SQLite URIs (not plain :memory:) are used for the
API client because TestClient runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread. The named URI format
(file:name?mode=memory&cache=shared&uri=true) shares one in-memory instance
across all connections in the same process.

Environment variables must be set before any auth/core import because
get_settings() is read once at module load.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager
from typing import NamedTuple

# CRITICAL: configure Settings before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key-0123456789abcdef0123456789")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")
os.environ.setdefault("REGISTER_RATE_LIMIT", "1000/minute")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import (
    Account,
    AdminProfile,
    AgencyProfile,
    ApprovalStatus,
    HotelProfile,
    ProviderProfile,
    ProviderType,
    Role,
    TravelerProfile,
)
from auth.store import AccountStore
from auth.tokens import create_access_token, hash_password

ADMIN_EMAIL = "admin@tripnetwork.test"
ADMIN_PASSWORD = "adminpass123"

# ---------------------------------------------------------------------------
# Payload helpers
# ---------------------------------------------------------------------------


def traveler_payload(email: str = "traveler@example.com", **overrides) -> dict:
    payload = {"email": email, "password": "secret1", "role": "traveler", "name": "Tess", "phone": "123"}
    payload.update(overrides)
    return payload


def agency_payload(email: str = "agency@example.com", **overrides) -> dict:
    payload = {
        "email": email,
        "password": "secret1",
        "role": "travel_agency",
        "agencyName": "Blue Sky Tours",
        "nid": "NID-1001",
        "tradeLicenseId": "TL-555",
        "address": "12 Harbour Road",
        "phone": "555-0101",
    }
    payload.update(overrides)
    return payload


def hotel_payload(email: str = "hotel@example.com", **overrides) -> dict:
    payload = {
        "email": email,
        "password": "secret1",
        "role": "hotel_representative",
        "hotelName": "Seaside Inn",
        "nid": "NID-2002",
        "tradeLicenseId": "TL-777",
        "address": "3 Beach Lane",
        "phone": "555-0202",
    }
    payload.update(overrides)
    return payload


def _profile_for(role: Role):
    if role == Role.traveler:
        return TravelerProfile(name="Tess", phone="123")
    if role == Role.admin:
        return AdminProfile(name="Ada")
    if role == Role.travel_agency:
        details = AgencyProfile(agency_name="Blue Sky Tours")
        provider_type = ProviderType.agency
    else:
        details = HotelProfile(hotel_name="Seaside Inn", location="Cox's Bazar")
        provider_type = ProviderType.hotel
    return ProviderProfile(
        provider_type=provider_type,
        trade_license_id="TL-1",
        address="1 Main Street",
        nid="NID-1",
        phone="555",
        details=details,
    )


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[AccountStore, None, None]:
    s = AccountStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def file_store(tmp_path) -> Generator[AccountStore, None, None]:
    """File-backed store: each thread gets its own real connection to one database."""
    s = AccountStore(f"sqlite:///{tmp_path / 'auth.db'}")
    yield s
    s.close()


def persist_account(
    target: AccountStore,
    email: str,
    role: Role,
    status: ApprovalStatus,
    password: str = "secret1",
) -> Account:
    account_id = target.create_account(
        Account(
            email=email,
            password_hash=hash_password(password),
            role=role,
            status=status,
            profile=_profile_for(role),
        )
    )
    return target.get_by_id(account_id)


@pytest.fixture
def make_account(store: AccountStore) -> Callable[..., Account]:
    """Persist an account directly in the store, bypassing registration rules."""

    def _make(email: str, role: Role, status: ApprovalStatus, password: str = "secret1") -> Account:
        return persist_account(store, email, role, status, password)

    return _make


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


class ApiClient(NamedTuple):
    client: TestClient
    store: AccountStore
    admin: Account
    admin_token: str


def _patch_lifespan(account_store: AccountStore):
    """Return a lifespan that wires the test store into app.state."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.account_store = account_store
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[ApiClient, None, None]:
    """Yield an ApiClient for API integration tests, one per test module.

    The database name includes the module name so modules never share state.
    An ACTIVE admin is created before the client starts.
    """
    db_name = request.module.__name__.replace(".", "_")
    account_store = AccountStore(f"sqlite:///file:test_auth_{db_name}?mode=memory&cache=shared&uri=true")
    admin = persist_account(account_store, ADMIN_EMAIL, Role.admin, ApprovalStatus.active, ADMIN_PASSWORD)
    token = create_access_token(admin)

    app.router.lifespan_context = _patch_lifespan(account_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiClient(client=client, store=account_store, admin=admin, admin_token=token)

    account_store.close()


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}

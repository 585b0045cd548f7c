"""Tests for the administrative command line in main.py."""

from __future__ import annotations

import pytest

from auth.models import ApprovalStatus, Role
from auth.registry import AccountRegistry
from auth.store import AccountStore
from auth.tokens import authenticate_account
from conftest import agency_payload
from main import _display_name, create_admin, main


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'cli.db'}"


def _create(db_url: str, email: str = "ops@example.com", password: str = "opspass1") -> int:
    return main(["--database-url", db_url, "create-admin", "--email", email, "--name", "Ops", "--password", password])


class TestCreateAdmin:
    def test_created_admin_can_login(self, db_url, capsys) -> None:
        assert _create(db_url) == 0
        assert "Admin account created" in capsys.readouterr().out

        store = AccountStore(db_url)
        try:
            account = authenticate_account(store, "ops@example.com", "opspass1")
            assert account.role == Role.admin
            assert account.status == ApprovalStatus.active
            assert account.profile.name == "Ops"
        finally:
            store.close()

    def test_duplicate_email(self, db_url, capsys) -> None:
        assert _create(db_url) == 0
        assert _create(db_url) == 1
        assert "already exists" in capsys.readouterr().out

    def test_short_password(self, db_url, capsys) -> None:
        assert _create(db_url, password="123") == 1
        assert "at least 6 characters" in capsys.readouterr().out

    def test_function_rejects_bad_email(self, store) -> None:
        with pytest.raises(ValueError, match="Invalid email"):
            create_admin(store, "not-an-email", "Ops", "opspass1")

    def test_function_rejects_trailing_newline_email(self, store) -> None:
        with pytest.raises(ValueError, match="Invalid email"):
            create_admin(store, "ops@example.com\n", "Ops", "opspass1")

    def test_function_rejects_blank_name(self, store) -> None:
        with pytest.raises(ValueError, match="Name is required"):
            create_admin(store, "ops@example.com", "   ", "opspass1")


class TestDisplayName:
    def test_provider_names(self, make_account) -> None:
        agency = make_account("dn-agency@example.com", Role.travel_agency, ApprovalStatus.pending)
        hotel = make_account("dn-hotel@example.com", Role.hotel_representative, ApprovalStatus.pending)
        assert _display_name(agency) == "Blue Sky Tours"
        assert _display_name(hotel) == "Seaside Inn"

    def test_non_provider_is_blank(self, make_account) -> None:
        traveler = make_account("dn-traveler@example.com", Role.traveler, ApprovalStatus.active)
        assert _display_name(traveler) == ""


class TestListPending:
    def test_empty(self, db_url, capsys) -> None:
        assert main(["--database-url", db_url, "list-pending"]) == 0
        assert "No providers awaiting approval." in capsys.readouterr().out

    def test_lists_agency(self, db_url, capsys) -> None:
        store = AccountStore(db_url)
        try:
            AccountRegistry(store).register(agency_payload(email="cli-agency@example.com"))
        finally:
            store.close()

        assert main(["--database-url", db_url, "list-pending"]) == 0
        out = capsys.readouterr().out
        assert "cli-agency@example.com" in out
        assert "Blue Sky Tours" in out
        assert "travel_agency" in out

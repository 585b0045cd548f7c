#!/usr/bin/env python3
"""
TripNetwork identity -- administrative command line.

Admin accounts cannot self-register through the API. They are provisioned
here, out of band, by someone with access to the database.

Usage:
  python main.py create-admin --email admin@example.com --name "Ops Admin"
  python main.py create-admin --email admin@example.com --name "Ops Admin" --password s3cret!
  python main.py list-pending
  python main.py --database-url sqlite:///other.db list-pending

Environment variables:
  DATABASE_URL  SQLAlchemy URL of the account store (see core/config.py).
"""

import argparse
import getpass
import sys
from typing import Optional

from sqlalchemy.exc import IntegrityError

from auth.approval import list_pending_providers
from auth.models import Account, AdminProfile, ApprovalStatus, Role
from auth.registry import EMAIL_PATTERN, MIN_PASSWORD_LENGTH
from auth.store import AccountStore
from auth.tokens import hash_password
from core.config import get_settings


def create_admin(store: AccountStore, email: str, name: str, password: str) -> int:
    """Create an ACTIVE admin account with its profile. Returns the new id.

    Raises ValueError on bad input and sqlalchemy IntegrityError if the email
    is already registered.
    """
    if not EMAIL_PATTERN.fullmatch(email):
        raise ValueError("Invalid email format")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if not name.strip():
        raise ValueError("Name is required")
    return store.create_account(
        Account(
            email=email,
            password_hash=hash_password(password),
            role=Role.admin,
            status=ApprovalStatus.active,
            profile=AdminProfile(name=name.strip()),
        )
    )


def _read_password(given: Optional[str]) -> str:
    if given:
        return given
    first = getpass.getpass("Password: ")
    second = getpass.getpass("Repeat password: ")
    if first != second:
        raise ValueError("Passwords do not match")
    return first


def _display_name(account: Account) -> str:
    if not account.is_provider or account.profile is None or account.profile.details is None:
        return ""
    details = account.profile.details
    return getattr(details, "agency_name", None) or getattr(details, "hotel_name", "")


def _cmd_create_admin(store: AccountStore, args: argparse.Namespace) -> int:
    try:
        password = _read_password(args.password)
        account_id = create_admin(store, args.email, args.name, password)
    except ValueError as e:
        print(f"  [!] {e}")
        return 1
    except IntegrityError:
        print(f"  [!] An account with email '{args.email}' already exists.")
        return 1
    print(f"  Admin account created (id={account_id}).")
    return 0


def _cmd_list_pending(store: AccountStore, args: argparse.Namespace) -> int:
    pending = list_pending_providers(store)
    if not pending:
        print("  No providers awaiting approval.")
        return 0
    print(f"  {'ID':>5}  {'ROLE':<22} {'EMAIL':<32} NAME")
    for account in pending:
        print(f"  {account.id:>5}  {account.role.value:<22} {account.email:<32} {_display_name(account)}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="tripnetwork-admin",
        description="Administrative tasks for the TripNetwork identity store.",
    )
    parser.add_argument(
        "--database-url",
        metavar="URL",
        default=None,
        help="SQLAlchemy database URL (default: DATABASE_URL from the environment)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create-admin", help="Provision an administrator account")
    create.add_argument("--email", required=True)
    create.add_argument("--name", required=True)
    create.add_argument(
        "--password",
        default=None,
        help="Password for scripted use. Prompted for interactively when omitted.",
    )
    create.set_defaults(handler=_cmd_create_admin)

    pending = sub.add_parser("list-pending", help="List provider accounts awaiting approval")
    pending.set_defaults(handler=_cmd_list_pending)

    args = parser.parse_args(argv)
    store = AccountStore(args.database_url or get_settings().database_url)
    try:
        return args.handler(store, args)
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())

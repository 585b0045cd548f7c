"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts and profiles.

Pattern: Repository + Data Mapper. AccountStore is the repository;
_row_to_account / _load_profile are the mappers. Route and registry code
never touches SQL directly.

Schema: one row per account in `accounts`, plus satellite rows keyed by the
same id:
    traveler              -> travelers
    travel_agency         -> providers + agencies
    hotel_representative  -> providers + hotels
    admin                 -> admins

Concurrency:
  There is no in-process locking. Email uniqueness is enforced by the UNIQUE
  constraint on accounts.email; a losing concurrent insert raises
  sqlalchemy.exc.IntegrityError, which the registry maps to ConflictError.

  Approval transitions are compare-and-set updates: the `status = 'PENDING'`
  guard is part of the UPDATE statement itself, so of two racing admin
  actions exactly one sees rowcount == 1.

  Multi-row writes run inside engine.begin(). Any exception raised inside the
  block, cancellation included, rolls the whole group back and the
  connection is returned to the pool on every exit path.

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, ForeignKey, Integer, MetaData, String, Table, Text, create_engine, event, select, text
from sqlalchemy.engine import Connection, Engine

from auth.models import (
    PROVIDER_ROLES,
    Account,
    AdminProfile,
    AgencyProfile,
    ApprovalStatus,
    HotelProfile,
    Profile,
    ProviderProfile,
    ProviderType,
    Role,
    TravelerProfile,
)

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_accounts = Table(
    "accounts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("role", String(30), nullable=False),
    Column("status", String(16), nullable=False, server_default=ApprovalStatus.pending.value),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_travelers = Table(
    "travelers",
    metadata,
    Column("account_id", Integer, ForeignKey("accounts.id"), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("phone", String(50), nullable=False),
)

_providers = Table(
    "providers",
    metadata,
    Column("account_id", Integer, ForeignKey("accounts.id"), primary_key=True),
    Column("provider_type", String(10), nullable=False),  # "AGENCY" | "HOTEL"
    Column("trade_license_id", String(100), nullable=False),
    Column("address", Text, nullable=False),
    Column("website", String(255)),
    Column("nid", String(100), nullable=False),
    Column("phone", String(50), nullable=False),
    Column("approved_by_admin", Integer, nullable=False, server_default="0"),
    Column("approved_at", String(32)),
)

_agencies = Table(
    "agencies",
    metadata,
    Column("account_id", Integer, ForeignKey("providers.account_id"), primary_key=True),
    Column("agency_name", String(255), nullable=False),
)

_hotels = Table(
    "hotels",
    metadata,
    Column("account_id", Integer, ForeignKey("providers.account_id"), primary_key=True),
    Column("hotel_name", String(255), nullable=False),
    Column("location", Text, nullable=False),
)

_admins = Table(
    "admins",
    metadata,
    Column("account_id", Integer, ForeignKey("accounts.id"), primary_key=True),
    Column("name", String(255), nullable=False),
)

_PROVIDER_ROLE_VALUES = sorted(r.value for r in PROVIDER_ROLES)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AccountStore:
    """Repository for Account entities and their satellite profiles.

    Usage:
        store = AccountStore("sqlite:///tripnetwork_auth.db")
        account_id = store.create_account(account)
        account = store.get_by_email("a@b.com")
        store.activate_pending_provider(account_id)
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_account(self, account: Account) -> int:
        """Insert an account and its profile rows as one atomic group.

        Raises sqlalchemy.exc.IntegrityError if the email already exists or a
        profile column violates its constraints. Nothing is committed in that
        case: engine.begin() rolls back the account row together with any
        satellite rows already written.
        """
        now = _now_iso()
        with self.engine.begin() as conn:
            result = conn.execute(
                _accounts.insert().values(
                    email=account.email,
                    password_hash=account.password_hash,
                    role=account.role.value,
                    status=account.status.value,
                    created_at=now,
                    updated_at=now,
                )
            )
            account_id = result.inserted_primary_key[0]
            _insert_profile(conn, account_id, account.profile)
        return account_id

    def activate_pending_provider(self, account_id: int) -> bool:
        """Move a PENDING provider to ACTIVE and stamp the approval audit pair.

        Both updates share one transaction. The status guard lives in the
        UPDATE's WHERE clause, so a second caller racing on the same account
        matches zero rows. Returns False (and writes nothing) in that case.
        """
        now = _now_iso()
        with self.engine.begin() as conn:
            result = conn.execute(
                _accounts.update()
                .where(
                    (_accounts.c.id == account_id)
                    & (_accounts.c.status == ApprovalStatus.pending.value)
                    & (_accounts.c.role.in_(_PROVIDER_ROLE_VALUES))
                )
                .values(status=ApprovalStatus.active.value, updated_at=now)
            )
            if result.rowcount == 0:
                return False
            conn.execute(
                _providers.update()
                .where(_providers.c.account_id == account_id)
                .values(approved_by_admin=1, approved_at=now)
            )
        return True

    def block_pending_provider(self, account_id: int) -> bool:
        """Move a PENDING provider to BLOCKED. Single conditional update.

        Returns True if the transition happened, False if the account does not
        exist, is not a provider, or was no longer PENDING.
        """
        with self.engine.begin() as conn:
            result = conn.execute(
                _accounts.update()
                .where(
                    (_accounts.c.id == account_id)
                    & (_accounts.c.status == ApprovalStatus.pending.value)
                    & (_accounts.c.role.in_(_PROVIDER_ROLE_VALUES))
                )
                .values(status=ApprovalStatus.blocked.value, updated_at=_now_iso())
            )
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_by_email(self, email: str) -> Account | None:
        """Look up an account by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.email == email)).fetchone()
            return _row_to_account(conn, row) if row is not None else None

    def get_by_id(self, account_id: int) -> Account | None:
        """Look up an account by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.id == account_id)).fetchone()
            return _row_to_account(conn, row) if row is not None else None

    def list_pending_providers(self) -> list[Account]:
        """Return every PENDING agency or hotel account, newest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _accounts.select()
                .where(
                    (_accounts.c.status == ApprovalStatus.pending.value)
                    & (_accounts.c.role.in_(_PROVIDER_ROLE_VALUES))
                )
                .order_by(_accounts.c.created_at.desc(), _accounts.c.id.desc())
            ).fetchall()
            return [_row_to_account(conn, r) for r in rows]

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Profile writers
# ---------------------------------------------------------------------------


def _insert_profile(conn: Connection, account_id: int, profile: Profile) -> None:
    if isinstance(profile, TravelerProfile):
        conn.execute(_travelers.insert().values(account_id=account_id, name=profile.name, phone=profile.phone))
    elif isinstance(profile, ProviderProfile):
        conn.execute(
            _providers.insert().values(
                account_id=account_id,
                provider_type=profile.provider_type.value,
                trade_license_id=profile.trade_license_id,
                address=profile.address,
                website=profile.website,
                nid=profile.nid,
                phone=profile.phone,
                approved_by_admin=1 if profile.approved_by_admin else 0,
                approved_at=profile.approved_at,
            )
        )
        details = profile.details
        if isinstance(details, AgencyProfile):
            conn.execute(_agencies.insert().values(account_id=account_id, agency_name=details.agency_name))
        else:
            conn.execute(
                _hotels.insert().values(
                    account_id=account_id,
                    hotel_name=details.hotel_name,
                    location=details.location,
                )
            )
    elif isinstance(profile, AdminProfile):
        conn.execute(_admins.insert().values(account_id=account_id, name=profile.name))
    else:
        raise TypeError(f"Unsupported profile type: {type(profile).__name__}")


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_account(conn: Connection, row) -> Account:
    role = Role(row.role)
    return Account(
        id=row.id,
        email=row.email,
        password_hash=row.password_hash,
        role=role,
        status=ApprovalStatus(row.status),
        profile=_load_profile(conn, row.id, role),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _load_profile(conn: Connection, account_id: int, role: Role) -> Profile | None:
    # A missing satellite row maps to None rather than raising; create_account
    # never leaves one behind, but rows written by hand might.
    if role == Role.traveler:
        row = conn.execute(select(_travelers).where(_travelers.c.account_id == account_id)).fetchone()
        return TravelerProfile(name=row.name, phone=row.phone) if row is not None else None

    if role == Role.admin:
        row = conn.execute(select(_admins).where(_admins.c.account_id == account_id)).fetchone()
        return AdminProfile(name=row.name) if row is not None else None

    row = conn.execute(select(_providers).where(_providers.c.account_id == account_id)).fetchone()
    if row is None:
        return None
    details: AgencyProfile | HotelProfile | None
    if role == Role.travel_agency:
        d = conn.execute(select(_agencies).where(_agencies.c.account_id == account_id)).fetchone()
        details = AgencyProfile(agency_name=d.agency_name) if d is not None else None
    else:
        d = conn.execute(select(_hotels).where(_hotels.c.account_id == account_id)).fetchone()
        details = HotelProfile(hotel_name=d.hotel_name, location=d.location) if d is not None else None
    return ProviderProfile(
        provider_type=ProviderType(row.provider_type),
        trade_license_id=row.trade_license_id,
        address=row.address,
        website=row.website,
        nid=row.nid,
        phone=row.phone,
        details=details,
        approved_by_admin=bool(row.approved_by_admin),
        approved_at=row.approved_at,
    )

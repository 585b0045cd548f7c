"""
auth/approval.py -- Administrative approval of provider accounts.

State machine:

    PENDING --approve--> ACTIVE
    PENDING --reject---> BLOCKED

ACTIVE and BLOCKED are terminal. Both transitions delegate to compare-and-set
updates in AccountStore. The status guard is evaluated by the database in the
same statement that writes the new status, so two admins acting on the same
account at once cannot both succeed; the loser gets NotFoundError.
"""

from __future__ import annotations

import logging

from auth.errors import NotFoundError
from auth.models import Account
from auth.store import AccountStore

logger = logging.getLogger("tripnetwork.admin")

ALREADY_PROCESSED_MESSAGE = "Provider not found or already processed"


def approve_provider(store: AccountStore, account_id: int) -> None:
    """PENDING -> ACTIVE, stamping approved_by_admin / approved_at atomically.

    Raises NotFoundError if the account is unknown, not a provider, or no
    longer PENDING.
    """
    if not store.activate_pending_provider(account_id):
        raise NotFoundError(ALREADY_PROCESSED_MESSAGE)
    logger.info("Provider %s approved", account_id)


def reject_provider(store: AccountStore, account_id: int) -> None:
    """PENDING -> BLOCKED. Raises NotFoundError under the same conditions as approve."""
    if not store.block_pending_provider(account_id):
        raise NotFoundError(ALREADY_PROCESSED_MESSAGE)
    logger.info("Provider %s rejected", account_id)


def list_pending_providers(store: AccountStore) -> list[Account]:
    return store.list_pending_providers()

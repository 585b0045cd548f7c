"""
api/routes/v1/admin.py -- Provider vetting endpoints for administrators.

Routes:
  GET /api/admin/pending-providers          -- list PENDING agencies and hotels
  PUT /api/admin/providers/{id}/approve     -- PENDING -> ACTIVE
  PUT /api/admin/providers/{id}/reject      -- PENDING -> BLOCKED

Both transitions return 404 when the target is unknown or already processed;
the compare-and-set in the store makes that answer race-free.
"""

from fastapi import APIRouter, Depends, Request

from api.models import MessageResponse, PendingProvidersResponse
from api.routes.v1.auth import account_out
from auth.approval import approve_provider, list_pending_providers, reject_provider
from auth.dependencies import require_roles
from auth.models import Role
from auth.store import AccountStore

# Every route on this router requires an authenticated, ACTIVE admin.
router = APIRouter(dependencies=[Depends(require_roles(Role.admin))])


@router.get("/admin/pending-providers", response_model=PendingProvidersResponse)
def pending_providers(request: Request) -> PendingProvidersResponse:
    """List provider accounts waiting for a decision, newest first."""
    store: AccountStore = request.app.state.account_store
    return PendingProvidersResponse(data=[account_out(a) for a in list_pending_providers(store)])


@router.put("/admin/providers/{account_id}/approve", response_model=MessageResponse)
def approve(request: Request, account_id: int) -> MessageResponse:
    store: AccountStore = request.app.state.account_store
    approve_provider(store, account_id)
    return MessageResponse(message="Provider approved successfully")


@router.put("/admin/providers/{account_id}/reject", response_model=MessageResponse)
def reject(request: Request, account_id: int) -> MessageResponse:
    store: AccountStore = request.app.state.account_store
    reject_provider(store, account_id)
    return MessageResponse(message="Provider rejected successfully")

from fastapi import APIRouter, Depends

from controlclin.api.deps import get_current_user, get_store, get_tenant_id
from controlclin.db.models import User
from controlclin.db.store import ClinicStore
from controlclin.schemas.sync import ReconcileResponse, SyncStatusResponse
from controlclin.services.access import ensure_clinic_admin
from controlclin.services.event_service import EventService
from controlclin.services.sync_service import SyncService

router = APIRouter()

def status_response(store: ClinicStore) -> SyncStatusResponse:
    status = store.sync_status
    return SyncStatusResponse(
        remote_enabled=store.remote_enabled,
        active_tenant_id=store.active_tenant_id,
        last_modified=store.state.last_modified,
        pending=status.pending,
        last_success_at=status.last_success_at,
        last_error=status.last_error,
        last_error_at=status.last_error_at,
        pushes_started=status.pushes_started,
        pushes_failed=status.pushes_failed,
    )

@router.get("/status", response_model=SyncStatusResponse)
async def read_sync_status(
    current_user: User = Depends(get_current_user),
    store: ClinicStore = Depends(get_store)
):
    return status_response(store)

@router.post("/force", response_model=SyncStatusResponse)
async def force_sync(
    tenant_id: str = Depends(get_tenant_id),
    current_user: User = Depends(get_current_user),
    store: ClinicStore = Depends(get_store)
):
    ensure_clinic_admin(current_user, tenant_id)
    await SyncService(store).force_sync(tenant_id)
    return status_response(store)

@router.post("/reconcile", response_model=ReconcileResponse)
async def reconcile(
    tenant_id: str = Depends(get_tenant_id),
    current_user: User = Depends(get_current_user),
    store: ClinicStore = Depends(get_store)
):
    ensure_clinic_admin(current_user, tenant_id)
    outcome = await SyncService(store).reconcile(tenant_id)
    return ReconcileResponse(tenant_id=tenant_id, outcome=outcome.value)

@router.post("/backfill")
async def run_backfill(
    tenant_id: str = Depends(get_tenant_id),
    current_user: User = Depends(get_current_user),
    store: ClinicStore = Depends(get_store)
):
    ensure_clinic_admin(current_user, tenant_id)
    created = await EventService(store).run_backfill(tenant_id)
    return {"tenant_id": tenant_id, "created": created}

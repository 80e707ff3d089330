from fastapi import APIRouter, Depends

from controlclin.api.deps import get_current_user, get_scope, get_store, get_tenant_id
from controlclin.db.models import User
from controlclin.db.store import ClinicStore
from controlclin.schemas.dashboard import DashboardResponse
from controlclin.services.access import AccessScope
from controlclin.services.dashboard_service import DashboardService

router = APIRouter()

@router.get("/", response_model=DashboardResponse)
async def read_dashboard(
    tenant_id: str = Depends(get_tenant_id),
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    store: ClinicStore = Depends(get_store)
):
    service = DashboardService(store)
    return await service.get_dashboard(tenant_id, current_user, scope)

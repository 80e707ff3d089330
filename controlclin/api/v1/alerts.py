from fastapi import APIRouter, Depends
from typing import List, Optional

from controlclin.api.deps import get_current_user, get_scope, get_store, get_tenant_id
from controlclin.db.models import ClinicalAlert, User
from controlclin.db.store import ClinicStore
from controlclin.schemas.alert import AlertGenerationResult, AlertResolve
from controlclin.services.access import AccessScope
from controlclin.services.alert_service import AlertService

router = APIRouter()

async def get_alert_service(store: ClinicStore = Depends(get_store)) -> AlertService:
    return AlertService(store)

@router.get("/", response_model=List[ClinicalAlert])
async def read_alerts(
    patient_id: Optional[str] = None,
    tenant_id: str = Depends(get_tenant_id),
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: AlertService = Depends(get_alert_service)
):
    return await service.list_alerts(tenant_id, current_user, scope, patient_id)

@router.post("/generate", response_model=AlertGenerationResult)
async def generate_alerts(
    tenant_id: str = Depends(get_tenant_id),
    current_user: User = Depends(get_current_user),
    service: AlertService = Depends(get_alert_service)
):
    created = await service.generate_alerts(tenant_id, current_user)
    return AlertGenerationResult(created=created)

@router.post("/{alert_id}/resolve", response_model=ClinicalAlert)
async def resolve_alert(
    alert_id: str,
    data: AlertResolve,
    current_user: User = Depends(get_current_user),
    service: AlertService = Depends(get_alert_service)
):
    return await service.resolve_alert(alert_id, current_user, data.notes)

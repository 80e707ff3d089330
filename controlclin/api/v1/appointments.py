from datetime import datetime
from fastapi import APIRouter, Depends
from typing import List

from controlclin.api.deps import get_current_user, get_scope, get_store, get_tenant_id
from controlclin.core.utils import to_naive_utc
from controlclin.db.models import Appointment, User
from controlclin.db.store import ClinicStore
from controlclin.schemas.appointment import AppointmentCreate, AppointmentUpdate
from controlclin.services.access import AccessScope
from controlclin.services.appointment_service import AppointmentService

router = APIRouter()

async def get_appointment_service(store: ClinicStore = Depends(get_store)) -> AppointmentService:
    return AppointmentService(store)

@router.get("/", response_model=List[Appointment])
async def read_appointments(
    start: datetime,
    end: datetime,
    tenant_id: str = Depends(get_tenant_id),
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service)
):
    return await service.list_appointments(tenant_id, to_naive_utc(start), to_naive_utc(end), current_user, scope)

@router.get("/upcoming", response_model=List[Appointment])
async def read_upcoming_appointments(
    limit: int = 5,
    tenant_id: str = Depends(get_tenant_id),
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service)
):
    return await service.upcoming_appointments(tenant_id, current_user, scope, limit)

@router.post("/", response_model=Appointment)
async def create_appointment(
    data: AppointmentCreate,
    tenant_id: str = Depends(get_tenant_id),
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service)
):
    return await service.create_appointment(tenant_id, data, current_user)

@router.get("/{appointment_id}", response_model=Appointment)
async def read_appointment(
    appointment_id: str,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service)
):
    return await service.get_appointment(appointment_id, current_user, scope)

@router.patch("/{appointment_id}", response_model=Appointment)
async def update_appointment(
    appointment_id: str,
    data: AppointmentUpdate,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service)
):
    return await service.update_appointment(appointment_id, data, current_user, scope)

@router.delete("/{appointment_id}")
async def delete_appointment(
    appointment_id: str,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service)
):
    await service.delete_appointment(appointment_id, current_user, scope)
    return {"message": "Appointment deleted"}

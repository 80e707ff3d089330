from fastapi import APIRouter, Depends
from typing import List

from controlclin.api.deps import get_current_user, get_identity, get_store
from controlclin.db.models import Clinic, User
from controlclin.db.store import ClinicStore
from controlclin.schemas.clinic import ClinicCreate, ClinicCreatedResponse, ClinicUpdate, ResetResult
from controlclin.schemas.user import UserResponse
from controlclin.services.clinic_service import ClinicService
from controlclin.services.identity_service import IdentityProvider

router = APIRouter()

async def get_clinic_service(
    store: ClinicStore = Depends(get_store),
    identity: IdentityProvider = Depends(get_identity)
) -> ClinicService:
    return ClinicService(store, identity)

@router.post("/", response_model=ClinicCreatedResponse)
async def create_clinic(
    clinic_data: ClinicCreate,
    current_user: User = Depends(get_current_user),
    service: ClinicService = Depends(get_clinic_service)
):
    return await service.create_clinic(clinic_data, current_user)

@router.get("/", response_model=List[Clinic])
async def read_clinics(
    current_user: User = Depends(get_current_user),
    service: ClinicService = Depends(get_clinic_service)
):
    return await service.get_clinics(current_user)

@router.get("/slug/{slug}", response_model=Clinic)
async def read_clinic_by_slug(slug: str, service: ClinicService = Depends(get_clinic_service)):
    return await service.get_by_slug(slug)

@router.get("/{clinic_id}", response_model=Clinic)
async def read_clinic(
    clinic_id: str,
    current_user: User = Depends(get_current_user),
    service: ClinicService = Depends(get_clinic_service)
):
    return await service.get_clinic(clinic_id)

@router.patch("/{clinic_id}", response_model=Clinic)
async def update_clinic(
    clinic_id: str,
    data: ClinicUpdate,
    current_user: User = Depends(get_current_user),
    service: ClinicService = Depends(get_clinic_service)
):
    return await service.update_settings(clinic_id, data, current_user)

@router.post("/{clinic_id}/reset", response_model=ResetResult)
async def reset_clinic(
    clinic_id: str,
    current_user: User = Depends(get_current_user),
    service: ClinicService = Depends(get_clinic_service)
):
    return await service.reset_tenant_data(clinic_id, current_user)

@router.get("/{clinic_id}/users", response_model=List[UserResponse])
async def read_clinic_users(
    clinic_id: str,
    current_user: User = Depends(get_current_user),
    service: ClinicService = Depends(get_clinic_service)
):
    return await service.get_users(clinic_id, current_user)

from fastapi import APIRouter, Depends
from typing import List

from controlclin.api.deps import get_current_user, get_identity, get_store, get_tenant_id
from controlclin.db.models import Professional, User
from controlclin.db.store import ClinicStore
from controlclin.schemas.professional import ProfessionalCreate, ProfessionalDeleteResult, ProfessionalUpdate
from controlclin.services.identity_service import IdentityProvider
from controlclin.services.professional_service import ProfessionalService

router = APIRouter()

async def get_professional_service(
    store: ClinicStore = Depends(get_store),
    identity: IdentityProvider = Depends(get_identity)
) -> ProfessionalService:
    return ProfessionalService(store, identity)

@router.get("/", response_model=List[Professional])
async def read_professionals(
    include_inactive: bool = False,
    tenant_id: str = Depends(get_tenant_id),
    current_user: User = Depends(get_current_user),
    service: ProfessionalService = Depends(get_professional_service)
):
    return await service.list_professionals(tenant_id, current_user, include_inactive)

@router.post("/", response_model=Professional)
async def create_professional(
    data: ProfessionalCreate,
    tenant_id: str = Depends(get_tenant_id),
    current_user: User = Depends(get_current_user),
    service: ProfessionalService = Depends(get_professional_service)
):
    return await service.create_professional(tenant_id, data, current_user)

@router.get("/{professional_id}", response_model=Professional)
async def read_professional(
    professional_id: str,
    current_user: User = Depends(get_current_user),
    service: ProfessionalService = Depends(get_professional_service)
):
    return await service.get_professional(professional_id)

@router.patch("/{professional_id}", response_model=Professional)
async def update_professional(
    professional_id: str,
    data: ProfessionalUpdate,
    current_user: User = Depends(get_current_user),
    service: ProfessionalService = Depends(get_professional_service)
):
    return await service.update_professional(professional_id, data, current_user)

@router.post("/{professional_id}/deactivate", response_model=Professional)
async def deactivate_professional(
    professional_id: str,
    current_user: User = Depends(get_current_user),
    service: ProfessionalService = Depends(get_professional_service)
):
    return await service.deactivate_professional(professional_id, current_user)

@router.delete("/{professional_id}", response_model=ProfessionalDeleteResult)
async def delete_professional(
    professional_id: str,
    current_user: User = Depends(get_current_user),
    service: ProfessionalService = Depends(get_professional_service)
):
    return await service.delete_professional(professional_id, current_user)

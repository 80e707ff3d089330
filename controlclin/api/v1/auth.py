from fastapi import APIRouter, Depends

from controlclin.api.deps import get_current_user, get_identity, get_store
from controlclin.db.models import User
from controlclin.db.store import ClinicStore
from controlclin.schemas.auth import LoginRequest, LoginResponse
from controlclin.schemas.user import UserResponse
from controlclin.services.auth_service import AuthService
from controlclin.services.identity_service import IdentityProvider

router = APIRouter()

@router.post("/login", response_model=LoginResponse)
async def login(
    login_data: LoginRequest,
    store: ClinicStore = Depends(get_store),
    identity: IdentityProvider = Depends(get_identity)
):
    service = AuthService(store, identity)
    return await service.login(login_data)

@router.get("/me", response_model=UserResponse)
async def read_me(current_user: User = Depends(get_current_user)):
    return current_user

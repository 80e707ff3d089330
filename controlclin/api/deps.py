from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jwt.exceptions import PyJWTError
from controlclin.core.config import settings
from controlclin.core.security import decode_access_token
from controlclin.db.models import Role, User
from controlclin.db.store import ClinicStore
from controlclin.services.access import AccessMode, AccessScope, scope_for_user
from controlclin.services.ai_service import ExamAnalyzer
from controlclin.services.identity_service import IdentityProvider

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")

def get_store(request: Request) -> ClinicStore:
    return request.app.state.store

def get_identity(request: Request) -> IdentityProvider:
    return request.app.state.identity

def get_analyzer(request: Request) -> ExamAnalyzer:
    return request.app.state.analyzer

async def get_current_user(
    token: str = Depends(oauth2_scheme),
    store: ClinicStore = Depends(get_store)
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
        user_id: str = payload.get("sub")
        if user_id is None:
            raise credentials_exception
    except PyJWTError:
        raise credentials_exception

    user = store.state.users.get(user_id)
    if user is None:
        raise credentials_exception
    return user

def get_tenant_id(
    clinic_id: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    store: ClinicStore = Depends(get_store)
) -> str:
    if clinic_id:
        return clinic_id
    if current_user.role == Role.SUPER_ADMIN:
        return store.active_tenant_id or settings.DEFAULT_TENANT_ID
    return current_user.tenant_id

def get_scope(
    mode: Optional[AccessMode] = None,
    professional_id: Optional[str] = None,
    current_user: User = Depends(get_current_user)
) -> AccessScope:
    """Listing scope. Professionals are always pinned to their own records."""
    return scope_for_user(current_user, mode, professional_id)

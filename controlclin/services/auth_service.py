from datetime import timedelta
from typing import Optional

from controlclin.core.config import settings
from controlclin.core.exceptions import NotFound, PermissionDenied
from controlclin.core.logger import logger
from controlclin.core.security import create_access_token
from controlclin.core.utils import normalize_email
from controlclin.db.models import Clinic, Professional, Role, User
from controlclin.db.store import ClinicStore
from controlclin.schemas.auth import LoginRequest, LoginResponse, UserInfo
from controlclin.services.identity_service import IdentityProvider
from controlclin.services.sync_service import SyncService

SYSTEM_TENANT_ID = "system"


class AuthService:
    def __init__(self, store: ClinicStore, identity: IdentityProvider, sync: Optional[SyncService] = None):
        self.store = store
        self.identity = identity
        self.sync = sync or SyncService(store)

    def _find_clinic(self, slug: str) -> Optional[Clinic]:
        return self.store.state.tenants.first(lambda c: c.slug == slug)

    def _find_user(self, clinic: Clinic, email: str) -> Optional[User]:
        email = normalize_email(email)
        return self.store.state.users.first(
            lambda u: normalize_email(u.email) == email and (
                u.tenant_id == clinic.id
                or (u.tenant_id == SYSTEM_TENANT_ID and u.role == Role.SUPER_ADMIN)
            )
        )

    async def login(self, login_data: LoginRequest) -> LoginResponse:
        # 1. Find Clinic by Slug
        clinic = self._find_clinic(login_data.clinic_slug)
        if not clinic:
            raise NotFound("Clinic not found")

        # 2. Load that clinic's data before looking the user up
        outcome = await self.sync.ensure_tenant(clinic.id)
        if outcome is not None:
            clinic = self._find_clinic(login_data.clinic_slug)
            if not clinic:
                raise NotFound("Clinic not found")

        user = self._find_user(clinic, login_data.email)

        # 3. Verify credentials
        if settings.DEV_AUTH_BYPASS and login_data.password == settings.DEV_BYPASS_PASSWORD:
            logger.warning(f"INSECURE development login bypass used for {login_data.email} on {clinic.slug}")
            if user is None:
                user = self._provision_professional(clinic, login_data.email)
        else:
            credential = self.identity.sign_in(login_data.email, login_data.password)
            if user is None:
                raise PermissionDenied("No clinic profile is linked to this login")
            if user.credential_ref != credential.uid:
                user = self.store.state.users.update(user.id, credential_ref=credential.uid)
                self.store.commit()

        # 4. Generate Token
        access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        access_token = create_access_token(
            data={"sub": user.id, "tenant_id": clinic.id, "role": user.role.value},
            expires_delta=access_token_expires,
        )
        logger.info(f"User {user.id} logged in to clinic {clinic.id}")

        return LoginResponse(
            access_token=access_token,
            token_type="bearer",
            user=UserInfo(
                id=user.id,
                name=user.name,
                email=user.email,
                role=user.role,
                clinic_id=clinic.id,
                clinic_name=clinic.name,
                professional_id=user.professional_id,
            )
        )

    def _provision_professional(self, clinic: Clinic, email: str) -> User:
        """Create a PROFESSIONAL user and its professional record for a first bypass login."""
        email = normalize_email(email)
        name = email.split("@")[0].replace(".", " ").title()
        user = User(tenant_id=clinic.id, role=Role.PROFESSIONAL, name=name, email=email)
        professional = Professional(tenant_id=clinic.id, user_id=user.id, name=name, email=email)
        user.professional_id = professional.id

        self.store.state.professionals.add(professional)
        self.store.state.users.add(user)
        self.store.commit()
        logger.info(f"Provisioned professional {professional.id} for {email} in clinic {clinic.id}")
        return user

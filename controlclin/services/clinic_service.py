import re
from typing import List, Optional

from controlclin.core.exceptions import NotFound, PermissionDenied, ValidationFailed
from controlclin.core.logger import logger
from controlclin.core.utils import generate_password, generate_slug, normalize_email
from controlclin.db.models import Clinic, Professional, Role, ScheduleConfig, User
from controlclin.db.store import ClinicStore
from controlclin.schemas.clinic import (
    AdminCredentials,
    ClinicCreate,
    ClinicCreatedResponse,
    ClinicUpdate,
    ResetResult,
)
from controlclin.schemas.user import UserResponse
from controlclin.services.access import ensure_clinic_admin, ensure_tenant_access
from controlclin.services.identity_service import IdentityProvider
from controlclin.services.professional_service import ensure_email_available

_TIME = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def validate_schedule(config: ScheduleConfig) -> None:
    if not _TIME.match(config.open_time) or not _TIME.match(config.close_time):
        raise ValidationFailed("Opening hours must use the HH:MM format")
    if config.open_time >= config.close_time:
        raise ValidationFailed("Opening time must be before closing time")
    if any(day < 0 or day > 6 for day in config.days_open):
        raise ValidationFailed("Open days must be between 0 (Sunday) and 6 (Saturday)")
    if config.slot_duration <= 0:
        raise ValidationFailed("Slot duration must be positive")


class ClinicService:
    def __init__(self, store: ClinicStore, identity: Optional[IdentityProvider] = None):
        self.store = store
        self.identity = identity

    async def get_clinics(self, current_user: User) -> List[Clinic]:
        if current_user.role == Role.SUPER_ADMIN:
            return self.store.state.tenants.all()
        return self.store.state.tenants.filter(lambda c: c.id == current_user.tenant_id)

    async def get_clinic(self, clinic_id: str) -> Clinic:
        clinic = self.store.state.tenants.get(clinic_id)
        if not clinic:
            raise NotFound("Clinic not found")
        return clinic

    async def get_by_slug(self, slug: str) -> Clinic:
        clinic = self.store.state.tenants.first(lambda c: c.slug == slug)
        if not clinic:
            raise NotFound("Clinic not found")
        return clinic

    async def create_clinic(self, data: ClinicCreate, current_user: User) -> ClinicCreatedResponse:
        if current_user.role != Role.SUPER_ADMIN:
            raise PermissionDenied("Only platform administrators can create clinics")
        if not data.name.strip():
            raise ValidationFailed("Clinic name is required")
        state = self.store.state

        # 1. Slug
        slug = generate_slug(data.name)
        if state.tenants.first(lambda c: c.slug == slug):
            raise ValidationFailed(f"A clinic with slug '{slug}' already exists")

        # 2. Tenant
        clinic = Clinic(slug=slug, **data.model_dump(exclude={"admin_name", "admin_email"}))
        ensure_email_available(state, clinic.id, data.admin_email)

        # 3. Admin credentials
        password = generate_password()
        credential_ref = None
        if self.identity is not None:
            credential_ref = self.identity.register(data.admin_email, password).uid

        # 4. Admin user and its professional profile
        admin = User(tenant_id=clinic.id, role=Role.CLINIC_ADMIN, name=data.admin_name,
                     email=normalize_email(data.admin_email), credential_ref=credential_ref)
        professional = Professional(tenant_id=clinic.id, user_id=admin.id, name=data.admin_name,
                                    email=admin.email)
        admin = admin.model_copy(update={"professional_id": professional.id})

        state.tenants.add(clinic)
        state.users.add(admin)
        state.professionals.add(professional)
        self.store.commit()
        logger.info(f"Clinic {clinic.id} ({slug}) created")

        return ClinicCreatedResponse(
            clinic=clinic,
            admin=UserResponse.model_validate(admin.model_dump()),
            admin_credentials=AdminCredentials(email=admin.email, password=password),
        )

    async def update_settings(self, clinic_id: str, data: ClinicUpdate, current_user: User) -> Clinic:
        await self.get_clinic(clinic_id)
        ensure_clinic_admin(current_user, clinic_id)
        changes = data.model_dump(exclude_unset=True)
        if data.schedule_config is not None:
            validate_schedule(data.schedule_config)
        if "name" in changes and not (changes["name"] or "").strip():
            raise ValidationFailed("Clinic name is required")

        updated = self.store.state.tenants.update(clinic_id, **changes)
        self.store.commit()
        return updated

    async def reset_tenant_data(self, clinic_id: str, current_user: User) -> ResetResult:
        """
        Wipe a clinic back to its administrators. The clinic itself, its
        CLINIC_ADMIN users and their professional profiles survive; every
        other record scoped to the clinic is removed.
        """
        await self.get_clinic(clinic_id)
        ensure_clinic_admin(current_user, clinic_id)
        state = self.store.state

        admins = state.users.filter(lambda u: u.tenant_id == clinic_id and u.role == Role.CLINIC_ADMIN)
        kept_professionals = {u.professional_id for u in admins if u.professional_id}
        kept_users = {u.id for u in admins}
        dropped_logins = [
            u.credential_ref for u in state.users.filter(lambda u: u.tenant_id == clinic_id)
            if u.id not in kept_users and u.credential_ref
        ]

        in_tenant = lambda record: record.tenant_id == clinic_id
        removed = {
            "patients": state.patients.remove_where(in_tenant),
            "appointments": state.appointments.remove_where(in_tenant),
            "exams": state.exams.remove_where(in_tenant),
            "alerts": state.alerts.remove_where(in_tenant),
            "events": state.events.remove_where(in_tenant),
            "examRequests": state.exam_requests.remove_where(in_tenant),
            "assessments": state.assessments.remove_where(in_tenant),
            "prescriptions": state.prescriptions.remove_where(in_tenant),
            "users": state.users.remove_where(lambda u: in_tenant(u) and u.id not in kept_users),
            "professionals": state.professionals.remove_where(
                lambda p: in_tenant(p) and p.id not in kept_professionals
            ),
        }
        if clinic_id in state.backfilled_tenants:
            state.backfilled_tenants.remove(clinic_id)

        self.store.commit()
        if self.identity is not None:
            for uid in dropped_logins:
                self.identity.disable(uid)
        logger.warning(f"Tenant {clinic_id} data reset by {current_user.id}: {removed}")
        return ResetResult(tenant_id=clinic_id, removed=removed)

    async def get_users(self, clinic_id: str, current_user: User) -> List[User]:
        ensure_tenant_access(current_user, clinic_id)
        return self.store.state.users.filter(lambda u: u.tenant_id == clinic_id)

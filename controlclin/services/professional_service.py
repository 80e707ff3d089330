from typing import List, Optional

from controlclin.core.exceptions import NotFound, ValidationFailed
from controlclin.core.logger import logger
from controlclin.core.utils import normalize_email, utcnow
from controlclin.db.models import AppointmentStatus, Professional, Role, User
from controlclin.db.state import ClinicState
from controlclin.db.store import ClinicStore
from controlclin.schemas.professional import ProfessionalCreate, ProfessionalDeleteResult, ProfessionalUpdate
from controlclin.services.access import ensure_clinic_admin, ensure_tenant_access
from controlclin.services.identity_service import IdentityProvider


def ensure_email_available(state: ClinicState, tenant_id: str, email: str, exclude_user_id: Optional[str] = None) -> None:
    """Emails are unique among the users of one clinic."""
    wanted = normalize_email(email)
    for user in state.users:
        if user.tenant_id != tenant_id or user.id == exclude_user_id:
            continue
        if normalize_email(user.email) == wanted:
            raise ValidationFailed(f"Email {email} is already in use in this clinic")


class ProfessionalService:
    def __init__(self, store: ClinicStore, identity: Optional[IdentityProvider] = None):
        self.store = store
        self.identity = identity

    async def list_professionals(self, tenant_id: str, current_user: User, include_inactive: bool = False) -> List[Professional]:
        ensure_tenant_access(current_user, tenant_id)
        return self.store.state.professionals.filter(
            lambda p: p.tenant_id == tenant_id and (include_inactive or p.is_active)
        )

    async def get_professional(self, professional_id: str) -> Professional:
        professional = self.store.state.professionals.get(professional_id)
        if not professional:
            raise NotFound("Professional not found")
        return professional

    async def create_professional(self, tenant_id: str, data: ProfessionalCreate, current_user: User) -> Professional:
        ensure_clinic_admin(current_user, tenant_id)
        if not data.name.strip() or not data.email.strip():
            raise ValidationFailed("Name and email are required")
        if data.role not in (Role.PROFESSIONAL, Role.CLINIC_ADMIN):
            raise ValidationFailed(f"Professionals cannot have role {data.role.value}")
        state = self.store.state
        if not state.tenants.get(tenant_id):
            raise NotFound("Clinic not found")
        ensure_email_available(state, tenant_id, data.email)

        credential_ref = None
        if data.password:
            if self.identity is None:
                raise ValidationFailed("Logins cannot be created: no identity service configured")
            credential_ref = self.identity.register(data.email, data.password).uid

        user = User(tenant_id=tenant_id, role=data.role, name=data.name, email=normalize_email(data.email),
                    credential_ref=credential_ref)
        professional = Professional(
            tenant_id=tenant_id,
            user_id=user.id,
            **data.model_dump(exclude={"role", "password", "email"}),
            email=normalize_email(data.email),
        )
        user = user.model_copy(update={"professional_id": professional.id})

        state.users.add(user)
        state.professionals.add(professional)
        self.store.commit()
        logger.info(f"Professional {professional.id} created in tenant {tenant_id}")
        return professional

    async def update_professional(self, professional_id: str, data: ProfessionalUpdate, current_user: User) -> Professional:
        professional = await self.get_professional(professional_id)
        ensure_clinic_admin(current_user, professional.tenant_id)
        changes = data.model_dump(exclude_unset=True)
        state = self.store.state

        user = state.users.get(professional.user_id) if professional.user_id else None
        if "email" in changes:
            changes["email"] = normalize_email(changes["email"])
            ensure_email_available(state, professional.tenant_id, changes["email"],
                                   exclude_user_id=user.id if user else None)

        updated = state.professionals.update(professional_id, **changes)
        if user is not None:
            user_changes = {k: changes[k] for k in ("name", "email") if k in changes}
            if user_changes:
                state.users.update(user.id, **user_changes)
        self.store.commit()
        return updated

    async def deactivate_professional(self, professional_id: str, current_user: User) -> Professional:
        return await self.update_professional(professional_id, ProfessionalUpdate(is_active=False), current_user)

    async def delete_professional(self, professional_id: str, current_user: User) -> ProfessionalDeleteResult:
        """
        Hard delete. Future appointments are canceled, patients lose their
        assignment and the linked login user is removed.
        """
        professional = await self.get_professional(professional_id)
        ensure_clinic_admin(current_user, professional.tenant_id)
        state = self.store.state
        now = utcnow()

        cancelled = 0
        for appt in state.appointments.filter(
            lambda a: a.professional_id == professional_id
            and a.start_time > now
            and a.status not in (AppointmentStatus.CANCELED, AppointmentStatus.COMPLETED)
        ):
            state.appointments.update(appt.id, status=AppointmentStatus.CANCELED)
            cancelled += 1

        unassigned = 0
        for patient in state.patients.filter(lambda p: p.assigned_professional_id == professional_id):
            state.patients.update(patient.id, assigned_professional_id=None)
            unassigned += 1

        for user in state.users.filter(lambda u: u.professional_id == professional_id):
            state.users.remove(user.id)
            if user.credential_ref and self.identity is not None:
                self.identity.disable(user.credential_ref)

        state.professionals.remove(professional_id)
        self.store.commit()
        logger.info(f"Professional {professional_id} deleted: {cancelled} appointments canceled, {unassigned} patients unassigned")
        return ProfessionalDeleteResult(
            professional_id=professional_id,
            cancelled_appointments=cancelled,
            unassigned_patients=unassigned,
        )

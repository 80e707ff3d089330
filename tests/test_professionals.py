from datetime import timedelta

import pytest

from controlclin.core.exceptions import AuthenticationFailed, NotFound, PermissionDenied, ValidationFailed
from controlclin.core.utils import utcnow
from controlclin.db.models import Appointment, AppointmentStatus, Role
from controlclin.schemas.professional import ProfessionalCreate, ProfessionalUpdate
from controlclin.services.professional_service import ProfessionalService


@pytest.fixture
def service(store, identity):
    return ProfessionalService(store, identity)


class TestCreateProfessional:
    async def test_creates_profile_and_user(self, store, service, clinic_admin):
        professional = await service.create_professional(
            "c1", ProfessionalCreate(name="Dr. Ana Lima", email="Ana@Control.com", specialty="Endocrinology"),
            clinic_admin,
        )

        assert professional.email == "ana@control.com"
        user = store.state.users.get(professional.user_id)
        assert user.role == Role.PROFESSIONAL
        assert user.professional_id == professional.id
        assert user.credential_ref is None

    async def test_password_registers_a_login(self, store, service, identity, clinic_admin):
        professional = await service.create_professional(
            "c1", ProfessionalCreate(name="Dr. Ana Lima", email="ana@control.com", password="s3cret"), clinic_admin
        )
        credential = identity.sign_in("ana@control.com", "s3cret")
        assert store.state.users.get(professional.user_id).credential_ref == credential.uid

    async def test_duplicate_email(self, service, clinic_admin):
        with pytest.raises(ValidationFailed):
            await service.create_professional(
                "c1", ProfessionalCreate(name="Other", email="rangel@control.com"), clinic_admin
            )

    async def test_super_admin_role_is_rejected(self, service, clinic_admin):
        with pytest.raises(ValidationFailed):
            await service.create_professional(
                "c1", ProfessionalCreate(name="Root", email="x@control.com", role=Role.SUPER_ADMIN), clinic_admin
            )

    async def test_professionals_cannot_hire(self, service, professional):
        with pytest.raises(PermissionDenied):
            await service.create_professional("c1", ProfessionalCreate(name="A", email="a@b.com"), professional)


class TestUpdateProfessional:
    async def test_rename_reaches_the_user(self, store, service, clinic_admin):
        await service.update_professional("p2", ProfessionalUpdate(name="Dra. Camila Souza"), clinic_admin)
        assert store.state.users.get("u2").name == "Dra. Camila Souza"

    async def test_email_clash_on_update(self, service, clinic_admin):
        with pytest.raises(ValidationFailed):
            await service.update_professional("p2", ProfessionalUpdate(email="rangel@control.com"), clinic_admin)

    async def test_deactivated_are_hidden_by_default(self, service, clinic_admin):
        await service.deactivate_professional("p3", clinic_admin)
        active = await service.list_professionals("c1", clinic_admin)
        everyone = await service.list_professionals("c1", clinic_admin, include_inactive=True)
        assert "p3" not in [p.id for p in active]
        assert "p3" in [p.id for p in everyone]


class TestDeleteProfessional:
    async def test_cascade(self, store, service, identity, clinic_admin):
        credential = identity.register("camila@control.com", "s3cret")
        store.state.users.update("u2", credential_ref=credential.uid)
        store.state.patients.update("pt2", assigned_professional_id="p2")
        future = utcnow() + timedelta(days=7)
        past = utcnow() - timedelta(days=7)
        for start in (future, past):
            store.state.appointments.add(Appointment(
                tenant_id="c1", professional_id="p2", patient_id="pt2",
                start_time=start, end_time=start + timedelta(minutes=30),
            ))

        result = await service.delete_professional("p2", clinic_admin)

        assert result.cancelled_appointments == 1
        assert result.unassigned_patients == 1
        statuses = sorted(a.status.value for a in store.state.appointments)
        assert statuses == [AppointmentStatus.CANCELED.value, AppointmentStatus.SCHEDULED.value]
        assert store.state.patients.get("pt2").assigned_professional_id is None
        assert store.state.users.get("u2") is None
        with pytest.raises(AuthenticationFailed):
            identity.sign_in("camila@control.com", "s3cret")
        with pytest.raises(NotFound):
            await service.get_professional("p2")

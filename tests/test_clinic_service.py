from datetime import datetime, timedelta

import pytest

from controlclin.core.exceptions import AuthenticationFailed, PermissionDenied, ValidationFailed
from controlclin.db.models import Appointment, Role, ScheduleConfig
from controlclin.schemas.clinic import ClinicCreate, ClinicUpdate
from controlclin.schemas.professional import ProfessionalCreate
from controlclin.services.clinic_service import ClinicService, validate_schedule
from controlclin.services.professional_service import ProfessionalService


def _acme(**overrides) -> ClinicCreate:
    values = dict(name="Acme Health", admin_name="Ada Admin", admin_email="Ada@Acme.com")
    values.update(overrides)
    return ClinicCreate(**values)


class TestCreateClinic:
    async def test_creates_tenant_admin_and_login(self, store, identity, super_admin):
        created = await ClinicService(store, identity).create_clinic(_acme(), super_admin)

        assert created.clinic.slug == "acme-health"
        assert created.admin.role == Role.CLINIC_ADMIN
        assert created.admin.tenant_id == created.clinic.id
        assert created.admin_credentials.email == "ada@acme.com"
        assert len(created.admin_credentials.password) >= 8

        professional = store.state.professionals.get(created.admin.professional_id)
        assert professional.tenant_id == created.clinic.id
        assert identity.sign_in("ada@acme.com", created.admin_credentials.password).uid == \
            store.state.users.get(created.admin.id).credential_ref

    async def test_only_platform_admins(self, store, identity, clinic_admin):
        with pytest.raises(PermissionDenied):
            await ClinicService(store, identity).create_clinic(_acme(), clinic_admin)

    async def test_slug_must_be_unique(self, store, identity, super_admin):
        service = ClinicService(store, identity)
        await service.create_clinic(_acme(), super_admin)
        with pytest.raises(ValidationFailed):
            await service.create_clinic(_acme(admin_email="other@acme.com"), super_admin)


class TestDuplicateEmails:
    async def test_professional_email_is_unique_per_clinic(self, store, clinic_admin):
        service = ProfessionalService(store)
        with pytest.raises(ValidationFailed):
            await service.create_professional(
                "c1", ProfessionalCreate(name="Camila Twin", email="CAMILA@control.com"), clinic_admin
            )

    async def test_same_email_in_another_clinic_is_fine(self, store, identity, super_admin):
        created = await ClinicService(store, identity).create_clinic(
            _acme(admin_email="camila@control.com"), super_admin
        )
        assert created.admin.email == "camila@control.com"


class TestSettings:
    async def test_update_settings(self, store, clinic_admin):
        schedule = ScheduleConfig(open_time="07:00", close_time="19:00", days_open=[1, 2, 3, 4, 5, 6])
        updated = await ClinicService(store).update_settings(
            "c1", ClinicUpdate(phone="555-0101", schedule_config=schedule), clinic_admin
        )
        assert updated.phone == "555-0101"
        assert updated.schedule_config.days_open == [1, 2, 3, 4, 5, 6]
        assert store.local.load_all()["tenants"][0]["phone"] == "555-0101"

    async def test_professional_cannot_change_settings(self, store, professional):
        with pytest.raises(PermissionDenied):
            await ClinicService(store).update_settings("c1", ClinicUpdate(phone="1"), professional)

    @pytest.mark.parametrize("config", [
        ScheduleConfig(open_time="8:00", close_time="18:00"),
        ScheduleConfig(open_time="18:00", close_time="08:00"),
        ScheduleConfig(days_open=[7]),
        ScheduleConfig(slot_duration=0),
    ])
    def test_invalid_schedules(self, config):
        with pytest.raises(ValidationFailed):
            validate_schedule(config)


class TestResetTenantData:
    async def test_keeps_only_administrators(self, store, clinic_admin):
        start = datetime(2030, 3, 4, 10, 0)
        store.state.appointments.add(Appointment(
            tenant_id="c1", professional_id="p2", patient_id="pt2",
            start_time=start, end_time=start + timedelta(minutes=30),
        ))
        store.state.backfilled_tenants.append("c1")

        result = await ClinicService(store).reset_tenant_data("c1", clinic_admin)

        state = store.state
        assert result.removed["patients"] == 3
        assert result.removed["appointments"] == 1
        assert state.tenants.get("c1") is not None
        assert [u.id for u in state.users if u.tenant_id == "c1"] == ["u1"]
        assert [p.id for p in state.professionals] == ["p1"]
        assert state.users.get("u0") is not None
        assert "c1" not in state.backfilled_tenants
        assert store.local.load_all()["patients"] == []

    async def test_professional_cannot_reset(self, store, professional):
        with pytest.raises(PermissionDenied):
            await ClinicService(store).reset_tenant_data("c1", professional)

    async def test_removed_users_lose_their_login(self, store, identity, clinic_admin):
        staff = identity.register("camila@control.com", "s3cret")
        store.state.users.update("u2", credential_ref=staff.uid)
        admin = identity.register(clinic_admin.email, "adm1n")
        store.state.users.update("u1", credential_ref=admin.uid)

        await ClinicService(store, identity).reset_tenant_data("c1", clinic_admin)

        with pytest.raises(AuthenticationFailed):
            identity.sign_in("camila@control.com", "s3cret")
        assert identity.sign_in(clinic_admin.email, "adm1n").uid == admin.uid

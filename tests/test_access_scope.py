from datetime import datetime, timedelta

import pytest

from controlclin.core.exceptions import NotFound, PermissionDenied
from controlclin.db.models import Appointment, Patient, Role
from controlclin.services.access import (
    ADMIN_SCOPE,
    AccessMode,
    AccessScope,
    ensure_clinic_admin,
    ensure_tenant_access,
    scope_for_user,
)
from controlclin.services.appointment_service import AppointmentService
from controlclin.services.patient_service import PatientService

PROFESSIONAL_WITHOUT_ID = AccessScope(mode=AccessMode.PROFESSIONAL, professional_id=None)


def _book(store, patient_id: str, professional_id: str) -> Appointment:
    start = datetime(2026, 3, 2, 10, 0)
    return store.state.appointments.add(Appointment(
        tenant_id="c1", professional_id=professional_id, patient_id=patient_id,
        start_time=start, end_time=start + timedelta(minutes=30),
    ))


class TestScopeRules:
    def test_professional_role_is_pinned(self, professional):
        scope = scope_for_user(professional, AccessMode.ADMIN, "p1")
        assert scope.mode == AccessMode.PROFESSIONAL
        assert scope.professional_id == "p2"

    def test_admin_may_narrow(self, clinic_admin):
        scope = scope_for_user(clinic_admin, AccessMode.PROFESSIONAL, "p3")
        assert scope.professional_id == "p3"

    def test_professional_mode_without_id_denies_everything(self):
        assert PROFESSIONAL_WITHOUT_ID.denies_everything
        assert PROFESSIONAL_WITHOUT_ID.apply([1, 2, 3], owner=lambda _: "p1") == []
        assert not PROFESSIONAL_WITHOUT_ID.allows("p1")

    def test_tenant_isolation(self, clinic_admin, super_admin):
        with pytest.raises(PermissionDenied):
            ensure_tenant_access(clinic_admin, "other-clinic")
        ensure_tenant_access(super_admin, "other-clinic")

    def test_only_admins_manage_the_clinic(self, professional, clinic_admin):
        with pytest.raises(PermissionDenied):
            ensure_clinic_admin(professional, "c1")
        ensure_clinic_admin(clinic_admin, "c1")


class TestPrivacy:
    async def test_listings_are_empty_without_professional_id(self, store, clinic_admin):
        _book(store, "pt2", "p2")
        patients = PatientService(store)
        appointments = AppointmentService(store)

        assert await patients.list_patients("c1", clinic_admin, PROFESSIONAL_WITHOUT_ID) == []
        assert await appointments.list_appointments(
            "c1", datetime(2026, 1, 1), datetime(2026, 12, 31), clinic_admin, PROFESSIONAL_WITHOUT_ID
        ) == []
        assert await appointments.upcoming_appointments("c1", clinic_admin, PROFESSIONAL_WITHOUT_ID) == []
        assert await appointments.patient_history("pt2", clinic_admin, PROFESSIONAL_WITHOUT_ID) == []
        with pytest.raises(NotFound):
            await patients.get_patient("pt2", clinic_admin, PROFESSIONAL_WITHOUT_ID)

    async def test_professional_sees_assigned_and_treated_patients(self, store, professional):
        store.state.patients.add(Patient(id="pt-own", tenant_id="c1", name="Own", assigned_professional_id="p2"))
        _book(store, "pt2", "p2")
        scope = scope_for_user(professional)

        visible = await PatientService(store).list_patients("c1", professional, scope)
        assert {p.id for p in visible} == {"pt-own", "pt2"}

    async def test_foreign_patient_looks_missing(self, store, professional):
        scope = scope_for_user(professional)
        with pytest.raises(NotFound):
            await PatientService(store).get_patient("pt_meire", professional, scope)

    async def test_foreign_appointment_looks_missing(self, store, professional):
        appointment = _book(store, "pt2", "p3")
        with pytest.raises(NotFound):
            await AppointmentService(store).get_appointment(appointment.id, professional, scope_for_user(professional))

    async def test_admin_scope_sees_everything(self, store, clinic_admin):
        patients = await PatientService(store).list_patients("c1", clinic_admin, ADMIN_SCOPE)
        assert len(patients) == 3
        assert clinic_admin.role == Role.CLINIC_ADMIN

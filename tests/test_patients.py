from datetime import date, datetime, timedelta

import pytest

from controlclin.core.exceptions import NotFound, ValidationFailed
from controlclin.db.models import (
    Appointment,
    ClinicalHistory,
    ClinicalSummary,
    EventType,
    Exam,
    PlanStatus,
)
from controlclin.schemas.patient import (
    AnthropometryInput,
    NutritionalPlanUpsert,
    PatientCreate,
    PatientUpdate,
    TransactionCreate,
)
from controlclin.services.access import AccessMode, AccessScope
from controlclin.services.patient_service import PatientService

CAMILA = AccessScope(mode=AccessMode.PROFESSIONAL, professional_id="p2")


def _event_types(store, patient_id):
    return [e.type for e in store.state.events.filter(lambda e: e.patient_id == patient_id)]


class TestCreatePatient:
    async def test_professional_gets_the_patient_assigned(self, store, professional):
        patient = await PatientService(store).create_patient("c1", PatientCreate(name="Joana Lima"), professional)

        assert patient.assigned_professional_id == "p2"
        assert patient.tenant_id == "c1"
        assert EventType.CUSTOM in _event_types(store, patient.id)
        assert any(p["id"] == patient.id for p in store.local.load_all()["patients"])

    async def test_admin_keeps_patient_unassigned(self, store, clinic_admin):
        patient = await PatientService(store).create_patient("c1", PatientCreate(name="Joana Lima"), clinic_admin)
        assert patient.assigned_professional_id is None

    async def test_name_required(self, store, clinic_admin):
        with pytest.raises(ValidationFailed):
            await PatientService(store).create_patient("c1", PatientCreate(name="  "), clinic_admin)

    async def test_foreign_professional_rejected(self, store, clinic_admin):
        with pytest.raises(ValidationFailed):
            await PatientService(store).create_patient(
                "c1", PatientCreate(name="Joana", assigned_professional_id="p-elsewhere"), clinic_admin
            )


class TestUpdatePatient:
    async def test_each_kind_of_change_is_logged(self, store, clinic_admin):
        await PatientService(store).update_patient("pt2", PatientUpdate(
            phone="555",
            clinical_summary=ClinicalSummary(clinical_goal="Gain lean mass"),
            clinical_history=ClinicalHistory(medications=["Metformin"]),
        ), clinic_admin)

        types = _event_types(store, "pt2")
        assert EventType.PATIENT_UPDATED in types
        assert EventType.DIAGNOSIS_UPDATED in types
        assert EventType.MEDICATION_UPDATED in types
        assert store.state.patients.get("pt2").phone == "555"

    async def test_same_medications_are_not_logged_again(self, store, clinic_admin):
        service = PatientService(store)
        history = ClinicalHistory(medications=["Metformin"])
        await service.update_patient("pt2", PatientUpdate(clinical_history=history), clinic_admin)
        await service.update_patient("pt2", PatientUpdate(clinical_history=history), clinic_admin)
        assert _event_types(store, "pt2").count(EventType.MEDICATION_UPDATED) == 1

    async def test_invisible_patient_reads_as_missing(self, store, clinic_admin):
        with pytest.raises(NotFound):
            await PatientService(store).update_patient("pt1", PatientUpdate(phone="1"), clinic_admin, CAMILA)


class TestAnthropometry:
    async def test_latest_record_becomes_current(self, store, clinic_admin):
        service = PatientService(store)
        updated = await service.record_anthropometry(
            "pt_meire", AnthropometryInput(weight=70, height=1.65, recorded_at=date(2026, 5, 1)), clinic_admin
        )

        assert [r.recorded_at for r in updated.anthropometry_history][-1] == date(2026, 5, 1)
        assert updated.anthropometry.weight == 70
        assert updated.anthropometry.bmi == pytest.approx(25.7, abs=0.05)
        assert EventType.ANTHRO_RECORDED in _event_types(store, "pt_meire")

    async def test_backdated_record_keeps_current_values(self, store, clinic_admin):
        updated = await PatientService(store).record_anthropometry(
            "pt_meire", AnthropometryInput(weight=80, height=1.62, recorded_at=date(2025, 1, 1)), clinic_admin
        )
        assert updated.anthropometry_history[0].recorded_at == date(2025, 1, 1)
        assert len(updated.anthropometry_history) == 4
        assert updated.anthropometry.weight == 72.6

    async def test_weight_and_height_required(self, store, clinic_admin):
        with pytest.raises(ValidationFailed):
            await PatientService(store).record_anthropometry("pt2", AnthropometryInput(weight=60), clinic_admin)


class TestPlans:
    async def test_single_active_plan(self, store, clinic_admin):
        service = PatientService(store)
        saved = await service.upsert_plan("pt1", NutritionalPlanUpsert(title="Second strategy", caloric_target=2000),
                                          clinic_admin)

        plans = {p.id: p for p in store.state.patients.get("pt1").nutritional_plans}
        assert plans["plan-pt1-v1"].status == PlanStatus.FINISHED
        assert plans[saved.id].status == PlanStatus.ACTIVE
        assert (await service.get_active_plan("pt1", clinic_admin)).id == saved.id
        assert EventType.PLAN_CREATED in _event_types(store, "pt1")

    async def test_update_existing_plan(self, store, clinic_admin):
        saved = await PatientService(store).upsert_plan(
            "pt1", NutritionalPlanUpsert(id="plan-pt1-v1", title="Initial strategy, revised"), clinic_admin
        )
        assert saved.id == "plan-pt1-v1"
        assert len(store.state.patients.get("pt1").nutritional_plans) == 1
        assert EventType.PLAN_UPDATED in _event_types(store, "pt1")

    async def test_paused_plan_does_not_demote_active(self, store, clinic_admin):
        await PatientService(store).upsert_plan(
            "pt1", NutritionalPlanUpsert(title="On hold", status=PlanStatus.PAUSED), clinic_admin
        )
        active = [p for p in store.state.patients.get("pt1").nutritional_plans if p.status == PlanStatus.ACTIVE]
        assert [p.id for p in active] == ["plan-pt1-v1"]

    async def test_no_plans(self, store, clinic_admin):
        assert await PatientService(store).get_active_plan("pt2", clinic_admin) is None


class TestNotesAndPayments:
    async def test_notes_are_newest_first(self, store, clinic_admin):
        service = PatientService(store)
        await service.add_clinical_note("pt2", "First visit", clinic_admin)
        await service.add_clinical_note("pt2", "Second visit", clinic_admin)

        notes = store.state.patients.get("pt2").clinical_notes
        assert [n.content for n in notes] == ["Second visit", "First visit"]
        assert notes[0].author_name == clinic_admin.name

    async def test_positive_amount_required(self, store, clinic_admin):
        with pytest.raises(ValidationFailed):
            await PatientService(store).add_transaction(
                "pt2", TransactionCreate(description="Refund", amount=0), clinic_admin
            )


class TestDeletePatient:
    async def test_cascade(self, store, clinic_admin):
        start = datetime(2030, 3, 4, 10, 0)
        store.state.appointments.add(Appointment(
            tenant_id="c1", professional_id="p2", patient_id="pt2",
            start_time=start, end_time=start + timedelta(minutes=30),
        ))
        store.state.exams.add(Exam(tenant_id="c1", patient_id="pt2", exam_date=date(2026, 1, 1),
                                   name="CBC", clinical_reason="Routine"))

        removed = await PatientService(store).delete_patient("pt2", clinic_admin)

        assert removed["appointments"] == 1
        assert removed["exams"] == 1
        assert store.state.patients.get("pt2") is None
        assert not store.state.appointments.filter(lambda a: a.patient_id == "pt2")
        assert all(p["id"] != "pt2" for p in store.local.load_all()["patients"])

from typing import List, Optional

from controlclin.core.exceptions import NotFound, ValidationFailed
from controlclin.core.logger import logger
from controlclin.core.utils import calculate_age, utcnow
from controlclin.db.models import (
    AnthropometryRecord,
    ClinicalNote,
    EventType,
    FinancialTransaction,
    NutritionalPlan,
    Patient,
    PlanStatus,
    Role,
    User,
)
from controlclin.db.store import ClinicStore
from controlclin.schemas.patient import (
    AnthropometryInput,
    NutritionalPlanUpsert,
    PatientCreate,
    PatientUpdate,
    TransactionCreate,
)
from controlclin.services import body_composition
from controlclin.services.access import ADMIN_SCOPE, AccessScope, ensure_tenant_access
from controlclin.services.event_service import EventService


class PatientService:
    def __init__(self, store: ClinicStore):
        self.store = store
        self.events = EventService(store)

    def visible_patients(self, tenant_id: str, scope: AccessScope) -> List[Patient]:
        """
        Patients of the tenant the scope may see. A professional sees the
        patients assigned to them and the ones they have appointments with.
        """
        if scope.denies_everything:
            return []
        state = self.store.state
        patients = state.patients.filter(lambda p: p.tenant_id == tenant_id)
        if not scope.professional_id:
            return patients
        treated = {
            a.patient_id for a in state.appointments
            if a.professional_id == scope.professional_id
        }
        return [
            p for p in patients
            if p.assigned_professional_id == scope.professional_id or p.id in treated
        ]

    def can_see(self, patient: Patient, scope: AccessScope) -> bool:
        return any(p.id == patient.id for p in self.visible_patients(patient.tenant_id, scope))

    async def list_patients(self, tenant_id: str, current_user: User, scope: AccessScope = ADMIN_SCOPE) -> List[Patient]:
        ensure_tenant_access(current_user, tenant_id)
        return sorted(self.visible_patients(tenant_id, scope), key=lambda p: p.name.lower())

    async def get_patient(self, patient_id: str, current_user: User, scope: AccessScope = ADMIN_SCOPE) -> Patient:
        patient = self.store.state.patients.get(patient_id)
        if not patient:
            raise NotFound("Patient not found")
        ensure_tenant_access(current_user, patient.tenant_id)
        if not self.can_see(patient, scope):
            # Same answer as a missing record
            raise NotFound("Patient not found")
        return patient

    async def create_patient(self, tenant_id: str, data: PatientCreate, current_user: User) -> Patient:
        ensure_tenant_access(current_user, tenant_id)
        if not data.name.strip():
            raise ValidationFailed("Patient name is required")
        state = self.store.state
        if not state.tenants.get(tenant_id):
            raise NotFound("Clinic not found")

        values = data.model_dump(exclude_none=True)
        if current_user.role == Role.PROFESSIONAL and not data.assigned_professional_id:
            values["assigned_professional_id"] = current_user.professional_id
        self._check_professional(tenant_id, values.get("assigned_professional_id"))

        patient = Patient.model_validate({**values, "tenant_id": tenant_id})
        state.patients.add(patient)
        self.events.log_event(patient.id, EventType.CUSTOM, {"action": "CREATED"}, "Patient created", current_user)
        self.store.commit()
        logger.info(f"Patient {patient.id} created in tenant {tenant_id}")
        return patient

    async def update_patient(self, patient_id: str, data: PatientUpdate, current_user: User,
                             scope: AccessScope = ADMIN_SCOPE) -> Patient:
        patient = await self.get_patient(patient_id, current_user, scope)
        changes = data.model_dump(exclude_unset=True)
        if "name" in changes and not (changes["name"] or "").strip():
            raise ValidationFailed("Patient name is required")
        if "assigned_professional_id" in changes:
            self._check_professional(patient.tenant_id, changes["assigned_professional_id"])

        if data.anthropometry is not None:
            gender = data.gender or patient.gender
            age = calculate_age(data.birth_date or patient.birth_date)
            changes["anthropometry"] = body_composition.apply(data.anthropometry, gender, age).model_dump()

        updated = self.store.state.patients.update(patient_id, **changes)

        if "anthropometry" in changes:
            self.events.log_event(patient_id, EventType.ANTHRO_RECORDED, {"bmi": updated.anthropometry.bmi},
                                  "Anthropometric measurements updated", current_user)
        if "clinical_summary" in changes:
            self.events.log_event(patient_id, EventType.DIAGNOSIS_UPDATED, {}, "Clinical summary updated", current_user)
        if "clinical_history" in changes and self._medications(patient) != self._medications(updated):
            self.events.log_event(patient_id, EventType.MEDICATION_UPDATED,
                                  {"medications": self._medications(updated)}, "Medications updated", current_user)
        plain = set(changes) - {"anthropometry", "clinical_summary", "clinical_history"}
        if plain:
            self.events.log_event(patient_id, EventType.PATIENT_UPDATED, {"fields": sorted(plain)},
                                  "Patient record updated", current_user)

        self.store.commit()
        return updated

    async def delete_patient(self, patient_id: str, current_user: User, scope: AccessScope = ADMIN_SCOPE) -> dict:
        patient = await self.get_patient(patient_id, current_user, scope)
        state = self.store.state
        owned = lambda record: record.patient_id == patient.id
        removed = {
            "appointments": state.appointments.remove_where(owned),
            "exams": state.exams.remove_where(owned),
            "alerts": state.alerts.remove_where(owned),
            "events": state.events.remove_where(owned),
            "examRequests": state.exam_requests.remove_where(owned),
            "assessments": state.assessments.remove_where(owned),
            "prescriptions": state.prescriptions.remove_where(owned),
        }
        state.patients.remove(patient.id)
        self.store.commit()
        logger.info(f"Patient {patient.id} deleted with {removed}")
        return removed

    async def record_anthropometry(self, patient_id: str, data: AnthropometryInput, current_user: User,
                                   scope: AccessScope = ADMIN_SCOPE) -> Patient:
        """Compute body composition, append it to the history and make it current when it is the latest."""
        patient = await self.get_patient(patient_id, current_user, scope)
        if not data.weight or not data.height:
            raise ValidationFailed("Weight and height are required")
        recorded_at = data.recorded_at or utcnow().date()
        measured = body_composition.apply(
            data, patient.gender, calculate_age(patient.birth_date, recorded_at)
        )
        values = measured.model_dump(exclude={"recorded_at"})
        record = AnthropometryRecord(recorded_at=recorded_at, **values)

        history = sorted([*patient.anthropometry_history, record], key=lambda r: r.recorded_at)
        changes = {"anthropometry_history": [r.model_dump() for r in history]}
        if history[-1] is record:
            changes["anthropometry"] = values

        updated = self.store.state.patients.update(patient_id, **changes)
        self.events.log_event(
            patient_id, EventType.ANTHRO_RECORDED,
            {"recorded_at": recorded_at.isoformat(), "weight": record.weight, "bmi": record.bmi,
             "body_fat_percentage": record.body_fat_percentage},
            f"Anthropometry recorded: {record.weight} kg", current_user,
        )
        self.store.commit()
        return updated

    async def add_transaction(self, patient_id: str, data: TransactionCreate, current_user: User,
                              commit: bool = True) -> FinancialTransaction:
        patient = self.store.state.patients.get(patient_id)
        if not patient:
            raise NotFound("Patient not found")
        ensure_tenant_access(current_user, patient.tenant_id)
        if data.amount <= 0:
            raise ValidationFailed("Transaction amount must be positive")

        values = data.model_dump(exclude_none=True)
        values.setdefault("occurred_on", utcnow().date())
        transaction = FinancialTransaction(**values)
        financial = patient.financial.model_copy(
            update={"transactions": [*patient.financial.transactions, transaction]}
        )
        self.store.state.patients.update(patient_id, financial=financial.model_dump())
        payload = {"amount": transaction.amount, "status": transaction.status.value}
        if transaction.appointment_id:
            payload["appointment_id"] = transaction.appointment_id
        self.events.log_event(patient_id, EventType.PAYMENT_RECORDED, payload,
                              f"Payment recorded: {transaction.amount:.2f}", current_user)
        if commit:
            self.store.commit()
        return transaction

    async def add_clinical_note(self, patient_id: str, content: str, current_user: User,
                                scope: AccessScope = ADMIN_SCOPE) -> ClinicalNote:
        patient = await self.get_patient(patient_id, current_user, scope)
        if not content.strip():
            raise ValidationFailed("Note content is required")
        note = ClinicalNote(author_name=current_user.name, content=content)
        notes = [note, *patient.clinical_notes]
        self.store.state.patients.update(patient_id, clinical_notes=[n.model_dump() for n in notes])
        self.events.log_event(patient_id, EventType.NOTE_ADDED, {"note_id": note.id},
                              "New clinical note", current_user)
        self.store.commit()
        return note

    async def list_plans(self, patient_id: str, current_user: User, scope: AccessScope = ADMIN_SCOPE) -> List[NutritionalPlan]:
        patient = await self.get_patient(patient_id, current_user, scope)
        return sorted(patient.nutritional_plans, key=lambda p: p.updated_at or p.created_at, reverse=True)

    async def upsert_plan(self, patient_id: str, data: NutritionalPlanUpsert, current_user: User,
                          scope: AccessScope = ADMIN_SCOPE) -> NutritionalPlan:
        """Create or update a plan. Saving an ACTIVE plan finishes every other active one."""
        patient = await self.get_patient(patient_id, current_user, scope)
        now = utcnow()
        plans = list(patient.nutritional_plans)
        existing = next((i for i, p in enumerate(plans) if data.id and p.id == data.id), None)

        values = data.model_dump(exclude={"id"})
        if existing is not None:
            saved = NutritionalPlan.model_validate({**plans[existing].model_dump(), **values, "updated_at": now})
            plans[existing] = saved
            event, summary = EventType.PLAN_UPDATED, "Nutritional plan updated"
        else:
            values["title"] = values.get("title") or f"Plan {now.date().isoformat()}"
            extra = {"id": data.id} if data.id else {}
            saved = NutritionalPlan(**values, **extra, author_id=current_user.professional_id,
                                    created_at=now, updated_at=now)
            plans.append(saved)
            event, summary = EventType.PLAN_CREATED, "New nutritional plan created"

        if saved.status == PlanStatus.ACTIVE:
            plans = [
                p.model_copy(update={"status": PlanStatus.FINISHED})
                if p.id != saved.id and p.status == PlanStatus.ACTIVE else p
                for p in plans
            ]

        self.store.state.patients.update(patient_id, nutritional_plans=[p.model_dump() for p in plans])
        self.events.log_event(patient_id, event, {"plan_id": saved.id, "title": saved.title}, summary, current_user)
        self.store.commit()
        return saved

    async def get_active_plan(self, patient_id: str, current_user: User,
                              scope: AccessScope = ADMIN_SCOPE) -> Optional[NutritionalPlan]:
        """The ACTIVE plan, or the most recently added one when none is active."""
        patient = await self.get_patient(patient_id, current_user, scope)
        if not patient.nutritional_plans:
            return None
        for plan in patient.nutritional_plans:
            if plan.status == PlanStatus.ACTIVE:
                return plan
        return patient.nutritional_plans[-1]

    def _check_professional(self, tenant_id: str, professional_id: Optional[str]) -> None:
        if not professional_id:
            return
        professional = self.store.state.professionals.get(professional_id)
        if not professional or professional.tenant_id != tenant_id:
            raise ValidationFailed("Assigned professional does not belong to this clinic")

    @staticmethod
    def _medications(patient: Patient) -> List[str]:
        return list(patient.clinical_history.medications) if patient.clinical_history else []

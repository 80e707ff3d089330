from datetime import datetime
from typing import Optional

from controlclin.core.utils import utcnow
from controlclin.db.models import AppointmentStatus, FinancialStatus, User
from controlclin.db.store import ClinicStore
from controlclin.schemas.report import (
    IndividualReport,
    ReportAnthropometry,
    ReportClinical,
    ReportFinancial,
    ReportMetrics,
    ReportNutritional,
)
from controlclin.services import body_composition
from controlclin.services.access import ADMIN_SCOPE, AccessScope
from controlclin.services.appointment_service import AppointmentService
from controlclin.services.event_service import EventService
from controlclin.services.patient_service import PatientService

TIMELINE_LIMIT = 50


class ReportService:
    def __init__(self, store: ClinicStore):
        self.store = store
        self.patients = PatientService(store)
        self.appointments = AppointmentService(store)
        self.events = EventService(store)

    async def build_individual_report(self, patient_id: str, current_user: User,
                                      scope: AccessScope = ADMIN_SCOPE,
                                      now: Optional[datetime] = None) -> IndividualReport:
        now = now or utcnow()
        patient = await self.patients.get_patient(patient_id, current_user, scope)
        timeline = await self.events.list_events(patient_id)
        appointments = await self.appointments.patient_history(patient_id, current_user, scope)

        # Metrics
        attended = sum(
            1 for a in appointments
            if a.status in (AppointmentStatus.COMPLETED, AppointmentStatus.CONFIRMED)
        )
        upcoming = sorted(
            (a for a in appointments if a.start_time > now and a.status != AppointmentStatus.CANCELED),
            key=lambda a: a.start_time,
        )
        patient_since = timeline[-1].created_at.date() if timeline else patient.created_at.date()
        metrics = ReportMetrics(
            patient_since=patient_since,
            total_appointments=len(appointments),
            attendance_rate=round(attended / len(appointments) * 100) if appointments else 0,
            next_appointment_at=upcoming[0].start_time if upcoming else None,
        )

        # Anthropometry
        snapshot, warnings = body_composition.snapshot_for_patient(patient, now.date())
        anthropometry = ReportAnthropometry(
            current=snapshot,
            history=patient.anthropometry_history,
            has_sufficient_data=snapshot is not None,
            warnings=warnings,
        )

        # Clinical context
        history = patient.clinical_history
        clinical = ReportClinical(
            active_diagnoses=patient.clinical_summary.active_diagnoses if patient.clinical_summary else [],
            medications=history.medications if history else [],
            anamnesis_summary=". ".join(
                part for part in (
                    ", ".join(history.pathologies) if history else "",
                    history.habits if history else "",
                    history.symptoms if history else "",
                ) if part
            ),
            notes=patient.clinical_notes,
        )

        # Nutrition
        plan = await self.patients.get_active_plan(patient_id, current_user, scope)
        nutritional = ReportNutritional(
            active_plan_title=plan.title if plan else None,
            targets={
                "kcal": plan.caloric_target,
                "protein_g": plan.macro_targets.protein_g,
                "carbs_g": plan.macro_targets.carbs_g,
                "fat_g": plan.macro_targets.fat_g,
            } if plan else None,
        )

        # Financial
        transactions = patient.financial.transactions
        financial = ReportFinancial(
            total_paid=sum(t.amount for t in transactions if t.status == FinancialStatus.PAID),
            total_pending=sum(
                t.amount for t in transactions
                if t.status in (FinancialStatus.PENDING, FinancialStatus.AWAITING_AUTHORIZATION)
            ),
            mode=patient.financial.mode,
        )

        exams = sorted(
            self.store.state.exams.filter(lambda e: e.patient_id == patient_id),
            key=lambda e: e.exam_date,
            reverse=True,
        )

        return IndividualReport(
            patient=patient,
            metrics=metrics,
            anthropometry=anthropometry,
            clinical=clinical,
            exams=exams,
            nutritional=nutritional,
            financial=financial,
            timeline=timeline[:TIMELINE_LIMIT],
            generated_at=now,
        )

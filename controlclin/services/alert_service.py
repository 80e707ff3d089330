from datetime import datetime
from typing import List, Optional

from controlclin.core.exceptions import NotFound
from controlclin.core.logger import logger
from controlclin.core.utils import utcnow
from controlclin.db.models import (
    AlertSeverity,
    AlertStatus,
    AlertType,
    AppointmentStatus,
    ClinicalAlert,
    Patient,
    PatientStatus,
    User,
)
from controlclin.db.store import ClinicStore
from controlclin.services.access import ADMIN_SCOPE, AccessScope, ensure_tenant_access
from controlclin.services.patient_service import PatientService

ANTHROPOMETRY_OVERDUE_DAYS = 30
RETURN_OVERDUE_DAYS = 45
EXAM_ATTENTION_DAYS = 15


class AlertService:
    def __init__(self, store: ClinicStore):
        self.store = store
        self.patients = PatientService(store)

    async def list_alerts(self, tenant_id: str, current_user: User, scope: AccessScope = ADMIN_SCOPE,
                          patient_id: Optional[str] = None) -> List[ClinicalAlert]:
        ensure_tenant_access(current_user, tenant_id)
        visible = {p.id for p in self.patients.visible_patients(tenant_id, scope)}
        alerts = self.store.state.alerts.filter(
            lambda a: a.tenant_id == tenant_id
            and a.status == AlertStatus.ACTIVE
            and a.patient_id in visible
            and (patient_id is None or a.patient_id == patient_id)
        )
        return sorted(alerts, key=lambda a: a.created_at, reverse=True)

    async def generate_alerts(self, tenant_id: str, current_user: User, now: Optional[datetime] = None) -> int:
        """
        Evaluate the alert rules for every active patient of the tenant.
        Idempotent: a rule never fires while an ACTIVE alert of its type
        exists for the patient. Returns the number of new alerts.
        """
        ensure_tenant_access(current_user, tenant_id)
        now = now or utcnow()
        state = self.store.state
        created = 0

        for patient in state.patients.filter(lambda p: p.tenant_id == tenant_id and p.status == PatientStatus.ACTIVE):
            for alert_type, severity, description in self._evaluate(patient, now):
                if self._has_active(patient.id, alert_type):
                    continue
                state.alerts.add(ClinicalAlert(
                    tenant_id=tenant_id,
                    patient_id=patient.id,
                    patient_name=patient.name,
                    type=alert_type,
                    severity=severity,
                    description=description,
                    created_at=now,
                ))
                created += 1

        if created:
            self.store.commit()
            logger.info(f"Generated {created} clinical alerts for tenant {tenant_id}")
        return created

    async def resolve_alert(self, alert_id: str, current_user: User, notes: Optional[str] = None) -> ClinicalAlert:
        alert = self.store.state.alerts.get(alert_id)
        if not alert:
            raise NotFound("Alert not found")
        ensure_tenant_access(current_user, alert.tenant_id)
        resolved = self.store.state.alerts.update(
            alert_id,
            status=AlertStatus.RESOLVED,
            resolved_at=utcnow(),
            resolved_by=current_user.name,
            resolution_notes=notes,
        )
        self.store.commit()
        return resolved

    def _has_active(self, patient_id: str, alert_type: AlertType) -> bool:
        return self.store.state.alerts.first(
            lambda a: a.patient_id == patient_id and a.type == alert_type and a.status == AlertStatus.ACTIVE
        ) is not None

    def _evaluate(self, patient: Patient, now: datetime):
        state = self.store.state
        today = now.date()

        if patient.anthropometry_history:
            last = max(r.recorded_at for r in patient.anthropometry_history)
            days = (today - last).days
            if days > ANTHROPOMETRY_OVERDUE_DAYS:
                yield (AlertType.ANTHROPOMETRY_OVERDUE, AlertSeverity.MEDIUM,
                       f"No anthropometric assessment for {days} days (last on {last.isoformat()}).")

        appointments = state.appointments.filter(
            lambda a: a.patient_id == patient.id and a.status != AppointmentStatus.CANCELED
        )
        past = [a for a in appointments if a.start_time < now]
        future = [a for a in appointments if a.start_time >= now]
        if past and not future:
            last_visit = max(a.start_time for a in past)
            days = (today - last_visit.date()).days
            if days > RETURN_OVERDUE_DAYS:
                yield (AlertType.RETURN_OVERDUE, AlertSeverity.HIGH,
                       f"Last visit {days} days ago and no return scheduled.")

        exams = state.exams.filter(lambda e: e.patient_id == patient.id)
        if exams:
            latest = max(exams, key=lambda e: e.exam_date)
            age = (today - latest.exam_date).days
            seen_since = any(
                latest.exam_date < a.start_time.date() and a.start_time <= now
                and a.status != AppointmentStatus.MISSED
                for a in appointments
            )
            if 0 <= age < EXAM_ATTENTION_DAYS and not seen_since:
                yield (AlertType.EXAM_ATTENTION, AlertSeverity.MEDIUM,
                       f"New exam '{latest.name}' from {latest.exam_date.isoformat()} not yet reviewed in a visit.")

from datetime import datetime, time
from typing import Any, Dict, List, Optional

from controlclin.core.logger import logger
from controlclin.db.models import EventActor, EventType, PatientEvent, User
from controlclin.db.store import ClinicStore


def actor_from_user(user: Optional[User]) -> Optional[EventActor]:
    if user is None:
        return None
    return EventActor(user_id=user.id, name=user.name, role=user.role.value)


class EventService:
    def __init__(self, store: ClinicStore):
        self.store = store

    def log_event(
        self,
        patient_id: str,
        event_type: EventType,
        payload: Optional[Dict[str, Any]] = None,
        summary: Optional[str] = None,
        actor: Optional[User] = None,
        commit: bool = False,
    ) -> Optional[PatientEvent]:
        """
        Append an audit event for a patient. Failures are logged and never
        reach the caller. With ``commit=False`` the event rides on the
        caller's own commit.
        """
        try:
            patient = self.store.state.patients.get(patient_id)
            event = PatientEvent(
                tenant_id=patient.tenant_id if patient else None,
                patient_id=patient_id,
                type=event_type,
                payload=payload or {},
                summary=summary,
                created_by=actor_from_user(actor),
            )
            self.store.state.events.add(event)
            if commit:
                self.store.commit()
            return event
        except Exception:
            logger.exception(f"Failed to log {event_type} event for patient {patient_id}")
            return None

    async def list_events(self, patient_id: str) -> List[PatientEvent]:
        events = self.store.state.events.filter(lambda e: e.patient_id == patient_id)
        return sorted(events, key=lambda e: e.created_at, reverse=True)

    async def run_backfill(self, tenant_id: str) -> int:
        """
        One-time migration: synthesize history for every patient of the tenant
        that has no events yet, then record the tenant as done. Returns the
        number of events created.
        """
        state = self.store.state
        if tenant_id in state.backfilled_tenants:
            return 0

        with_events = {e.patient_id for e in state.events}
        created = 0
        for patient in state.patients.filter(lambda p: p.tenant_id == tenant_id):
            if patient.id in with_events:
                continue
            for event in self._synthesize(patient):
                state.events.add(event)
                created += 1

        state.backfilled_tenants.append(tenant_id)
        self.store.commit()
        logger.info(f"Backfilled {created} events for tenant {tenant_id}")
        return created

    def _synthesize(self, patient) -> List[PatientEvent]:
        state = self.store.state
        events = [
            PatientEvent(
                id=f"bkf-init-{patient.id}",
                tenant_id=patient.tenant_id,
                patient_id=patient.id,
                type=EventType.BACKFILL_INIT,
                summary="Patient record created",
                payload={"name": patient.name},
                created_at=patient.created_at,
            )
        ]

        for appt in state.appointments.filter(lambda a: a.patient_id == patient.id):
            events.append(PatientEvent(
                id=f"bkf-appt-{appt.id}",
                tenant_id=patient.tenant_id,
                patient_id=patient.id,
                type=EventType.APPOINTMENT_STATUS,
                summary=f"Appointment {appt.status.value.lower()}",
                payload={"appointment_id": appt.id, "status": appt.status.value},
                created_at=appt.start_time,
            ))

        for exam in state.exams.filter(lambda e: e.patient_id == patient.id):
            events.append(PatientEvent(
                id=f"bkf-exam-{exam.id}",
                tenant_id=patient.tenant_id,
                patient_id=patient.id,
                type=EventType.EXAM_UPLOADED,
                summary=f"Exam uploaded: {exam.name}",
                payload={"exam_id": exam.id},
                created_at=datetime.combine(exam.exam_date, time()),
            ))

        for idx, record in enumerate(patient.anthropometry_history):
            events.append(PatientEvent(
                id=f"bkf-anthro-{patient.id}-{idx}",
                tenant_id=patient.tenant_id,
                patient_id=patient.id,
                type=EventType.ANTHRO_RECORDED,
                summary=f"Anthropometry recorded: {record.weight} kg",
                payload={"weight": record.weight, "bmi": record.bmi,
                         "body_fat_percentage": record.body_fat_percentage},
                created_at=datetime.combine(record.recorded_at, time()),
            ))

        for note in patient.clinical_notes:
            events.append(PatientEvent(
                id=f"bkf-note-{note.id}",
                tenant_id=patient.tenant_id,
                patient_id=patient.id,
                type=EventType.NOTE_ADDED,
                summary=f"Clinical note by {note.author_name}",
                payload={"note_id": note.id},
                created_at=note.created_at,
            ))
        return events

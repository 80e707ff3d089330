"""
The full in-memory state of the data-access core and its persisted shape.

The persisted payload is a single JSON object with one array per entity type,
the ``lastModified`` epoch-millisecond stamp used by reconciliation, and the
list of tenants whose audit-log backfill already ran.
"""
from typing import Any, Dict, List, Optional

from controlclin.db.collections import EntityCollection
from controlclin.db.models import (
    Appointment,
    Assessment,
    Clinic,
    ClinicalAlert,
    Exam,
    ExamRequest,
    Patient,
    PatientEvent,
    Prescription,
    Professional,
    User,
)

# payload key -> (attribute, model)
COLLECTIONS = {
    "tenants": ("tenants", Clinic),
    "users": ("users", User),
    "professionals": ("professionals", Professional),
    "patients": ("patients", Patient),
    "appointments": ("appointments", Appointment),
    "exams": ("exams", Exam),
    "alerts": ("alerts", ClinicalAlert),
    "events": ("events", PatientEvent),
    "examRequests": ("exam_requests", ExamRequest),
    "assessments": ("assessments", Assessment),
    "prescriptions": ("prescriptions", Prescription),
}


class ClinicState:
    def __init__(self):
        self.tenants: EntityCollection[Clinic] = EntityCollection("tenants", Clinic)
        self.users: EntityCollection[User] = EntityCollection("users", User)
        self.professionals: EntityCollection[Professional] = EntityCollection("professionals", Professional)
        self.patients: EntityCollection[Patient] = EntityCollection("patients", Patient)
        self.appointments: EntityCollection[Appointment] = EntityCollection("appointments", Appointment)
        self.exams: EntityCollection[Exam] = EntityCollection("exams", Exam)
        self.alerts: EntityCollection[ClinicalAlert] = EntityCollection("alerts", ClinicalAlert)
        self.events: EntityCollection[PatientEvent] = EntityCollection("events", PatientEvent)
        self.exam_requests: EntityCollection[ExamRequest] = EntityCollection("examRequests", ExamRequest)
        self.assessments: EntityCollection[Assessment] = EntityCollection("assessments", Assessment)
        self.prescriptions: EntityCollection[Prescription] = EntityCollection("prescriptions", Prescription)
        self.last_modified: Optional[int] = None
        self.backfilled_tenants: List[str] = []

    def collections(self) -> List[EntityCollection]:
        return [getattr(self, attr) for attr, _ in COLLECTIONS.values()]

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            key: getattr(self, attr).dump() for key, (attr, _) in COLLECTIONS.items()
        }
        payload["lastModified"] = self.last_modified
        payload["backfilledTenants"] = list(self.backfilled_tenants)
        return payload

    def load_payload(self, payload: Dict[str, Any]) -> None:
        """Replace every collection with the payload's content, in place.

        Collection objects are kept so existing subscribers stay attached.
        """
        for key, (attr, _) in COLLECTIONS.items():
            getattr(self, attr).load(payload.get(key) or [])
        self.last_modified = payload.get("lastModified")
        self.backfilled_tenants = list(payload.get("backfilledTenants") or [])

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ClinicState":
        state = cls()
        state.load_payload(payload)
        return state

    def is_fresh_seed(self, seed_patient_count: int) -> bool:
        return len(self.patients) <= seed_patient_count and len(self.appointments) == 0

    @staticmethod
    def payload_is_fresh_seed(payload: Dict[str, Any], seed_patient_count: int) -> bool:
        patients = payload.get("patients") or []
        appointments = payload.get("appointments") or []
        return len(patients) <= seed_patient_count and len(appointments) == 0

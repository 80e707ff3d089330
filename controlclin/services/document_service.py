from typing import List, Type, TypeVar

from controlclin.core.exceptions import NotFound, ValidationFailed
from controlclin.db.collections import EntityCollection
from controlclin.db.models import Assessment, EventType, ExamRequest, Prescription, User
from controlclin.db.store import ClinicStore
from controlclin.schemas.document import AssessmentCreate, ExamRequestCreate, PrescriptionCreate
from controlclin.services.access import ADMIN_SCOPE, AccessScope
from controlclin.services.event_service import EventService
from controlclin.services.patient_service import PatientService

D = TypeVar("D", ExamRequest, Assessment, Prescription)


class DocumentService:
    """Exam requests, assessments and prescriptions attached to a patient."""

    def __init__(self, store: ClinicStore):
        self.store = store
        self.patients = PatientService(store)
        self.events = EventService(store)

    def _collection(self, model: Type[D]) -> EntityCollection:
        state = self.store.state
        return {
            ExamRequest: state.exam_requests,
            Assessment: state.assessments,
            Prescription: state.prescriptions,
        }[model]

    async def _create(self, model: Type[D], patient_id: str, values: dict, current_user: User,
                      scope: AccessScope, summary: str) -> D:
        patient = await self.patients.get_patient(patient_id, current_user, scope)
        if not (values.get("title") or "").strip():
            raise ValidationFailed("Title is required")
        document = model(
            tenant_id=patient.tenant_id,
            patient_id=patient.id,
            professional_id=current_user.professional_id,
            **values,
        )
        self._collection(model).add(document)
        self.events.log_event(patient.id, EventType.CUSTOM,
                              {"document_id": document.id, "kind": model.__name__}, summary, current_user)
        self.store.commit()
        return document

    async def _list(self, model: Type[D], patient_id: str, current_user: User, scope: AccessScope) -> List[D]:
        await self.patients.get_patient(patient_id, current_user, scope)
        documents = self._collection(model).filter(lambda d: d.patient_id == patient_id)
        return sorted(documents, key=lambda d: d.created_at, reverse=True)

    async def _delete(self, model: Type[D], document_id: str, current_user: User, scope: AccessScope) -> None:
        collection = self._collection(model)
        document = collection.get(document_id)
        if not document:
            raise NotFound(f"{model.__name__} not found")
        await self.patients.get_patient(document.patient_id, current_user, scope)
        collection.remove(document_id)
        self.store.commit()

    async def create_exam_request(self, patient_id: str, data: ExamRequestCreate, current_user: User,
                                  scope: AccessScope = ADMIN_SCOPE) -> ExamRequest:
        if not data.exams:
            raise ValidationFailed("At least one exam must be requested")
        return await self._create(ExamRequest, patient_id, data.model_dump(), current_user, scope,
                                  f"Exam request: {', '.join(data.exams)}")

    async def list_exam_requests(self, patient_id: str, current_user: User,
                                 scope: AccessScope = ADMIN_SCOPE) -> List[ExamRequest]:
        return await self._list(ExamRequest, patient_id, current_user, scope)

    async def delete_exam_request(self, document_id: str, current_user: User, scope: AccessScope = ADMIN_SCOPE) -> None:
        await self._delete(ExamRequest, document_id, current_user, scope)

    async def create_assessment(self, patient_id: str, data: AssessmentCreate, current_user: User,
                                scope: AccessScope = ADMIN_SCOPE) -> Assessment:
        return await self._create(Assessment, patient_id, data.model_dump(), current_user, scope,
                                  f"Assessment recorded: {data.title}")

    async def list_assessments(self, patient_id: str, current_user: User,
                               scope: AccessScope = ADMIN_SCOPE) -> List[Assessment]:
        return await self._list(Assessment, patient_id, current_user, scope)

    async def delete_assessment(self, document_id: str, current_user: User, scope: AccessScope = ADMIN_SCOPE) -> None:
        await self._delete(Assessment, document_id, current_user, scope)

    async def create_prescription(self, patient_id: str, data: PrescriptionCreate, current_user: User,
                                  scope: AccessScope = ADMIN_SCOPE) -> Prescription:
        if not data.items:
            raise ValidationFailed("A prescription needs at least one item")
        return await self._create(Prescription, patient_id, data.model_dump(), current_user, scope,
                                  f"Prescription issued: {data.title}")

    async def list_prescriptions(self, patient_id: str, current_user: User,
                                 scope: AccessScope = ADMIN_SCOPE) -> List[Prescription]:
        return await self._list(Prescription, patient_id, current_user, scope)

    async def delete_prescription(self, document_id: str, current_user: User, scope: AccessScope = ADMIN_SCOPE) -> None:
        await self._delete(Prescription, document_id, current_user, scope)

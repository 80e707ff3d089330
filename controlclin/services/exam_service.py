from typing import List, Optional

from controlclin.core.exceptions import NotFound, ValidationFailed
from controlclin.core.logger import logger
from controlclin.core.utils import utcnow
from controlclin.db.models import EventType, Exam, ExamAnalysisResult, ExamStatus, User
from controlclin.db.store import ClinicStore
from controlclin.schemas.exam import ExamUpload
from controlclin.services import laboratory
from controlclin.services.access import ADMIN_SCOPE, AccessScope
from controlclin.services.ai_service import ExamAnalyzer
from controlclin.services.event_service import EventService
from controlclin.services.patient_service import PatientService


class ExamService:
    def __init__(self, store: ClinicStore, analyzer: Optional[ExamAnalyzer] = None):
        self.store = store
        self.analyzer = analyzer or ExamAnalyzer()
        self.patients = PatientService(store)
        self.events = EventService(store)

    async def list_exams(self, patient_id: str, current_user: User, scope: AccessScope = ADMIN_SCOPE) -> List[Exam]:
        await self.patients.get_patient(patient_id, current_user, scope)
        exams = self.store.state.exams.filter(lambda e: e.patient_id == patient_id)
        return sorted(exams, key=lambda e: (e.exam_date, e.created_at), reverse=True)

    async def get_exam(self, exam_id: str, current_user: User, scope: AccessScope = ADMIN_SCOPE) -> Exam:
        exam = self.store.state.exams.get(exam_id)
        if not exam:
            raise NotFound("Exam not found")
        await self.patients.get_patient(exam.patient_id, current_user, scope)
        return exam

    async def upload_exam(self, patient_id: str, data: ExamUpload, current_user: User,
                          scope: AccessScope = ADMIN_SCOPE) -> Exam:
        patient = await self.patients.get_patient(patient_id, current_user, scope)
        if not data.name.strip():
            raise ValidationFailed("Exam name is required")
        if not data.clinical_reason.strip():
            raise ValidationFailed("Clinical reason is required")

        exam = Exam(
            tenant_id=patient.tenant_id,
            patient_id=patient.id,
            exam_date=data.exam_date or utcnow().date(),
            name=data.name,
            clinical_reason=data.clinical_reason,
            file_url=data.file_url,
            appointment_id=data.appointment_id,
            clinical_hypothesis=data.clinical_hypothesis,
            requested_by_user_id=current_user.id,
            markers=laboratory.process_markers(data.markers),
        )
        self.store.state.exams.add(exam)
        self.events.log_event(patient.id, EventType.EXAM_UPLOADED, {"exam_id": exam.id, "name": exam.name},
                              "New exam attached", current_user)
        self.store.commit()
        logger.info(f"Exam {exam.id} uploaded for patient {patient.id} with {len(exam.markers)} markers")
        return exam

    async def analyze_exam(self, exam_id: str, current_user: User, scope: AccessScope = ADMIN_SCOPE) -> Exam:
        exam = await self.get_exam(exam_id, current_user, scope)
        patient = self.store.state.patients.get(exam.patient_id)
        result: ExamAnalysisResult = await self.analyzer.analyze(patient, [exam])
        updated = self.store.state.exams.update(exam.id, analysis=result.model_dump(), status=ExamStatus.ANALYZED)
        self.store.commit()
        return updated

    async def analyze_patient(self, patient_id: str, current_user: User,
                              scope: AccessScope = ADMIN_SCOPE) -> ExamAnalysisResult:
        """Cross-analysis of every exam of a patient. Nothing is stored."""
        patient = await self.patients.get_patient(patient_id, current_user, scope)
        exams = await self.list_exams(patient_id, current_user, scope)
        return await self.analyzer.analyze(patient, exams)

    async def delete_exam(self, exam_id: str, current_user: User, scope: AccessScope = ADMIN_SCOPE) -> None:
        exam = await self.get_exam(exam_id, current_user, scope)
        self.store.state.exams.remove(exam.id)
        self.store.commit()

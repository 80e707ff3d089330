from fastapi import APIRouter, Depends
from typing import List

from controlclin.api.deps import get_analyzer, get_current_user, get_scope, get_store
from controlclin.db.models import Exam, ExamAnalysisResult, User
from controlclin.db.store import ClinicStore
from controlclin.schemas.exam import ExamUpload
from controlclin.services.access import AccessScope
from controlclin.services.ai_service import ExamAnalyzer
from controlclin.services.exam_service import ExamService

router = APIRouter()

async def get_exam_service(
    store: ClinicStore = Depends(get_store),
    analyzer: ExamAnalyzer = Depends(get_analyzer)
) -> ExamService:
    return ExamService(store, analyzer)

@router.get("/patient/{patient_id}", response_model=List[Exam])
async def read_patient_exams(
    patient_id: str,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: ExamService = Depends(get_exam_service)
):
    return await service.list_exams(patient_id, current_user, scope)

@router.post("/patient/{patient_id}", response_model=Exam)
async def upload_exam(
    patient_id: str,
    data: ExamUpload,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: ExamService = Depends(get_exam_service)
):
    return await service.upload_exam(patient_id, data, current_user, scope)

@router.post("/patient/{patient_id}/analysis", response_model=ExamAnalysisResult)
async def analyze_patient_exams(
    patient_id: str,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: ExamService = Depends(get_exam_service)
):
    return await service.analyze_patient(patient_id, current_user, scope)

@router.get("/{exam_id}", response_model=Exam)
async def read_exam(
    exam_id: str,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: ExamService = Depends(get_exam_service)
):
    return await service.get_exam(exam_id, current_user, scope)

@router.post("/{exam_id}/analyze", response_model=Exam)
async def analyze_exam(
    exam_id: str,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: ExamService = Depends(get_exam_service)
):
    return await service.analyze_exam(exam_id, current_user, scope)

@router.delete("/{exam_id}")
async def delete_exam(
    exam_id: str,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: ExamService = Depends(get_exam_service)
):
    await service.delete_exam(exam_id, current_user, scope)
    return {"message": "Exam deleted"}

from fastapi import APIRouter, Depends
from typing import List, Optional

from controlclin.api.deps import get_analyzer, get_current_user, get_scope, get_store, get_tenant_id
from controlclin.core.exceptions import NotFound
from controlclin.db.models import (
    Appointment,
    Assessment,
    ClinicalNote,
    ExamRequest,
    FinancialTransaction,
    NutritionalPlan,
    Patient,
    PatientEvent,
    Prescription,
    User,
)
from controlclin.db.store import ClinicStore
from controlclin.schemas.document import AssessmentCreate, ExamRequestCreate, PrescriptionCreate
from controlclin.schemas.patient import (
    AnthropometryInput,
    ClinicalNoteCreate,
    NutritionalPlanUpsert,
    PatientCreate,
    PatientUpdate,
    PlanCritique,
    TransactionCreate,
)
from controlclin.schemas.report import IndividualReport
from controlclin.services.access import AccessScope
from controlclin.services.ai_service import ExamAnalyzer
from controlclin.services.appointment_service import AppointmentService
from controlclin.services.document_service import DocumentService
from controlclin.services.patient_service import PatientService
from controlclin.services.report_service import ReportService

router = APIRouter()

async def get_patient_service(store: ClinicStore = Depends(get_store)) -> PatientService:
    return PatientService(store)

async def get_document_service(store: ClinicStore = Depends(get_store)) -> DocumentService:
    return DocumentService(store)

@router.get("/", response_model=List[Patient])
async def read_patients(
    tenant_id: str = Depends(get_tenant_id),
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service)
):
    return await service.list_patients(tenant_id, current_user, scope)

@router.post("/", response_model=Patient)
async def create_patient(
    data: PatientCreate,
    tenant_id: str = Depends(get_tenant_id),
    current_user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service)
):
    return await service.create_patient(tenant_id, data, current_user)

@router.get("/{patient_id}", response_model=Patient)
async def read_patient(
    patient_id: str,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service)
):
    return await service.get_patient(patient_id, current_user, scope)

@router.patch("/{patient_id}", response_model=Patient)
async def update_patient(
    patient_id: str,
    data: PatientUpdate,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service)
):
    return await service.update_patient(patient_id, data, current_user, scope)

@router.delete("/{patient_id}")
async def delete_patient(
    patient_id: str,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service)
):
    removed = await service.delete_patient(patient_id, current_user, scope)
    return {"patient_id": patient_id, "removed": removed}

# Records kept on the patient document

@router.post("/{patient_id}/anthropometry", response_model=Patient)
async def record_anthropometry(
    patient_id: str,
    data: AnthropometryInput,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service)
):
    return await service.record_anthropometry(patient_id, data, current_user, scope)

@router.post("/{patient_id}/transactions", response_model=FinancialTransaction)
async def add_transaction(
    patient_id: str,
    data: TransactionCreate,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service)
):
    await service.get_patient(patient_id, current_user, scope)
    return await service.add_transaction(patient_id, data, current_user)

@router.post("/{patient_id}/notes", response_model=ClinicalNote)
async def add_clinical_note(
    patient_id: str,
    data: ClinicalNoteCreate,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service)
):
    return await service.add_clinical_note(patient_id, data.content, current_user, scope)

@router.get("/{patient_id}/plans", response_model=List[NutritionalPlan])
async def read_plans(
    patient_id: str,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service)
):
    return await service.list_plans(patient_id, current_user, scope)

@router.put("/{patient_id}/plans", response_model=NutritionalPlan)
async def save_plan(
    patient_id: str,
    data: NutritionalPlanUpsert,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service)
):
    return await service.upsert_plan(patient_id, data, current_user, scope)

@router.get("/{patient_id}/plans/active", response_model=Optional[NutritionalPlan])
async def read_active_plan(
    patient_id: str,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service)
):
    return await service.get_active_plan(patient_id, current_user, scope)

@router.post("/{patient_id}/plans/{plan_id}/critique", response_model=PlanCritique)
async def critique_plan(
    patient_id: str,
    plan_id: str,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service),
    analyzer: ExamAnalyzer = Depends(get_analyzer)
):
    patient = await service.get_patient(patient_id, current_user, scope)
    plan = next((p for p in patient.nutritional_plans if p.id == plan_id), None)
    if not plan:
        raise NotFound("Nutritional plan not found")
    return await analyzer.critique_plan(patient, plan)

# Derived views

@router.get("/{patient_id}/events", response_model=List[PatientEvent])
async def read_events(
    patient_id: str,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: PatientService = Depends(get_patient_service)
):
    await service.get_patient(patient_id, current_user, scope)
    return await service.events.list_events(patient_id)

@router.get("/{patient_id}/appointments", response_model=List[Appointment])
async def read_patient_appointments(
    patient_id: str,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    store: ClinicStore = Depends(get_store)
):
    return await AppointmentService(store).patient_history(patient_id, current_user, scope)

@router.get("/{patient_id}/report", response_model=IndividualReport)
async def read_report(
    patient_id: str,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    store: ClinicStore = Depends(get_store)
):
    return await ReportService(store).build_individual_report(patient_id, current_user, scope)

# Clinical documents

@router.get("/{patient_id}/exam-requests", response_model=List[ExamRequest])
async def read_exam_requests(
    patient_id: str,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service)
):
    return await service.list_exam_requests(patient_id, current_user, scope)

@router.post("/{patient_id}/exam-requests", response_model=ExamRequest)
async def create_exam_request(
    patient_id: str,
    data: ExamRequestCreate,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service)
):
    return await service.create_exam_request(patient_id, data, current_user, scope)

@router.delete("/{patient_id}/exam-requests/{document_id}")
async def delete_exam_request(
    patient_id: str,
    document_id: str,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service)
):
    await service.delete_exam_request(document_id, current_user, scope)
    return {"message": "Exam request deleted"}

@router.get("/{patient_id}/assessments", response_model=List[Assessment])
async def read_assessments(
    patient_id: str,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service)
):
    return await service.list_assessments(patient_id, current_user, scope)

@router.post("/{patient_id}/assessments", response_model=Assessment)
async def create_assessment(
    patient_id: str,
    data: AssessmentCreate,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service)
):
    return await service.create_assessment(patient_id, data, current_user, scope)

@router.delete("/{patient_id}/assessments/{document_id}")
async def delete_assessment(
    patient_id: str,
    document_id: str,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service)
):
    await service.delete_assessment(document_id, current_user, scope)
    return {"message": "Assessment deleted"}

@router.get("/{patient_id}/prescriptions", response_model=List[Prescription])
async def read_prescriptions(
    patient_id: str,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service)
):
    return await service.list_prescriptions(patient_id, current_user, scope)

@router.post("/{patient_id}/prescriptions", response_model=Prescription)
async def create_prescription(
    patient_id: str,
    data: PrescriptionCreate,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service)
):
    return await service.create_prescription(patient_id, data, current_user, scope)

@router.delete("/{patient_id}/prescriptions/{document_id}")
async def delete_prescription(
    patient_id: str,
    document_id: str,
    scope: AccessScope = Depends(get_scope),
    current_user: User = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service)
):
    await service.delete_prescription(document_id, current_user, scope)
    return {"message": "Prescription deleted"}

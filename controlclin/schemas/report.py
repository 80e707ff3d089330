from pydantic import BaseModel
from typing import Optional, List, Dict, Any
from datetime import date, datetime

from controlclin.db.models import (
    AnthropometryRecord,
    ClinicalNote,
    Exam,
    Patient,
    PatientEvent,
    PaymentMode,
)

class ReportMetrics(BaseModel):
    patient_since: date
    total_appointments: int
    attendance_rate: int
    next_appointment_at: Optional[datetime] = None

class ReportAnthropometry(BaseModel):
    current: Optional[Dict[str, Any]] = None
    history: List[AnthropometryRecord] = []
    has_sufficient_data: bool = False
    warnings: List[str] = []

class ReportClinical(BaseModel):
    active_diagnoses: List[str] = []
    medications: List[str] = []
    anamnesis_summary: str = ""
    notes: List[ClinicalNote] = []

class ReportNutritional(BaseModel):
    active_plan_title: Optional[str] = None
    targets: Optional[Dict[str, float]] = None

class ReportFinancial(BaseModel):
    total_paid: float = 0
    total_pending: float = 0
    mode: PaymentMode = PaymentMode.PRIVATE

class IndividualReport(BaseModel):
    patient: Patient
    metrics: ReportMetrics
    anthropometry: ReportAnthropometry
    clinical: ReportClinical
    exams: List[Exam] = []
    nutritional: ReportNutritional
    financial: ReportFinancial
    timeline: List[PatientEvent] = []
    generated_at: datetime

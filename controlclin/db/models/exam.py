from sqlmodel import SQLModel, Field
from typing import Optional, List
from datetime import datetime, date

from controlclin.core.utils import generate_id, utcnow
from .enums import ExamStatus, MarkerInterpretation


class ReferenceRange(SQLModel):
    min: float = 0
    max: float = 0
    label: str = "N/A"


class ExamMarker(SQLModel):
    name: str
    value: float
    unit: str = "un"
    reference: ReferenceRange = Field(default_factory=ReferenceRange)
    interpretation: MarkerInterpretation = MarkerInterpretation.NORMAL
    risk: Optional[str] = None
    suggestion: Optional[str] = None


class MarkerFinding(SQLModel):
    marker: str
    correlation: str
    impact: str # POSITIVE, NEUTRAL, NEGATIVE


class ExamAnalysisResult(SQLModel):
    summary: str
    findings: List[MarkerFinding] = Field(default_factory=list)
    possible_causes: List[str] = Field(default_factory=list)
    suggested_treatments: List[str] = Field(default_factory=list)
    next_steps: List[str] = Field(default_factory=list)
    is_fallback: bool = False


class Exam(SQLModel):
    id: str = Field(default_factory=lambda: generate_id("exam"))
    tenant_id: str
    patient_id: str
    exam_date: date
    name: str
    status: ExamStatus = ExamStatus.PENDING
    file_url: Optional[str] = None
    clinical_reason: str
    appointment_id: Optional[str] = None
    clinical_hypothesis: Optional[str] = None
    requested_by_user_id: Optional[str] = None
    markers: List[ExamMarker] = Field(default_factory=list)
    analysis: Optional[ExamAnalysisResult] = None
    created_at: datetime = Field(default_factory=utcnow)

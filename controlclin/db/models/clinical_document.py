from sqlmodel import SQLModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime

from controlclin.core.utils import generate_id, utcnow


class ClinicalDocument(SQLModel):
    tenant_id: str
    patient_id: str
    professional_id: Optional[str] = None
    title: str
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class ExamRequest(ClinicalDocument):
    id: str = Field(default_factory=lambda: generate_id("req"))
    exams: List[str] = Field(default_factory=list)
    clinical_reason: Optional[str] = None


class Assessment(ClinicalDocument):
    id: str = Field(default_factory=lambda: generate_id("asm"))
    answers: Dict[str, Any] = Field(default_factory=dict)
    score: Optional[float] = None


class PrescriptionItem(SQLModel):
    name: str
    dosage: Optional[str] = None
    instructions: Optional[str] = None


class Prescription(ClinicalDocument):
    id: str = Field(default_factory=lambda: generate_id("rx"))
    items: List[PrescriptionItem] = Field(default_factory=list)

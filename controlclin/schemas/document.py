from pydantic import BaseModel
from typing import Optional, List, Dict, Any

from controlclin.db.models import PrescriptionItem

class DocumentBase(BaseModel):
    title: str
    notes: Optional[str] = None

class ExamRequestCreate(DocumentBase):
    exams: List[str]
    clinical_reason: Optional[str] = None

class AssessmentCreate(DocumentBase):
    answers: Dict[str, Any] = {}
    score: Optional[float] = None

class PrescriptionCreate(DocumentBase):
    items: List[PrescriptionItem]

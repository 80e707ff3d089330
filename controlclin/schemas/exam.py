from pydantic import BaseModel
from typing import Optional, List, Union
from datetime import date

class MarkerInput(BaseModel):
    name: str
    value: Union[float, str]
    unit: Optional[str] = None

class ExamUpload(BaseModel):
    name: str
    exam_date: Optional[date] = None
    clinical_reason: str
    file_url: Optional[str] = None
    appointment_id: Optional[str] = None
    clinical_hypothesis: Optional[str] = None
    markers: List[MarkerInput] = []

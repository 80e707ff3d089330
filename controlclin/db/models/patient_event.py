from sqlmodel import SQLModel, Field
from typing import Optional, Dict, Any
from datetime import datetime

from controlclin.core.utils import generate_id, utcnow
from .enums import EventType


class EventActor(SQLModel):
    user_id: str
    name: str
    role: str


class PatientEvent(SQLModel):
    id: str = Field(default_factory=lambda: generate_id("evt"))
    tenant_id: Optional[str] = None
    patient_id: str
    type: EventType
    payload: Dict[str, Any] = Field(default_factory=dict)
    summary: Optional[str] = None
    created_by: Optional[EventActor] = None
    created_at: datetime = Field(default_factory=utcnow)

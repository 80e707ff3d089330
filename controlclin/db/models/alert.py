from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from controlclin.core.utils import generate_id, utcnow
from .enums import AlertSeverity, AlertStatus, AlertType


class ClinicalAlert(SQLModel):
    id: str = Field(default_factory=lambda: generate_id("alt"))
    tenant_id: str
    patient_id: str
    patient_name: str = ""
    type: AlertType
    severity: AlertSeverity = AlertSeverity.MEDIUM
    description: str
    status: AlertStatus = AlertStatus.ACTIVE
    created_at: datetime = Field(default_factory=utcnow)

    resolved_at: Optional[datetime] = None
    resolved_by: Optional[str] = None
    resolution_notes: Optional[str] = None

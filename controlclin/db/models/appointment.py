from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from controlclin.core.utils import generate_id, utcnow
from .enums import AppointmentStatus, AppointmentType, FinancialStatus, PaymentMethod


class Appointment(SQLModel):
    id: str = Field(default_factory=lambda: generate_id("apt"))
    tenant_id: str
    professional_id: str
    patient_id: str
    patient_name: str = ""
    start_time: datetime
    end_time: datetime
    type: AppointmentType = AppointmentType.ROUTINE
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    notes: Optional[str] = None

    price: Optional[float] = None
    financial_status: Optional[FinancialStatus] = None
    payment_method: Optional[PaymentMethod] = None
    created_at: datetime = Field(default_factory=utcnow)

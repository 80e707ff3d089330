from pydantic import BaseModel
from datetime import datetime
from typing import Optional

from controlclin.db.models import AppointmentStatus, AppointmentType, FinancialStatus, PaymentMethod

class AppointmentCreate(BaseModel):
    patient_id: str
    professional_id: str
    start_time: datetime
    end_time: datetime
    type: AppointmentType = AppointmentType.ROUTINE
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    notes: Optional[str] = None
    price: Optional[float] = None
    financial_status: Optional[FinancialStatus] = None
    payment_method: Optional[PaymentMethod] = None

class AppointmentUpdate(BaseModel):
    professional_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    type: Optional[AppointmentType] = None
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None
    price: Optional[float] = None
    financial_status: Optional[FinancialStatus] = None
    payment_method: Optional[PaymentMethod] = None

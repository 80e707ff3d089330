from pydantic import BaseModel
from typing import Optional

from controlclin.db.models import AIConfig, Clinic, ScheduleConfig
from controlclin.schemas.user import UserResponse

class ClinicBase(BaseModel):
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    primary_color: Optional[str] = None
    logo_url: Optional[str] = None

class ClinicCreate(ClinicBase):
    admin_name: str
    admin_email: str

class ClinicUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    primary_color: Optional[str] = None
    logo_url: Optional[str] = None
    is_active: Optional[bool] = None
    ai_config: Optional[AIConfig] = None
    schedule_config: Optional[ScheduleConfig] = None

class AdminCredentials(BaseModel):
    email: str
    password: str

class ClinicCreatedResponse(BaseModel):
    clinic: Clinic
    admin: UserResponse
    admin_credentials: AdminCredentials

class ResetResult(BaseModel):
    tenant_id: str
    removed: dict

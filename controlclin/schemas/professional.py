from pydantic import BaseModel
from typing import Optional

from controlclin.db.models import Role

class ProfessionalBase(BaseModel):
    name: str
    email: str
    phone: Optional[str] = None
    specialty: Optional[str] = None
    registration_number: Optional[str] = None
    color: str = "bg-blue-200"

class ProfessionalCreate(ProfessionalBase):
    role: Role = Role.PROFESSIONAL
    password: Optional[str] = None # registers a login when given

class ProfessionalUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    specialty: Optional[str] = None
    registration_number: Optional[str] = None
    color: Optional[str] = None
    is_active: Optional[bool] = None

class ProfessionalDeleteResult(BaseModel):
    professional_id: str
    cancelled_appointments: int
    unassigned_patients: int

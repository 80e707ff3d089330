from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from controlclin.db.models import Role

class UserBase(BaseModel):
    name: str
    email: str

class UserResponse(UserBase):
    id: str
    tenant_id: str
    role: Role
    professional_id: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

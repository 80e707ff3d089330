from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from controlclin.core.utils import generate_id, utcnow


class Professional(SQLModel):
    id: str = Field(default_factory=lambda: generate_id("p"))
    tenant_id: str
    user_id: Optional[str] = None
    name: str
    email: str
    phone: Optional[str] = None
    specialty: Optional[str] = None
    registration_number: Optional[str] = None
    color: str = "bg-blue-200"
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)

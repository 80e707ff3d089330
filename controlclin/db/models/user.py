from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from controlclin.core.utils import generate_id, utcnow
from .enums import Role


class User(SQLModel):
    id: str = Field(default_factory=lambda: generate_id("u"))
    tenant_id: str # "system" for platform superadmins
    role: Role
    name: str
    email: str
    professional_id: Optional[str] = None
    credential_ref: Optional[str] = None # uid at the identity service
    created_at: datetime = Field(default_factory=utcnow)

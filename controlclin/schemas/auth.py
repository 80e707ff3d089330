from pydantic import BaseModel
from typing import Optional

from controlclin.db.models import Role

class LoginRequest(BaseModel):
    clinic_slug: str
    email: str
    password: str

class UserInfo(BaseModel):
    id: str
    name: str
    email: str
    role: Role
    clinic_id: str
    clinic_name: str
    professional_id: Optional[str] = None

class LoginResponse(BaseModel):
    access_token: str
    token_type: str
    user: UserInfo

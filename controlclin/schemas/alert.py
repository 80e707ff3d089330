from pydantic import BaseModel
from typing import Optional

class AlertResolve(BaseModel):
    notes: Optional[str] = None

class AlertGenerationResult(BaseModel):
    created: int

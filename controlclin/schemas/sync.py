from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class SyncStatusResponse(BaseModel):
    remote_enabled: bool
    active_tenant_id: Optional[str] = None
    last_modified: Optional[int] = None
    pending: bool
    last_success_at: Optional[datetime] = None
    last_error: Optional[str] = None
    last_error_at: Optional[datetime] = None
    pushes_started: int
    pushes_failed: int

class ReconcileResponse(BaseModel):
    tenant_id: str
    outcome: str
